"""Error types raised by the policy engine."""

from typing import Any, List, Optional


class PolicyEngineError(Exception):
    """Base class for policy engine errors."""

    pass


class ValidationFailedError(PolicyEngineError):
    """Raised when a draft does not validate; the draft is left as it was."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Policy draft is invalid: {', '.join(self.errors)}")


class EditorStateError(PolicyEngineError):
    """Raised when an operation is not allowed in the editor's current state."""

    pass


class StoreError(PolicyEngineError):
    """Raised when a version store call fails.

    Attributes:
        status_code: HTTP status of the response, 0 when no response arrived
        message: Message reported by the store
        details: Decoded error payload, if any
        request_id: Value of the X-Request-ID response header, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Any = None,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        super().__init__(message)


class PersistenceConflictError(StoreError):
    """The store rejected a transition, e.g. saving or publishing a non-draft."""

    pass


class StoreNotFoundError(StoreError):
    """The template or version does not exist."""

    pass


class StoreAuthorizationError(StoreError):
    """The credential was missing, invalid or not allowed to act."""

    pass


class StoreRejectedError(StoreError):
    """The store refused the payload."""

    pass


class StoreTransportError(StoreError):
    """The request never produced a response (network failure, timeout)."""

    pass


class StoreResponseError(StoreError):
    """The store answered with a template or version payload that does not parse."""

    pass


def error_for_status(
    status_code: int,
    message: str,
    details: Any = None,
    request_id: Optional[str] = None,
) -> StoreError:
    """Map an HTTP status to the matching StoreError subclass."""
    if status_code == 409:
        error_class = PersistenceConflictError
    elif status_code == 404:
        error_class = StoreNotFoundError
    elif status_code in (401, 403):
        error_class = StoreAuthorizationError
    elif status_code in (400, 422):
        error_class = StoreRejectedError
    else:
        error_class = StoreError
    return error_class(message, status_code=status_code, details=details, request_id=request_id)
