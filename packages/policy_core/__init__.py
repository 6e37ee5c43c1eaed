"""Service Operations Console - Policy Engine Core Package."""

from .client import HttpVersionStoreClient, InMemoryVersionStoreClient, VersionStoreClient
from .errors import (
    EditorStateError,
    PersistenceConflictError,
    PolicyEngineError,
    StoreAuthorizationError,
    StoreError,
    StoreNotFoundError,
    StoreRejectedError,
    StoreResponseError,
    StoreTransportError,
    ValidationFailedError,
)
from .lifecycle import EditorState, PolicyLifecycleController
from .validation import ValidationEngine, ValidationResult, validate_config

__version__ = "0.1.0"

__all__ = [
    "EditorState",
    "EditorStateError",
    "HttpVersionStoreClient",
    "InMemoryVersionStoreClient",
    "PersistenceConflictError",
    "PolicyEngineError",
    "PolicyLifecycleController",
    "StoreAuthorizationError",
    "StoreError",
    "StoreNotFoundError",
    "StoreRejectedError",
    "StoreResponseError",
    "StoreTransportError",
    "ValidationEngine",
    "ValidationFailedError",
    "ValidationResult",
    "VersionStoreClient",
    "validate_config",
]
