"""Version store clients.

This module defines the interface the lifecycle controller uses to reach the
externally owned policy service, an HTTP implementation of it, and an
in-memory implementation over ``policy_runtime.PolicyStore``.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx
from policy_config import (
    ClientSettings,
    PolicyKind,
    PolicyTemplate,
    PolicyVersion,
    SimulationResult,
)
from policy_runtime import PolicyStore, RecordConflictError, RecordNotFoundError
from pydantic import ValidationError

from .errors import (
    PersistenceConflictError,
    StoreNotFoundError,
    StoreRejectedError,
    StoreResponseError,
    StoreTransportError,
    error_for_status,
)
from .metrics import STORE_CALLS, STORE_LATENCY

logger = logging.getLogger(__name__)


class VersionStoreClient(ABC):
    """Interface to the policy service for one policy kind.

    Every operation takes the caller's bearer credential. Failures raise a
    StoreError subclass and are never retried here.
    """

    kind: PolicyKind

    @abstractmethod
    async def get_template(self, token: str, template_id: str) -> PolicyTemplate:
        """Fetch a policy template."""

    @abstractmethod
    async def update_template(
        self, token: str, template_id: str, changes: Dict[str, Any]
    ) -> PolicyTemplate:
        """Patch template fields such as ``is_active``."""

    @abstractmethod
    async def list_versions(self, token: str, template_id: str) -> List[PolicyVersion]:
        """List a template's versions, newest first."""

    @abstractmethod
    async def get_version(self, token: str, version_id: str) -> PolicyVersion:
        """Fetch one version."""

    @abstractmethod
    async def create_version(
        self, token: str, template_id: str, config: Dict[str, Any]
    ) -> PolicyVersion:
        """Create a new draft version under a template."""

    @abstractmethod
    async def save_draft(self, token: str, version_id: str, config: Dict[str, Any]) -> PolicyVersion:
        """Replace a draft version's config."""

    @abstractmethod
    async def publish(self, token: str, version_id: str) -> PolicyVersion:
        """Publish a draft version."""

    @abstractmethod
    async def simulate(self, token: str, version_id: str) -> SimulationResult:
        """Dry-run a version; read-only."""


def _record_call(kind: PolicyKind, operation: str, status: str, started: float) -> None:
    STORE_LATENCY.labels(kind=kind.value, operation=operation).observe(
        time.perf_counter() - started
    )
    STORE_CALLS.labels(kind=kind.value, operation=operation, status=status).inc()


class HttpVersionStoreClient(VersionStoreClient):
    """Version store client speaking JSON over HTTP.

    Paths are resolved against the client's base URL, which may carry a
    prefix such as ``/bff/admin/service/ras``.
    """

    RESOURCES: Dict[PolicyKind, Tuple[str, str]] = {
        PolicyKind.SLA: ("sla-policies", "sla-policy-versions"),
        PolicyKind.ESCALATION: ("escalation-policies", "escalation-policy-versions"),
    }

    def __init__(
        self,
        kind: PolicyKind,
        settings: Optional[ClientSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the HTTP client.

        Args:
            kind: Policy kind this client manages
            settings: Connection settings (defaults when not provided)
            http_client: Optional pre-configured httpx client; its base URL is used as is
        """
        self.kind = PolicyKind(kind)
        self.settings = settings or ClientSettings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
        )
        self._templates_path, self._versions_path = self.RESOURCES[self.kind]

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpVersionStoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def get_template(self, token: str, template_id: str) -> PolicyTemplate:
        payload = await self._request(
            "get_template", "GET", f"/{self._templates_path}/{template_id}/", token
        )
        return self._parse(PolicyTemplate, payload)

    async def update_template(
        self, token: str, template_id: str, changes: Dict[str, Any]
    ) -> PolicyTemplate:
        payload = await self._request(
            "update_template",
            "PATCH",
            f"/{self._templates_path}/{template_id}/",
            token,
            json=changes,
        )
        return self._parse(PolicyTemplate, payload)

    async def list_versions(self, token: str, template_id: str) -> List[PolicyVersion]:
        payload = await self._request(
            "list_versions",
            "GET",
            f"/{self._versions_path}/",
            token,
            params={"template": template_id, "ordering": "-created_at"},
        )

        # Paginated envelope or a bare list
        if isinstance(payload, dict):
            items = payload.get("results")
        else:
            items = payload
        if not isinstance(items, list):
            raise StoreResponseError("Version list response has no results list", details=payload)

        return [self._parse(PolicyVersion, item) for item in items]

    async def get_version(self, token: str, version_id: str) -> PolicyVersion:
        payload = await self._request(
            "get_version", "GET", f"/{self._versions_path}/{version_id}/", token
        )
        return self._parse(PolicyVersion, payload)

    async def create_version(
        self, token: str, template_id: str, config: Dict[str, Any]
    ) -> PolicyVersion:
        payload = await self._request(
            "create_version",
            "POST",
            f"/{self._versions_path}/",
            token,
            json={"template": template_id, "config": config},
        )
        return self._parse(PolicyVersion, payload)

    async def save_draft(self, token: str, version_id: str, config: Dict[str, Any]) -> PolicyVersion:
        payload = await self._request(
            "save_draft",
            "PATCH",
            f"/{self._versions_path}/{version_id}/",
            token,
            json={"config": config},
        )
        return self._parse(PolicyVersion, payload)

    async def publish(self, token: str, version_id: str) -> PolicyVersion:
        payload = await self._request(
            "publish", "POST", f"/{self._versions_path}/{version_id}/publish/", token
        )
        return self._parse(PolicyVersion, payload)

    async def simulate(self, token: str, version_id: str) -> SimulationResult:
        payload = await self._request(
            "simulate", "GET", f"/{self._versions_path}/{version_id}/simulate/", token
        )
        return SimulationResult.from_payload(payload)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        token: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and decode its body.

        An empty token falls back to the credential named by
        ``settings.token_env_var``.

        Raises:
            StoreTransportError: If no response was received
            StoreError: A subclass matching the response status for non-2xx responses
        """
        token = token or self.settings.get_token() or ""
        headers: Dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        started = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            _record_call(self.kind, operation, "transport_error", started)
            logger.warning("api_transport_error path=%s error=%s", path, e)
            raise StoreTransportError(f"Request to {path} failed: {e}") from e

        _record_call(self.kind, operation, str(response.status_code), started)

        request_id = response.headers.get("X-Request-ID")
        payload = self._decode(response)

        if response.is_error:
            message: Any = None
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("detail")
            if not isinstance(message, str) or not message:
                message = response.reason_phrase or f"HTTP {response.status_code}"
            details = payload.get("details", payload) if isinstance(payload, dict) else payload
            logger.warning(
                "api_error path=%s status=%s request_id=%s",
                path,
                response.status_code,
                request_id,
            )
            raise error_for_status(response.status_code, message, details, request_id)

        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if "application/json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    @staticmethod
    def _parse(model: Any, payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise StoreResponseError(
                f"Unexpected {model.__name__} payload: {e}", details=payload
            ) from e


class InMemoryVersionStoreClient(VersionStoreClient):
    """Version store client backed by an in-process PolicyStore.

    Credentials are accepted but not checked.
    """

    def __init__(self, kind: PolicyKind, store: PolicyStore, actor: Optional[str] = None):
        """Initialize the in-memory client.

        Args:
            kind: Policy kind this client manages
            store: Store holding templates and versions
            actor: Identity recorded as creator/publisher
        """
        self.kind = PolicyKind(kind)
        self.store = store
        self.actor = actor

    async def get_template(self, token: str, template_id: str) -> PolicyTemplate:
        return self._call("get_template", self.store.get_template, template_id, kind=self.kind)

    async def update_template(
        self, token: str, template_id: str, changes: Dict[str, Any]
    ) -> PolicyTemplate:
        return self._call(
            "update_template", self.store.update_template, template_id, kind=self.kind, **changes
        )

    async def list_versions(self, token: str, template_id: str) -> List[PolicyVersion]:
        return self._call(
            "list_versions", self.store.list_versions, template_id=template_id, kind=self.kind
        )

    async def get_version(self, token: str, version_id: str) -> PolicyVersion:
        return self._call("get_version", self.store.get_version, version_id, kind=self.kind)

    async def create_version(
        self, token: str, template_id: str, config: Dict[str, Any]
    ) -> PolicyVersion:
        return self._call(
            "create_version",
            self.store.create_version,
            template_id,
            config,
            created_by=self.actor,
            kind=self.kind,
        )

    async def save_draft(self, token: str, version_id: str, config: Dict[str, Any]) -> PolicyVersion:
        return self._call("save_draft", self.store.save_draft, version_id, config, kind=self.kind)

    async def publish(self, token: str, version_id: str) -> PolicyVersion:
        return self._call(
            "publish", self.store.publish, version_id, published_by=self.actor, kind=self.kind
        )

    async def simulate(self, token: str, version_id: str) -> SimulationResult:
        payload = self._call("simulate", self.store.simulate, version_id, kind=self.kind)
        return SimulationResult.from_payload(payload)

    def _call(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except RecordNotFoundError as e:
            _record_call(self.kind, operation, "404", started)
            raise StoreNotFoundError(str(e), status_code=404) from e
        except RecordConflictError as e:
            _record_call(self.kind, operation, "409", started)
            raise PersistenceConflictError(str(e), status_code=409) from e
        except ValueError as e:
            _record_call(self.kind, operation, "400", started)
            raise StoreRejectedError(str(e), status_code=400) from e
        _record_call(self.kind, operation, "200", started)
        return result
