"""API routes for policy templates and versions.

The same set of routes is mounted once per policy kind:
``/sla-policies/``, ``/sla-policy-versions/``, ``/escalation-policies/`` and
``/escalation-policy-versions/``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, status  # type: ignore[import-not-found]
from policy_config import PolicyKind, PolicyTemplate, PolicyVersion
from policy_core.validation import validate_config
from policy_runtime import PolicyStore, RecordConflictError, RecordNotFoundError

from .app import PolicyApiError, get_app_state
from .models import (
    ErrorResponse,
    Page,
    TemplateCreateRequest,
    TemplateUpdateRequest,
    VersionCreateRequest,
    VersionUpdateRequest,
)

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def get_store() -> PolicyStore:
    """Resolve the policy store.

    Raises:
        PolicyApiError: If the store is not initialized
    """
    store = get_app_state().store
    if store is None:
        raise PolicyApiError(503, "Store not initialized.")
    return store


def require_credential(authorization: Optional[str] = Header(default=None)) -> str:
    """Check the bearer credential.

    Returns:
        The presented token

    Raises:
        PolicyApiError: 401 when missing, 403 when it doesn't match the configured token
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise PolicyApiError(401, "Authentication credentials were not provided.")

    expected = get_app_state().api_token
    if expected is not None and token.strip() != expected:
        raise PolicyApiError(403, "Invalid credential.")

    return token.strip()


def _validated(kind: PolicyKind, config: Dict[str, Any]) -> Dict[str, Any]:
    result = validate_config(kind, config)
    if not result.is_valid:
        raise PolicyApiError(422, "Invalid policy config", {"errors": result.errors})
    return result.config or {}


def _store_errors(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a store method, translating store errors to API errors."""
    try:
        return func(*args, **kwargs)
    except RecordNotFoundError as e:
        raise PolicyApiError(404, str(e)) from e
    except RecordConflictError as e:
        raise PolicyApiError(409, str(e)) from e
    except ValueError as e:
        raise PolicyApiError(400, str(e)) from e


def build_policy_router(kind: PolicyKind) -> APIRouter:
    """Build the template and version routes for one policy kind.

    Args:
        kind: Policy kind served by the router

    Returns:
        APIRouter with all routes for the kind
    """
    templates_path = f"/{kind.value}-policies"
    versions_path = f"/{kind.value}-policy-versions"
    router = APIRouter(
        tags=[f"{kind.value}-policies"],
        dependencies=[Depends(require_credential)],
        responses=ERROR_RESPONSES,
    )

    @router.get(f"{templates_path}/", response_model=Page[PolicyTemplate])  # type: ignore[misc]
    async def list_templates(
        is_active: Optional[bool] = None,
        store: PolicyStore = Depends(get_store),
    ) -> Page[PolicyTemplate]:
        """List policy templates, most recently updated first."""
        templates = store.list_templates(kind, is_active=is_active)
        return Page[PolicyTemplate](count=len(templates), results=templates)

    @router.post(
        f"{templates_path}/",
        response_model=PolicyTemplate,
        status_code=status.HTTP_201_CREATED,
    )  # type: ignore[misc]
    async def create_template(
        request: TemplateCreateRequest,
        store: PolicyStore = Depends(get_store),
    ) -> PolicyTemplate:
        """Create a policy template."""
        return _store_errors(store.create_template, kind, **request.model_dump())

    @router.get(f"{templates_path}/{{template_id}}/", response_model=PolicyTemplate)  # type: ignore[misc]
    async def get_template(
        template_id: str,
        store: PolicyStore = Depends(get_store),
    ) -> PolicyTemplate:
        """Get a policy template."""
        return _store_errors(store.get_template, template_id, kind=kind)

    @router.patch(f"{templates_path}/{{template_id}}/", response_model=PolicyTemplate)  # type: ignore[misc]
    async def update_template(
        template_id: str,
        request: TemplateUpdateRequest,
        store: PolicyStore = Depends(get_store),
    ) -> PolicyTemplate:
        """Patch a policy template, e.g. to activate or deactivate it."""
        changes = request.model_dump(exclude_unset=True)
        return _store_errors(store.update_template, template_id, kind=kind, **changes)

    @router.get(f"{versions_path}/", response_model=Page[PolicyVersion])  # type: ignore[misc]
    async def list_versions(
        template: Optional[str] = None,
        ordering: str = "-created_at",
        store: PolicyStore = Depends(get_store),
    ) -> Page[PolicyVersion]:
        """List versions, optionally for one template.

        Only ``created_at`` ordering is supported; prefix with ``-`` for newest first.
        """
        if ordering.lstrip("-") != "created_at":
            raise PolicyApiError(400, f"Unsupported ordering '{ordering}'")
        versions = store.list_versions(
            template_id=template, kind=kind, newest_first=ordering.startswith("-")
        )
        return Page[PolicyVersion](count=len(versions), results=versions)

    @router.post(
        f"{versions_path}/",
        response_model=PolicyVersion,
        status_code=status.HTTP_201_CREATED,
    )  # type: ignore[misc]
    async def create_version(
        request: VersionCreateRequest,
        x_actor: Optional[str] = Header(default=None),
        store: PolicyStore = Depends(get_store),
    ) -> PolicyVersion:
        """Create a draft version under a template."""
        config = _validated(kind, request.config)
        return _store_errors(
            store.create_version, request.template, config, created_by=x_actor, kind=kind
        )

    @router.get(f"{versions_path}/{{version_id}}/", response_model=PolicyVersion)  # type: ignore[misc]
    async def get_version(
        version_id: str,
        store: PolicyStore = Depends(get_store),
    ) -> PolicyVersion:
        """Get a version."""
        return _store_errors(store.get_version, version_id, kind=kind)

    @router.patch(f"{versions_path}/{{version_id}}/", response_model=PolicyVersion)  # type: ignore[misc]
    async def save_draft(
        version_id: str,
        request: VersionUpdateRequest,
        store: PolicyStore = Depends(get_store),
    ) -> PolicyVersion:
        """Replace a draft version's config; 409 when it is no longer a draft."""
        config = _validated(kind, request.config)
        return _store_errors(store.save_draft, version_id, config, kind=kind)

    @router.post(f"{versions_path}/{{version_id}}/publish/", response_model=PolicyVersion)  # type: ignore[misc]
    async def publish_version(
        version_id: str,
        x_actor: Optional[str] = Header(default=None),
        store: PolicyStore = Depends(get_store),
    ) -> PolicyVersion:
        """Publish a draft version; the previously published version is archived."""
        return _store_errors(store.publish, version_id, published_by=x_actor, kind=kind)

    @router.get(f"{versions_path}/{{version_id}}/simulate/")  # type: ignore[misc]
    async def simulate_version(
        version_id: str,
        store: PolicyStore = Depends(get_store),
    ) -> Dict[str, Any]:
        """Dry-run a version; returns ``{count, results}``."""
        return _store_errors(store.simulate, version_id, kind=kind)

    return router


sla_router = build_policy_router(PolicyKind.SLA)
escalation_router = build_policy_router(PolicyKind.ESCALATION)
