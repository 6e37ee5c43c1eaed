"""Service Operations Console - Local Policy Service Package."""

from .app import AppState, PolicyApiError, create_app, get_app_state
from .models import (
    ErrorResponse,
    Page,
    TemplateCreateRequest,
    TemplateUpdateRequest,
    VersionCreateRequest,
    VersionUpdateRequest,
)
from .routes import build_policy_router, escalation_router, sla_router

__version__ = "0.1.0"

__all__ = [
    "AppState",
    "ErrorResponse",
    "Page",
    "PolicyApiError",
    "TemplateCreateRequest",
    "TemplateUpdateRequest",
    "VersionCreateRequest",
    "VersionUpdateRequest",
    "build_policy_router",
    "create_app",
    "escalation_router",
    "get_app_state",
    "sla_router",
]
