"""FastAPI application factory for the local policy service.

This module provides a stand-in for the external policy service: the same
template and version endpoints, backed by the in-memory PolicyStore. It is
used for local development and for exercising the HTTP client in tests.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional
from uuid import uuid4

from fastapi import FastAPI, Request  # type: ignore[import-not-found]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-not-found]
from fastapi.responses import JSONResponse, Response  # type: ignore[import-not-found]
from policy_config import ClientSettings
from policy_core.metrics import HTTP_LATENCY, HTTP_REQUESTS
from policy_runtime import PolicyStore
from prometheus_client import make_asgi_app  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)


class PolicyApiError(Exception):
    """Raised by route handlers to produce an error response."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        """Initialize application state."""
        self.store: Optional[PolicyStore] = None
        self.api_token: Optional[str] = None


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan.

    Args:
        app: FastAPI application instance

    Yields:
        None during application lifetime
    """
    if app_state.store is None:
        app_state.store = PolicyStore()

    yield

    app_state.store = None
    app_state.api_token = None


def create_app(
    store: Optional[PolicyStore] = None,
    settings: Optional[ClientSettings] = None,
    cors_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Optional pre-populated policy store
        settings: Optional settings; ``api_token`` restricts accepted credentials
        cors_origins: Optional list of allowed CORS origins

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Policy Service",
        description="Local policy service for SLA and escalation policy versions",
        version="0.1.0",
        lifespan=lifespan,
    )

    if cors_origins is None:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app_state.store = store if store is not None else (app_state.store or PolicyStore())
    app_state.api_token = settings.api_token if settings is not None else None

    @app.middleware("http")  # type: ignore[misc]
    async def track_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()
        status_code = "500"
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            route = request.scope.get("route")
            endpoint = getattr(route, "path", request.url.path)
            HTTP_LATENCY.labels(method=request.method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            HTTP_REQUESTS.labels(
                method=request.method, endpoint=endpoint, status=status_code
            ).inc()

    @app.exception_handler(PolicyApiError)  # type: ignore[misc]
    async def handle_policy_error(request: Request, exc: PolicyApiError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        logger.info(
            "Rejected %s %s with %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": exc.status_code,
                "message": exc.message,
                "details": exc.details,
                "request_id": request_id,
            },
        )

    _register_routes(app)
    app.mount("/metrics", make_asgi_app())

    return app


def _register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance
    """
    from .routes import escalation_router, sla_router

    app.include_router(sla_router)
    app.include_router(escalation_router)

    @app.get("/health")  # type: ignore[misc]
    async def health_check() -> dict[str, Any]:
        """Health check endpoint.

        Returns:
            Health status information
        """
        return {
            "status": "healthy",
            "version": "0.1.0",
            "store_ready": app_state.store is not None,
        }


def get_app_state() -> AppState:
    """Get the application state.

    Returns:
        Current application state
    """
    return app_state
