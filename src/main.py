"""FastAPI application entry point.

This module sets up the FastAPI application with all necessary middleware,
routers, and configuration.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import structlog

from core.config import Settings, get_settings
from core.exceptions import (
    AuthorizationError,
    ExternalServiceError,
    ValidationError,
)
from core.logging import setup_logging
from core.middleware import CorrelationIDMiddleware, LoggingMiddleware
from core.monitoring import setup_monitoring, track_error
from models.common import ErrorResponse, HealthResponse
from proxy.router import router as proxy_router
from proxy.service import ProxyService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting Media Feed Proxy",
        version=settings.app_version,
        allowlist_size=len(app.state.proxy_service.allowlist),
        server_credentials=app.state.proxy_service.credentials.is_configured,
    )
    setup_monitoring(settings.app_name, settings.app_version)

    yield

    logger.info("Shutting down Media Feed Proxy")


def create_app(
    settings: Optional[Settings] = None,
    proxy_service: Optional[ProxyService] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Application settings, loaded from the environment if omitted.
        proxy_service: Proxy service to serve, built from settings if omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CORS and OAuth proxy for Reddit feeds and linked media hosts",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # One service, and one token cache, per process
    app.state.settings = settings
    app.state.proxy_service = proxy_service or ProxyService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.include_router(proxy_router, prefix="/api", tags=["proxy"])

    add_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=settings.app_version)

    if settings.metrics_enabled:
        app.mount("/metrics", make_asgi_app())

    return app


def _error_response(
    request: Request,
    status_code: int,
    detail: str,
    error_type: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    error = ErrorResponse(
        detail=detail,
        type=error_type,
        correlation_id=getattr(request.state, "correlation_id", None),
        details=details or None,
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(exclude_none=True))


def add_exception_handlers(app: FastAPI) -> None:
    """Add global exception handlers to the FastAPI app.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle missing or malformed targets."""
        logger.warning(
            "Validation error",
            error=str(exc),
            path=request.url.path,
        )
        return _error_response(request, exc.status_code, str(exc), exc.error_type, exc.details)

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        """Handle targets outside the allowlist."""
        logger.warning(
            "Authorization error",
            error=str(exc),
            path=request.url.path,
        )
        return _error_response(request, exc.status_code, str(exc), exc.error_type, exc.details)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle upstream network failures."""
        logger.error(
            "External service error",
            error=str(exc),
            path=request.url.path,
            service=exc.service,
        )
        track_error(exc.error_type, exc.service)
        return _error_response(request, exc.status_code, "Upstream fetch failed", exc.error_type)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception(
            "Unhandled exception",
            error_class=exc.__class__.__name__,
            path=request.url.path,
        )
        track_error(exc.__class__.__name__, "app")
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "internal_error",
        )


# Create the app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=1 if settings.reload else settings.workers,
        log_level=settings.log_level.lower(),
    )
