"""embedsearch - FastAPI Application

This module creates and configures the FastAPI application that serves the
embeddable AI search widget.
"""

import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from .api.health import router as health_router
from .api.widget import embed_router
from .api.widget import router as widget_router
from .core.config import get_settings_instance
from .core.database import close_db, init_db
from .core.exceptions import EmbedSearchException
from .core.http_client import close_http_client
from .core.logging import get_logger, setup_logging
from .core.middleware import RequestContextMiddleware
from .core.response import WidgetResponse

logger = get_logger(__name__)
settings = get_settings_instance()


def generate_error_id() -> str:
    """Short ID quoted to the widget and logged with the failure."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_request_context(request: Request) -> dict[str, Any]:
    """Request details attached to error logs."""
    return {
        "request": f"{request.method} {request.url.path}",
        "embedding_origin": request.headers.get("origin"),
        "embedding_page": request.headers.get("referer"),
        "client": request.client.host if request.client else None,
        "request_id": getattr(request.state, "request_id", None),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()

    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Version: {settings.version}")
    logger.info(f"Environment: {settings.environment}")

    # A missing registry must not stop the widget: lookups fall back to the allowlist
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.warning(f"Plugin registry unavailable at startup, serving in degraded mode: {e}")

    if not settings.ai_search_configured:
        logger.warning("OPENAI_API_KEY is not set; query execution will return AI_SEARCH_NOT_CONFIGURED")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    try:
        await close_http_client()
    except Exception as e:
        logger.error(f"Error closing HTTP client: {e}")
    await close_db()
    logger.info(f"{settings.app_name} shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Embeddable AI search widget API",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routes(app)

    logger.info("embedsearch FastAPI application created successfully")
    return app


def setup_middleware(app: FastAPI) -> None:
    """Register request context and CORS middleware.

    CORS is open by default: the widget is embedded on arbitrary third-party origins.
    """
    settings = get_settings_instance()

    app.add_middleware(RequestContextMiddleware, embed_prefix=settings.embed_prefix)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render every failure as a ``{"success": false}`` body.

    Server errors (5xx) get an error ID that is logged alongside the request
    context. Outside production, responses also carry a ``debug`` block.
    """
    settings = get_settings_instance()

    @app.exception_handler(EmbedSearchException)
    async def embedsearch_exception_handler(request: Request, exc: EmbedSearchException):
        error_id = generate_error_id() if exc.status_code >= 500 else None
        details = dict(exc.details)

        if exc.status_code >= 500:
            logger.error(
                "embedsearch server error",
                extra={
                    "error_id": error_id,
                    "error_code": exc.error_code,
                    "error_message": exc.message,
                    "details": exc.details,
                    "request_context": get_request_context(request),
                },
            )
            details = {"error_id": error_id}
            debug = {"exception_type": type(exc).__name__, "details": exc.details}
        else:
            logger.warning(
                "embedsearch client error",
                extra={
                    "error_code": exc.error_code,
                    "error_message": exc.message,
                    "details": exc.details,
                    "request_context": get_request_context(request),
                },
            )
            debug = None

        return WidgetResponse.error(
            message=exc.message,
            code=exc.error_code,
            details=details,
            status_code=exc.status_code,
            debug=debug if settings.include_error_details else None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        logger.warning(
            "Request validation failed",
            extra={"errors": errors, "request_context": get_request_context(request)},
        )
        return WidgetResponse.error(
            message="Invalid request body",
            code="VALIDATION_ERROR",
            status_code=400,
            debug={"errors": errors} if settings.include_error_details else None,
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        error_id = generate_error_id() if exc.status_code >= 500 else None
        if error_id:
            logger.error(
                "HTTP server error",
                extra={"error_id": error_id, "detail": exc.detail, "request_context": get_request_context(request)},
            )
        return WidgetResponse.error(
            message=str(exc.detail),
            code=f"HTTP_{exc.status_code}",
            details={"error_id": error_id} if error_id else None,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None) or None,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        error_id = generate_error_id()
        include_traceback = settings.include_error_details

        logger.error(
            "Unhandled exception",
            extra={
                "error_id": error_id,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "request_context": get_request_context(request),
            },
            exc_info=include_traceback,
        )

        debug = None
        if include_traceback:
            debug = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc().split("\n"),
            }

        return WidgetResponse.error(
            message="Internal server error",
            code="INTERNAL_SERVER_ERROR",
            details={"error_id": error_id},
            status_code=500,
            debug=debug,
        )


def setup_routes(app: FastAPI) -> None:
    """Configure application routes."""
    settings = get_settings_instance()

    app.include_router(health_router, prefix=settings.api_v1_prefix)
    app.include_router(widget_router, prefix=settings.api_v1_prefix)
    app.include_router(embed_router, prefix=settings.embed_prefix)


# Configure logging before the app object exists; the lifespan call is then a no-op
setup_logging()

app = create_app()
