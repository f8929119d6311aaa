"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import DecodocsError, InternalError, InvalidArgumentError
from .routes import analysis, documents, entitlement, health, reports

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting DecoDocs API on {settings.host}:{settings.port}")
    yield
    # Shutdown
    logger.info("Shutting down DecoDocs API")


async def decodocs_error_handler(request: Request, exc: DecodocsError) -> JSONResponse:
    """Render a DecodocsError as {"error": {"message", "status"}}."""
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are INVALID_ARGUMENT."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    error = InvalidArgumentError(message, code="INVALID_REQUEST")
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is INTERNAL; details stay in the log."""
    logger.exception(f"{request.method} {request.url.path} raised an unhandled error")
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Plain-English document analysis gated by tiered token quotas",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Error envelope
    app.add_exception_handler(DecodocsError, decodocs_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(entitlement.router, prefix="/api/entitlement", tags=["entitlement"])
    app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
    app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])
    app.include_router(reports.router, prefix="/api/reports", tags=["reports"])

    return app


# Application instance for uvicorn
app = create_app()
