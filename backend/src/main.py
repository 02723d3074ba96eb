"""Publication Library Backend - Main FastAPI Application

This module creates and configures the main FastAPI application, including:
- All API routers (auth, users, roles, settings, publications, verification, audit)
- Middleware (request ID correlation, CORS)
- Exception handlers (domain errors rendered as {"error", "message", "details"})
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from domain.publications.errors import PublicationError

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Authentication & Authorization
from auth.router import router as auth_router
from users.router import router as users_router
from roles.router import router as roles_router

# Domain Routers
from publications.router import router as publications_router
from publications.verification_router import router as verification_router
from app_settings.router import router as settings_router
from audit.router import router as audit_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler (startup and shutdown logging)."""
    logger.info(f"{settings.APP_NAME} API starting up...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Storage driver: {settings.STORAGE_DRIVER}")
    if settings.ALLOW_DEGRADED_APPROVAL:
        logger.warning("Degraded approval is enabled: submissions may be approved without a file")

    yield

    logger.info(f"{settings.APP_NAME} API shutting down...")


_docs_enabled = settings.ENV != "production"

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Publication library: uploads, moderation, catalogue and administration",
    version=VERSION,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

# Request ID Middleware (must be first for proper correlation)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(PublicationError)
async def publication_exception_handler(request: Request, exc: PublicationError) -> JSONResponse:
    """Render domain errors with their kind, message and details."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{exc.kind} on {request.method} {request.url.path}: {exc.message}",
        extra={"status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Catch-all: full details are logged but not exposed to the client."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(observability_router)

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(roles_router, prefix=API_PREFIX)
app.include_router(settings_router, prefix=API_PREFIX)

app.include_router(publications_router, prefix=API_PREFIX)
app.include_router(verification_router, prefix=API_PREFIX)

app.include_router(audit_router, prefix=API_PREFIX)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": f"{settings.APP_NAME} API",
        "version": VERSION,
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
    }


@app.get(API_PREFIX, include_in_schema=False)
async def api_root() -> dict[str, Any]:
    """API v1 root endpoint."""
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "auth": f"{API_PREFIX}/auth",
            "users": f"{API_PREFIX}/users",
            "roles": f"{API_PREFIX}/roles",
            "permissions": f"{API_PREFIX}/permissions",
            "settings": f"{API_PREFIX}/settings",
            "publications": f"{API_PREFIX}/publications",
            "verification": f"{API_PREFIX}/verification",
            "audit": f"{API_PREFIX}/audit",
        }
    }


def create_app() -> FastAPI:
    """Return the configured application (used by tests and ASGI servers)."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENV == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
