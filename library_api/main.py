"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Easier to test (can create multiple instances)

2. Lifespan Events
   - startup: connect to Redis before accepting requests
   - shutdown: close the Redis connection

3. Middleware Stack
   - Rate limiting: 60 requests/minute per client on every resource route
   - CORS: Allow cross-origin requests

4. Exception Handlers
   Every error leaves the API in one of two envelopes:
   - {"errors": {field: [messages]}, "status": 422} for validation failures
   - {"error": message, "status": code} for everything else
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api.config import get_settings
from library_api.database import check_database_connection
from library_api.routers import authors_router, books_router, users_router
from library_api.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from library_api.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API prefix: {settings.api_prefix or '/'}")

    if get_redis_client():
        logger.info("Redis caching enabled")
    else:
        logger.warning("Redis unavailable - caching disabled")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    close_redis_connection()


# =============================================================================
# Error Formatting
# =============================================================================
def format_validation_errors(errors: list[dict[str, Any]]) -> dict[str, list[str]]:
    """
    Group Pydantic/FastAPI errors by field name.

    The location prefix ("body", "query", "path") is dropped so clients see
    plain field names:

        [{"loc": ("body", "name"), "msg": "String should have at least 1 character"}]
        -> {"name": ["String should have at least 1 character"]}
    """
    grouped: dict[str, list[str]] = {}

    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "body"
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        grouped.setdefault(field, []).append(message)

    return grouped


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    """Build the {"error", "status"} envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "status": status_code},
        headers=headers,
    )


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Library API

A REST API for managing authors and their books.

### Features
- **Authors** and **Books**: full CRUD
- Pagination, sorting, case-sensitive search and field projection on lists
- Read-through Redis caching with versioned keys

### Rate Limiting
Every route is limited to 60 requests per minute per client.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    # SlowAPIMiddleware applies the limiter's default limit to every route
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Return 422 with one list of messages per invalid field."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "errors": format_validation_errors(exc.errors()),
                "status": status.HTTP_422_UNPROCESSABLE_ENTITY,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Wrap 401/404/405/500 HTTPExceptions in the error envelope."""
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle database errors that escaped the resource handlers.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "A database error occurred. Please try again later.",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        message = str(exc) if settings.debug else "An internal error occurred."
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(authors_router, prefix=settings.api_prefix)
    app.include_router(books_router, prefix=settings.api_prefix)
    app.include_router(users_router, prefix=settings.api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API, its database and its cache are reachable.",
    )
    @limiter.exempt
    def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Used by load balancers, container probes and monitoring systems.
        """
        database_ok = check_database_connection()

        return {
            "status": "healthy" if database_ok else "degraded",
            "app": settings.app_name,
            "version": settings.api_version,
            "database": {"connected": database_ok},
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
    )
    @limiter.exempt
    async def root(request: Request) -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
            "api": settings.api_prefix or "/",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn library_api.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "library_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
