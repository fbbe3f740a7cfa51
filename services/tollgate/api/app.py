"""
FastAPI application factory for the Tollgate admin API.

Uses lifespan handler for startup/shutdown with async resource management.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tollgate.config import SearchBackend, settings
from tollgate.db.session import close_db, init_db
from tollgate.errors import AdminError
from tollgate.logging_config import configure_logging, get_logger
from tollgate.permissions import init_catalog
from tollgate.redis.client import close_redis, init_redis
from tollgate.search import close_search, init_search

from .health import router as health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup and shutdown."""
    configure_logging(
        json_logs=settings.json_logs, log_level=settings.log_level, app_name=settings.app_name
    )
    logger.info("Starting Tollgate admin API", version="0.1.0")

    await init_db()
    logger.info("Database initialized")

    if settings.search.backend == SearchBackend.REDIS:
        await init_redis()
        logger.info("Redis initialized")

    init_catalog()

    # Fails startup on an unknown search backend
    init_search()

    yield

    logger.info("Shutting down Tollgate admin API")
    close_search()
    await close_redis()
    await close_db()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Tollgate API",
        description="Tollgate - role and permission administration for users-permissions",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    if settings.cors.allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.allow_origins,
            allow_credentials=settings.cors.allow_credentials,
            allow_methods=settings.cors.allow_methods,
            allow_headers=settings.cors.allow_headers,
        )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Ensure every request has a request ID for logging correlation."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.unbind_contextvars("request_id")

        return response

    @app.exception_handler(AdminError)
    async def admin_error_handler(request: Request, exc: AdminError) -> JSONResponse:
        """Render admin errors with their status and code."""
        logger.info(
            "Admin request rejected",
            code=exc.code,
            status=exc.status_code,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error("Unhandled exception", exc_info=exc, path=str(request.url.path))
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    app.include_router(health_router)

    from tollgate.api.routers.roles import router as roles_router

    app.include_router(roles_router, prefix=settings.api_prefix)

    from tollgate.api.routers.permissions import router as permissions_router

    app.include_router(permissions_router, prefix=settings.api_prefix)

    from tollgate.api.routers.settings import router as settings_router

    app.include_router(settings_router, prefix=settings.api_prefix)

    from tollgate.api.routers.users import router as users_router

    app.include_router(users_router, prefix=settings.api_prefix)

    return app


# Application instance
app = create_application()
