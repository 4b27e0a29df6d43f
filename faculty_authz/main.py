"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from faculty_authz.core.config import Settings, settings as default_settings
from faculty_authz.core.auth import AuthorizationError, AuthRegistry, RateLimiter, RateLimitPolicy
from faculty_authz.api.routes import router as api_router
from faculty_authz.api.middleware import ActivityLogMiddleware, LoggingMiddleware
from faculty_authz.models.database import close_db, get_session_factory
from faculty_authz.schemas.common import HealthResponse
from faculty_authz.services.activity import ActivityRecorder, LastActivityToucher
from faculty_authz.utils.background import BackgroundChannel
from faculty_authz.utils.context import RequestContextMiddleware, configure_logging

# Import to register rate store backends
from faculty_authz import implementations  # noqa: F401

logger = structlog.get_logger()


def build_rate_limiter(settings: Settings) -> RateLimiter | None:
    """Rate limiter for the configured backend, or None when disabled."""
    if not settings.rate_limit.enabled:
        return None

    store = AuthRegistry.get_rate_store(
        settings.rate_limit.backend,
        redis_url=settings.redis.url,
        max_connections=settings.redis.max_connections,
    )
    return RateLimiter(store, RateLimitPolicy.from_settings(settings.rate_limit))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    logger.info("Application starting", version=app.version)

    yield

    # Shutdown
    await app.state.background.drain(timeout=5)
    store = getattr(app.state.rate_limiter, "store", None)
    close = getattr(store, "close", None)
    if close is not None:
        await close()
    await close_db()


def create_app(
    settings: Settings | None = None,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or default_settings
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Background side effects (activity rows, last-activity touches)
    channel = BackgroundChannel()
    factory = session_factory or get_session_factory()
    app.state.background = channel
    app.state.activity_recorder = ActivityRecorder(factory, channel)
    app.state.last_activity = LastActivityToucher(factory, channel)
    app.state.rate_limiter = rate_limiter if rate_limiter is not None else build_rate_limiter(settings)

    # Middleware (last added is outermost)
    app.add_middleware(ActivityLogMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(api_router, prefix="/api")

    # Exception handlers
    @app.exception_handler(AuthorizationError)
    async def authorization_exception_handler(request: Request, exc: AuthorizationError):
        """Every guard failure renders as {"error": message}."""
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_body(),
            headers=exc.headers or None,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) if settings.debug else "Internal server error"},
        )

    # Health checks
    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            environment=settings.environment,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "faculty_authz.main:app",
        host=default_settings.host,
        port=default_settings.port,
    )
