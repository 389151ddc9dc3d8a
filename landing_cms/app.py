"""
Landing CMS - FastAPI Application Entrypoint

This module builds the FastAPI application with:
- CORS and security middleware
- Authentication and admin user routes
- Database lifecycle management
- Audit recorder lifecycle

Run with:
    uvicorn landing_cms.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from landing_cms.admin.audit_routes import router as admin_audit_router
from landing_cms.admin.routes import router as admin_users_router
from landing_cms.audit.recorder import AuditRecorder
from landing_cms.auth.database import get_engine, get_session_factory, init_db
from landing_cms.auth.lockout import LockoutPolicy
from landing_cms.auth.password import PasswordHasher
from landing_cms.auth.repository import RefreshTokenRepository
from landing_cms.auth.routes import router as auth_router
from landing_cms.auth.tokens import TokenCodec
from landing_cms.config import Settings, get_settings
from landing_cms.gateway.middleware import SecurityMiddleware
from landing_cms.gateway.rate_limit import RateLimiter
from landing_cms.logging import configure_logging, get_logger


logger = get_logger(__name__)


async def purge_expired_tokens(app: FastAPI) -> int:
    """Delete expired refresh-token records. Best-effort; returns rows removed."""
    db = app.state.db_session_factory()
    try:
        removed = await RefreshTokenRepository(db).delete_expired()
    except SQLAlchemyError:
        logger.exception("expired_token_purge_failed")
        return 0
    finally:
        db.close()

    logger.info("expired_tokens_purged", removed=removed)
    return removed


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Create tables
        - Purge expired refresh tokens
        - Start the audit recorder

    Shutdown:
        - Drain the audit recorder
        - Dispose the engine if this app created it
    """
    settings: Settings = app.state.settings
    owns_engine = app.state.db_engine is None
    if owns_engine:
        app.state.db_engine = get_engine(settings.DATABASE_URL)

    engine = app.state.db_engine
    init_db(engine)
    app.state.db_session_factory = get_session_factory(engine)

    await purge_expired_tokens(app)

    app.state.audit = AuditRecorder(
        app.state.db_session_factory,
        max_queue=settings.AUDIT_QUEUE_SIZE,
        enabled=settings.AUDIT_LOG_ENABLED,
    )
    await app.state.audit.start()

    logger.info("startup_complete", env=settings.APP_ENV, version=settings.APP_VERSION)

    yield

    await app.state.audit.shutdown()
    if owns_engine:
        engine.dispose()
    logger.info("shutdown_complete")


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        engine: Pre-built engine (tests); created from DATABASE_URL when omitted
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Landing CMS API",
        description="Headless content-management API for landing pages",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.token_codec = TokenCodec.from_settings(settings)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_COST)
    app.state.lockout_policy = LockoutPolicy.from_settings(settings)
    app.state.auth_rate_limiter = RateLimiter.from_settings(settings) if settings.RATE_LIMIT_ENABLED else None
    app.state.audit = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "PUT", "PATCH"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Security middleware for request ids, logging and headers
    app.add_middleware(SecurityMiddleware)

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=500, content={"detail": "an internal error occurred"})

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(admin_users_router, prefix="/api/v1/admin")
    app.include_router(admin_audit_router, prefix="/api/v1/admin")

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers and local tooling."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
        }

    return app
