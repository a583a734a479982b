"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (health, client API, back office)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting, signed-cookie sessions)
- Logging configuration
- Schema bootstrap and seeding at start-up

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from portal.core.config import settings
from portal.infrastructure.database.engine import get_engine
from portal.infrastructure.database.migrations import bootstrap_schema
from portal.infrastructure.database.seed import seed_database
from portal.infrastructure.security.passwords import BcryptPasswordHasher
from portal.interfaces.backoffice.router import router as backoffice_router
from portal.interfaces.brokerage.router import router as brokerage_router
from portal.interfaces.health import router as health_router
from portal.shared.errors.handlers import register_error_handlers
from portal.shared.logging import configure_logging
from portal.shared.security.headers import SecurityHeadersMiddleware
from portal.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: bootstrap the schema and seed initial data."""
    engine = get_engine()
    report = bootstrap_schema(engine)
    logger.info(
        "Schema ready (%s): %d tables created, %d already present",
        report.dialect,
        len(report.created_tables),
        len(report.existing_tables),
    )
    if settings.seed_on_startup:
        seed_database(engine, BcryptPasswordHasher(rounds=settings.bcrypt_rounds))
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.session_https_only)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age_seconds,
        https_only=settings.session_https_only,
        same_site="lax",
    )

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(brokerage_router, prefix="/api/v1")
    app.include_router(backoffice_router, prefix="/api/v1")

    return app


app = create_app()
