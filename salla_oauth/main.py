"""
Salla OAuth example application.

FastAPI application entry point. Run with:
    uvicorn salla_oauth.main:create_app --factory --port 8081
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from salla_oauth.config import Settings, get_settings
from salla_oauth.logging_config import configure_logging
from salla_oauth.middleware.logging import LoggingMiddleware
from salla_oauth.oauth import SallaStrategy, build_strategy
from salla_oauth.routes.auth import router as auth_router
from salla_oauth.routes.pages import router as pages_router
from salla_oauth.sentry_config import configure_sentry


def create_app(
    settings: Optional[Settings] = None,
    strategy: Optional[SallaStrategy] = None,
) -> FastAPI:
    """
    Build the example app.

    Raises ConfigurationError when the Salla credentials are missing.
    """
    settings = settings or get_settings()

    # Initialize logging first
    configure_logging(settings.LOG_LEVEL)

    # Initialize Sentry (if SENTRY_DSN is set)
    configure_sentry(settings)

    # Fail at startup, not on the first login
    strategy = strategy or build_strategy(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.strategy.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Example application for signing in with Salla",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.strategy = strategy

    # Add logging middleware FIRST (runs before other middleware)
    app.add_middleware(LoggingMiddleware)

    # Sessions hold the OAuth state and the signed-in user
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=not settings.DEBUG and settings.SALLA_CALLBACK_URL.startswith("https://"),
    )

    app.include_router(auth_router)
    app.include_router(pages_router)

    return app
