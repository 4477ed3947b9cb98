"""
Sentry configuration for error tracking.

Captures unhandled exceptions from the example app.
"""
import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration

from salla_oauth.config import Settings

logger = structlog.get_logger()

# Form and header fields that must never leave the process.
SENSITIVE_KEYS = {"client_secret", "access_token", "refresh_token", "code", "authorization"}


def configure_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry with the FastAPI integration.

    Returns False (and does nothing) when SENTRY_DSN is not set.
    """
    dsn = settings.SENTRY_DSN

    if not dsn:
        logger.warning("sentry_disabled", reason="SENTRY_DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
        ],
        before_send=scrub_event,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    logger.info("sentry_initialized", environment=settings.ENVIRONMENT)
    return True


def scrub_event(event, hint):
    """Blank out OAuth credentials and tokens in the captured request."""
    request = event.get("request") or {}
    for section in ("data", "headers", "cookies"):
        values = request.get(section)
        if isinstance(values, dict):
            for key in values:
                if key.lower() in SENSITIVE_KEYS:
                    values[key] = "[Filtered]"
    query = request.get("query_string")
    if isinstance(query, str) and ("code=" in query or "state=" in query):
        request["query_string"] = "[Filtered]"
    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.

    Usage:
        try:
            # some code
        except Exception:
            capture_exception()
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
