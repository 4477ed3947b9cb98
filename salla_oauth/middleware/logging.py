"""
Logging middleware for request/response logging.

Logs every HTTP request with timing and the signed-in merchant.
"""
import time
import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


def session_user_id(request: Request):
    """Salla user id from the session, or None (anonymous or no session)."""
    session = request.scope.get("session") or {}
    user = session.get("user")
    if isinstance(user, dict):
        return user.get("id")
    return None


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and context.

    Must sit inside SessionMiddleware. Adds: salla_user_id, route,
    method, duration_ms, status. The query string is never logged
    since the callback carries the code and state.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        request_logger = logger.bind(
            route=request.url.path,
            method=request.method,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            request_logger.error(
                "request_failed",
                salla_user_id=session_user_id(request),
                status_code=500,
                duration_ms=round(duration_ms, 2),
                error=str(e)
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        # Read after the handler so the callback's fresh login is included
        request_logger.info(
            "request_completed",
            salla_user_id=session_user_id(request),
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2)
        )

        return response
