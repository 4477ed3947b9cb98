"""
Authentication dependencies for FastAPI.

The signed-in user and their tokens live in the session cookie, which is
signed but not encrypted (see routes/auth.py).
"""
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from salla_oauth.oauth import SallaStrategy

USER_SESSION_KEY = "user"
TOKEN_SESSION_KEY = "token"


class SessionUser(BaseModel):
    """User and tokens stored in the session after login."""
    profile: Dict[str, Any]
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


def get_strategy(request: Request) -> SallaStrategy:
    """The strategy created at startup."""
    return request.app.state.strategy


def get_optional_user(request: Request) -> Optional[SessionUser]:
    """Session user, or None when nobody is signed in."""
    profile = request.session.get(USER_SESSION_KEY)
    token = request.session.get(TOKEN_SESSION_KEY)
    if profile is None or not token:
        return None
    return SessionUser(
        profile=profile,
        access_token=token["access_token"],
        refresh_token=token.get("refresh_token"),
        expires_at=token.get("expires_at"),
    )


def get_current_user(
    user: Optional[SessionUser] = Depends(get_optional_user)
) -> SessionUser:
    """
    Dependency that requires a signed-in user.

    Redirects to the login page otherwise.

    Usage:
        @router.get("/account")
        async def account(user: SessionUser = Depends(get_current_user)):
            ...
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            detail="Login required",
            headers={"Location": "/login"},
        )
    return user
