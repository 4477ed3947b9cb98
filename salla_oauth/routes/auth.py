"""
Authentication routes for Salla OAuth.

/oauth/redirect starts the login, /oauth/callback finishes it. Any
failure in between sends the browser back to /login.

SECURITY: the access and refresh tokens are kept in Starlette's session
cookie, which is signed but NOT encrypted. Anyone holding the cookie can
read them. Keep tokens server-side (database, encrypted store) in a real
application.
"""
from typing import Optional

import structlog
from authlib.oauth2.rfc6749 import OAuth2Token
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from salla_oauth.dependencies.auth import (
    TOKEN_SESSION_KEY,
    USER_SESSION_KEY,
    SessionUser,
    get_current_user,
    get_optional_user,
    get_strategy,
)
from salla_oauth.exceptions import AuthenticationFailedError, SallaOAuthError
from salla_oauth.models.token import TokenResult
from salla_oauth.oauth import SallaStrategy
from salla_oauth.sentry_config import capture_exception
from salla_oauth.templating import templates

logger = structlog.get_logger()

router = APIRouter(tags=["Authentication"])


def session_token(token: TokenResult, previous_refresh_token: Optional[str] = None) -> dict:
    """
    Token dict to keep in the session, with an absolute expires_at.

    Keeps the previous refresh token when the provider did not rotate it.
    """
    oauth2_token = OAuth2Token.from_dict({
        "access_token": token.access_token,
        "token_type": token.token_type,
        "refresh_token": token.refresh_token or previous_refresh_token,
        "expires_in": token.expires_in,
    })
    return {key: value for key, value in oauth2_token.items() if value is not None}


@router.get("/oauth/redirect")
async def oauth_redirect(
    request: Request,
    show_dialog: bool = False,
    strategy: SallaStrategy = Depends(get_strategy),
):
    """
    Redirect the user to Salla to grant access.

    ?show_dialog=true forces the consent screen again.
    """
    return strategy.authorize_redirect(request, show_dialog=show_dialog)


@router.get("/oauth/callback", name="oauth_callback")
async def oauth_callback(
    request: Request,
    strategy: SallaStrategy = Depends(get_strategy),
):
    """
    Handle the Salla OAuth callback (server-side flow).
    """
    try:
        result = await strategy.authenticate(request)
    except AuthenticationFailedError as e:
        logger.warning("login_failed", error_type=type(e).__name__, error=str(e))
        return RedirectResponse(url="/login", status_code=303)
    except SallaOAuthError as e:
        # Provider-side failure, worth an alert
        logger.error("login_failed", error_type=type(e).__name__, error=str(e))
        capture_exception(e)
        return RedirectResponse(url="/login", status_code=303)

    request.session[USER_SESSION_KEY] = result.user
    request.session[TOKEN_SESSION_KEY] = session_token(
        TokenResult(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            expires_in=result.expires_in,
        )
    )
    return RedirectResponse(url="/", status_code=303)


@router.get("/login")
async def login(request: Request, user: Optional[SessionUser] = Depends(get_optional_user)):
    """Login page with the "Sign in with Salla" button."""
    return templates.TemplateResponse(
        request,
        "login.html",
        {"user": user, "is_login": user is not None},
    )


@router.get("/refresh-token")
async def refresh_token(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    strategy: SallaStrategy = Depends(get_strategy),
):
    """
    Get a new access token with the stored refresh token.
    """
    if not user.refresh_token:
        return templates.TemplateResponse(
            request,
            "token.html",
            {"token": None, "error": "No refresh token in session", "is_login": True},
            status_code=400,
        )

    try:
        token = await strategy.refresh(user.refresh_token)
    except SallaOAuthError as e:
        logger.warning("token_refresh_failed", error_type=type(e).__name__, error=str(e))
        return templates.TemplateResponse(
            request,
            "token.html",
            {"token": None, "error": str(e), "is_login": True},
            status_code=502,
        )

    request.session[TOKEN_SESSION_KEY] = session_token(token, previous_refresh_token=user.refresh_token)
    return templates.TemplateResponse(
        request,
        "token.html",
        {"token": request.session[TOKEN_SESSION_KEY], "error": None, "is_login": True},
    )


@router.get("/logout")
async def logout(request: Request):
    """
    Clear the session and go back home.
    """
    request.session.clear()
    return RedirectResponse(url="/", status_code=303)
