"""
Salla OAuth 2.0 strategy.

SECURITY: This module handles OAuth authentication. A new ``state`` is
minted for every login attempt and kept in the request session; the
callback must echo it back before any token is requested.

Usage:
    strategy = SallaStrategy(settings.strategy_config(), verify=find_or_create_user)

    @router.get("/oauth/redirect")
    async def redirect(request: Request):
        return strategy.authorize_redirect(request)

    @router.get("/oauth/callback")
    async def callback(request: Request):
        result = await strategy.authenticate(request)
"""
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
import structlog
from starlette.requests import Request
from starlette.responses import RedirectResponse

from salla_oauth.config import Settings, StrategyConfig
from salla_oauth.exceptions import AuthenticationFailedError, StateMismatchError
from salla_oauth.models.profile import UserProfile
from salla_oauth.models.token import AuthResult, TokenResult
from salla_oauth.services.oauth_client import SallaOAuthClient, build_authorization_params
from salla_oauth.services.state_service import generate_state, states_match

logger = structlog.get_logger()

STATE_SESSION_KEY = "salla_oauth_state"

VerifyCallback = Callable[[TokenResult, UserProfile], Union[Any, Awaitable[Any]]]


class SallaStrategy:
    """Authenticates requests by delegating to Salla using OAuth 2.0."""

    name = "salla"

    def __init__(
        self,
        config: StrategyConfig,
        verify: Optional[VerifyCallback] = None,
        client: Optional[SallaOAuthClient] = None,
    ):
        self.config = config
        self.client = client or SallaOAuthClient(config)
        self._verify = verify

    @property
    def http(self) -> httpx.AsyncClient:
        return self.client.http

    async def aclose(self):
        await self.client.aclose()

    def authorization_params(self, options: Optional[dict] = None) -> dict:
        return build_authorization_params(options)

    def authorize_redirect(self, request: Request, **options) -> RedirectResponse:
        """Store a fresh state in the session and redirect to Salla."""
        state = generate_state(self.config.state_length)
        request.session[STATE_SESSION_KEY] = state

        url = self.client.authorization_url(state, **self.authorization_params(options))
        logger.info("authorization_redirect_issued", provider=self.name)
        return RedirectResponse(url=url, status_code=302)

    async def authenticate(self, request: Request) -> AuthResult:
        """
        Handle the provider callback.

        1. Reject provider errors (e.g. user denied consent)
        2. Check the echoed state against the one in the session
        3. Exchange the code for tokens
        4. Fetch the profile and hand both to the verify callback

        Raises:
            StateMismatchError: State missing or different; no token call is made
            AuthenticationFailedError: Denied consent, missing code, or verify rejected
            TokenExchangeError, ProfileFetchError, MalformedResponseError
        """
        query = request.query_params
        expected_state = request.session.pop(STATE_SESSION_KEY, None)

        if "error" in query:
            logger.warning("authorization_denied", error=query.get("error"))
            raise AuthenticationFailedError(
                query.get("error_description") or f"Authorization failed: {query['error']}"
            )

        if not states_match(expected_state, query.get("state")):
            logger.warning("state_mismatch", has_expected_state=expected_state is not None)
            raise StateMismatchError("OAuth state does not match the issued value")

        code = query.get("code")
        if not code:
            raise AuthenticationFailedError("Callback is missing the authorization code")

        token = await self.client.exchange_code_for_token(code)
        profile = await self.client.fetch_profile(token.access_token)
        user = await self._run_verify(token, profile)

        logger.info("authentication_succeeded", provider=self.name, user_id=profile.id)

        return AuthResult(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_in=token.expires_in,
            profile=profile,
            user=user,
        )

    async def refresh(self, refresh_token: str) -> TokenResult:
        return await self.client.refresh_access_token(refresh_token)

    async def _run_verify(self, token: TokenResult, profile: UserProfile) -> Any:
        if self._verify is None:
            return profile.model_dump(exclude_unset=True)

        user = self._verify(token, profile)
        if inspect.isawaitable(user):
            user = await user
        if user is None or user is False:
            raise AuthenticationFailedError("User was rejected by the verify callback")
        return user


def build_strategy(settings: Settings, verify: Optional[VerifyCallback] = None) -> SallaStrategy:
    """Create the strategy from application settings."""
    return SallaStrategy(settings.strategy_config(), verify=verify)
