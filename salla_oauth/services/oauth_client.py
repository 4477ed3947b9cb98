"""
Salla OAuth 2.0 client.

Wraps Authlib's generic authorization-code helpers and an httpx client
behind the few calls the strategy needs: build the authorization URL,
exchange a code (or refresh token) for tokens, fetch the user profile.

SECURITY: client_secret and tokens must never be logged.
"""
from typing import Any, Dict, List, Mapping, Optional

import httpx
import structlog
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri

from salla_oauth.config import StrategyConfig
from salla_oauth.exceptions import (
    MalformedResponseError,
    TokenExchangeError,
    TransportError,
)
from salla_oauth.models.profile import UserProfile
from salla_oauth.models.token import TokenResult
from salla_oauth.services.http_client import parse_json, parse_json_object, send
from salla_oauth.services.profile_service import ProfileService

logger = structlog.get_logger()

AUTHORIZATION_CODE = "authorization_code"
REFRESH_TOKEN = "refresh_token"


def build_authorization_params(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Extra query parameters for the authorization redirect.

    ``show_dialog`` forces the consent screen even when the user has
    already approved the app. Unknown options are ignored.
    """
    params: Dict[str, Any] = {}
    if not options:
        return params

    show_dialog = options.get("show_dialog", options.get("showDialog"))
    if isinstance(show_dialog, str):
        show_dialog = show_dialog.strip().lower() in ("1", "true", "yes")
    if show_dialog:
        params["show_dialog"] = True

    return params


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else ""
    return value


class SallaOAuthClient:
    """OAuth2 client for accounts.salla.sa."""

    def __init__(self, config: StrategyConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)
        self.profiles = ProfileService(config.user_profile_url, self._http)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        """Close the underlying httpx client if we created it."""
        if self._owns_client:
            await self._http.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    def authorization_url(self, state: str, scope: Optional[List[str]] = None, **params) -> str:
        """
        URL to send the browser to.

        Boolean params are written as ``true``; falsy params are dropped.
        """
        scopes = self.config.scope if scope is None else scope
        extra = {key: _query_value(value) for key, value in params.items()}
        return prepare_grant_uri(
            self.config.authorization_url,
            self.config.client_id,
            "code",
            redirect_uri=self.config.callback_url,
            scope=self.config.scope_separator.join(scopes) or None,
            state=state,
            **extra,
        )

    async def exchange_code_for_token(
        self,
        code: str,
        params: Optional[Mapping[str, Any]] = None,
        grant_type: str = AUTHORIZATION_CODE,
    ) -> TokenResult:
        """
        Exchange an authorization code or refresh token at the token endpoint.

        Args:
            code: Authorization code, or refresh token when grant_type is
                "refresh_token"
            params: Extra form fields to send
            grant_type: "authorization_code" or "refresh_token"

        Returns:
            TokenResult with refresh_token removed from raw_extras

        Raises:
            TokenExchangeError: Provider unreachable or grant rejected
            MalformedResponseError: Body is not a JSON object with an access_token
        """
        form: Dict[str, Any] = dict(params or {})
        grant_type = form.pop("grant_type", None) or grant_type
        code_param = REFRESH_TOKEN if grant_type == REFRESH_TOKEN else "code"

        form["grant_type"] = grant_type
        form[code_param] = code
        if grant_type == AUTHORIZATION_CODE:
            form.setdefault("redirect_uri", self.config.callback_url)
        form["client_id"] = self.config.client_id
        form["client_secret"] = self.config.client_secret

        log = logger.bind(grant_type=grant_type, token_url=self.config.token_url)

        try:
            response = await send(
                self._http,
                "POST",
                self.config.token_url,
                data=form,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
            )
        except TransportError as exc:
            log.error("token_exchange_failed", reason="transport")
            raise TokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if not response.is_success:
            error, description = _error_fields(response)
            log.error(
                "token_exchange_failed",
                status_code=response.status_code,
                error=error,
            )
            raise TokenExchangeError(
                f"Token endpoint returned {response.status_code}"
                + (f": {error}" if error else ""),
                status_code=response.status_code,
                error=error,
                description=description,
            )

        results = parse_json_object(response)

        if "error" in results:
            log.error("token_exchange_failed", status_code=response.status_code, error=results["error"])
            raise TokenExchangeError(
                f"Token endpoint rejected the grant: {results['error']}",
                status_code=response.status_code,
                error=str(results["error"]),
                description=results.get("error_description"),
            )

        access_token = results.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise MalformedResponseError(
                "Token endpoint response has no access_token string",
                body=response.text[:500],
            )

        refresh_token = results.pop("refresh_token", None)
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise MalformedResponseError(
                "Token endpoint returned a non-string refresh_token",
                body=response.text[:500],
            )
        expires_in = _as_int(results.get("expires_in"))

        log.info(
            "token_exchanged",
            expires_in=expires_in,
            has_refresh_token=refresh_token is not None,
        )

        return TokenResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
            raw_extras=results,
        )

    async def refresh_access_token(
        self,
        refresh_token: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TokenResult:
        """
        Get a new access token with the refresh-token grant.

        If Salla does not rotate the refresh token, the result carries
        refresh_token=None and the caller keeps its current one.
        """
        return await self.exchange_code_for_token(refresh_token, params, grant_type=REFRESH_TOKEN)

    async def fetch_profile(self, access_token: str) -> UserProfile:
        return await self.profiles.fetch_profile(access_token)


def _error_fields(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    """Pull OAuth error/error_description out of an error body, if it is JSON."""
    try:
        payload = parse_json(response)
    except MalformedResponseError:
        return None, None
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    description = payload.get("error_description")
    # Salla sometimes nests the error object
    if isinstance(error, dict):
        description = error.get("message") or description
        error = error.get("code")
    return (
        str(error) if error is not None else None,
        str(description) if description is not None else None,
    )


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
