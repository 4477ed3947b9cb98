"""
Shared fixtures: a fake Salla provider served through httpx.MockTransport.
"""
from urllib.parse import parse_qs

import httpx
import pytest

from salla_oauth.config import Settings, build_strategy_config
from salla_oauth.oauth import SallaStrategy
from salla_oauth.services.oauth_client import SallaOAuthClient

TOKEN_URL = "https://accounts.salla.sa/oauth2/token"
PROFILE_URL = "https://accounts.salla.sa/oauth2/user/info"
API_BASE_URL = "https://api.salla.dev/admin/v2"

PROFILE_DATA = {
    "id": 42,
    "name": "Ahmed",
    "email": "ahmed@example.com",
    "merchant": {"id": 7, "name": "Ahmed Store"},
}


def form_of(request: httpx.Request) -> dict:
    """Decode an x-www-form-urlencoded request body into a flat dict."""
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


class FakeSalla:
    """
    Records every request and answers the way Salla does.

    Replies are ``(status_code, response kwargs)`` tuples, or an exception
    to raise. Override ``token_reply`` / ``profile_reply`` per test.
    """

    def __init__(self):
        self.requests = []
        self.token_reply = (
            200,
            {
                "json": {
                    "access_token": "access-1",
                    "refresh_token": "refresh-1",
                    "expires_in": 1209600,
                    "token_type": "bearer",
                    "scope": "offline_access",
                }
            },
        )
        self.profile_reply = (200, {"json": {"status": 200, "success": True, "data": PROFILE_DATA}})
        self.api_replies = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]
        if url == TOKEN_URL:
            reply = self.token_reply
        elif url == PROFILE_URL:
            reply = self.profile_reply
        else:
            reply = self.api_replies.get(url, (404, {"json": {"error": "not_found"}}))

        if isinstance(reply, Exception):
            raise reply
        status_code, kwargs = reply
        return httpx.Response(status_code, **kwargs)

    def calls_to(self, url: str) -> list:
        return [request for request in self.requests if str(request.url).split("?")[0] == url]


@pytest.fixture
def fake_salla():
    return FakeSalla()


@pytest.fixture
def http_client(fake_salla):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_salla))


@pytest.fixture
def strategy_config():
    return build_strategy_config(
        client_id="client-id",
        client_secret="client-secret",
        callback_url="http://localhost:8081/oauth/callback",
    )


@pytest.fixture
def oauth_client(strategy_config, http_client):
    return SallaOAuthClient(strategy_config, http_client=http_client)


@pytest.fixture
def strategy(strategy_config, oauth_client):
    return SallaStrategy(strategy_config, client=oauth_client)


@pytest.fixture
def settings():
    return Settings(
        SALLA_CLIENT_ID="client-id",
        SALLA_CLIENT_SECRET="client-secret",
        SALLA_CALLBACK_URL="http://localhost:8081/oauth/callback",
        SESSION_SECRET_KEY="test-secret",
        SALLA_API_BASE_URL=API_BASE_URL,
    )
