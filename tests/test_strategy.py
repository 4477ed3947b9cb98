"""
Tests for the Salla strategy: redirect, callback, verify.
"""
from urllib.parse import parse_qs, urlencode, urlparse

import pytest
from starlette.requests import Request

from conftest import PROFILE_URL, TOKEN_URL
from salla_oauth.exceptions import (
    AuthenticationFailedError,
    StateMismatchError,
    TokenExchangeError,
)
from salla_oauth.oauth import STATE_SESSION_KEY, SallaStrategy


def make_request(path: str = "/oauth/callback", query: dict | None = None, session: dict | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": urlencode(query or {}).encode(),
        "headers": [],
        "session": session if session is not None else {},
    }
    return Request(scope)


def test_redirect_stores_fresh_state(strategy):
    request = make_request("/oauth/redirect")

    response = strategy.authorize_redirect(request)

    assert response.status_code == 302
    query = parse_qs(urlparse(response.headers["location"]).query)
    state = request.session[STATE_SESSION_KEY]
    assert len(state) == 16
    assert query["state"] == [state]
    assert "show_dialog" not in query


def test_each_redirect_gets_its_own_state(strategy):
    first = make_request("/oauth/redirect")
    second = make_request("/oauth/redirect")

    strategy.authorize_redirect(first)
    strategy.authorize_redirect(second)

    assert first.session[STATE_SESSION_KEY] != second.session[STATE_SESSION_KEY]


def test_redirect_with_show_dialog(strategy):
    response = strategy.authorize_redirect(make_request("/oauth/redirect"), show_dialog=True)

    query = parse_qs(urlparse(response.headers["location"]).query)
    assert query["show_dialog"] == ["true"]


@pytest.mark.asyncio
async def test_authenticate_success(strategy, fake_salla):
    session = {STATE_SESSION_KEY: "S1"}
    request = make_request(query={"code": "auth-code", "state": "S1"}, session=session)

    result = await strategy.authenticate(request)

    assert result.access_token == "access-1"
    assert result.refresh_token == "refresh-1"
    assert result.expires_in == 1209600
    assert result.profile.id == 42
    assert result.user["name"] == "Ahmed"
    # State is single-use
    assert STATE_SESSION_KEY not in session
    assert len(fake_salla.calls_to(TOKEN_URL)) == 1
    assert len(fake_salla.calls_to(PROFILE_URL)) == 1


@pytest.mark.asyncio
async def test_state_mismatch_makes_no_token_call(strategy, fake_salla):
    request = make_request(query={"code": "auth-code", "state": "S2"}, session={STATE_SESSION_KEY: "S1"})

    with pytest.raises(StateMismatchError):
        await strategy.authenticate(request)

    assert fake_salla.requests == []


@pytest.mark.asyncio
async def test_missing_session_state_is_mismatch(strategy, fake_salla):
    request = make_request(query={"code": "auth-code", "state": "S1"})

    with pytest.raises(StateMismatchError):
        await strategy.authenticate(request)

    assert fake_salla.requests == []


@pytest.mark.asyncio
async def test_denied_consent(strategy, fake_salla):
    request = make_request(
        query={"error": "access_denied", "state": "S1"},
        session={STATE_SESSION_KEY: "S1"},
    )

    with pytest.raises(AuthenticationFailedError) as exc_info:
        await strategy.authenticate(request)

    assert not isinstance(exc_info.value, StateMismatchError)
    assert fake_salla.requests == []


@pytest.mark.asyncio
async def test_missing_code(strategy, fake_salla):
    request = make_request(query={"state": "S1"}, session={STATE_SESSION_KEY: "S1"})

    with pytest.raises(AuthenticationFailedError):
        await strategy.authenticate(request)

    assert fake_salla.requests == []


@pytest.mark.asyncio
async def test_token_failure_skips_profile(strategy, fake_salla):
    fake_salla.token_reply = (400, {"json": {"error": "invalid_grant"}})
    request = make_request(query={"code": "used", "state": "S1"}, session={STATE_SESSION_KEY: "S1"})

    with pytest.raises(TokenExchangeError):
        await strategy.authenticate(request)

    assert fake_salla.calls_to(PROFILE_URL) == []


@pytest.mark.asyncio
async def test_async_verify_callback(strategy_config, oauth_client):
    seen = {}

    async def verify(token, profile):
        seen["token"] = token
        return {"user_id": profile.id}

    strategy = SallaStrategy(strategy_config, verify=verify, client=oauth_client)
    request = make_request(query={"code": "auth-code", "state": "S1"}, session={STATE_SESSION_KEY: "S1"})

    result = await strategy.authenticate(request)

    assert result.user == {"user_id": 42}
    assert seen["token"].access_token == "access-1"


@pytest.mark.asyncio
async def test_verify_rejects_user(strategy_config, oauth_client):
    strategy = SallaStrategy(strategy_config, verify=lambda token, profile: None, client=oauth_client)
    request = make_request(query={"code": "auth-code", "state": "S1"}, session={STATE_SESSION_KEY: "S1"})

    with pytest.raises(AuthenticationFailedError):
        await strategy.authenticate(request)


@pytest.mark.asyncio
async def test_refresh(strategy, fake_salla):
    token = await strategy.refresh("refresh-1")

    assert token.access_token == "access-1"
    assert fake_salla.calls_to(TOKEN_URL)[0].method == "POST"
