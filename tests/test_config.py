"""
Tests for strategy configuration.
"""
import pytest
from pydantic import ValidationError

from salla_oauth.config import (
    SALLA_AUTHORIZATION_URL,
    SALLA_TOKEN_URL,
    SALLA_USER_PROFILE_URL,
    Settings,
    build_strategy_config,
)
from salla_oauth.exceptions import ConfigurationError
from salla_oauth.oauth import build_strategy


def test_defaults(strategy_config):
    assert strategy_config.authorization_url == SALLA_AUTHORIZATION_URL
    assert strategy_config.token_url == SALLA_TOKEN_URL
    assert strategy_config.user_profile_url == SALLA_USER_PROFILE_URL
    assert strategy_config.scope_separator == " "
    assert strategy_config.scope == ["offline_access"]


def test_config_is_immutable(strategy_config):
    with pytest.raises(ValidationError):
        strategy_config.client_id = "other"


def test_url_overrides():
    config = build_strategy_config(
        client_id="id",
        client_secret="secret",
        callback_url="https://example.net/oauth/callback",
        token_url="https://sandbox.example.net/token",
        user_profile_url=None,
    )
    assert config.token_url == "https://sandbox.example.net/token"
    assert config.user_profile_url == SALLA_USER_PROFILE_URL


@pytest.mark.parametrize("field", ["client_id", "client_secret"])
def test_missing_credentials(field):
    options = {"client_id": "id", "client_secret": "secret", "callback_url": "https://example.net/cb"}
    options[field] = "  "

    with pytest.raises(ConfigurationError):
        build_strategy_config(**options)


def test_relative_callback_url():
    with pytest.raises(ConfigurationError):
        build_strategy_config(client_id="id", client_secret="secret", callback_url="/oauth/callback")


def test_settings_without_credentials_fail_at_startup():
    settings = Settings(SALLA_CLIENT_ID="", SALLA_CLIENT_SECRET="")

    with pytest.raises(ConfigurationError):
        build_strategy(settings)


def test_settings_scope_split(settings):
    settings = settings.model_copy(update={"SALLA_SCOPE": "offline_access orders.read"})

    assert settings.strategy_config().scope == ["offline_access", "orders.read"]
