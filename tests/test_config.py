"""Tests for environment-based settings and ApiClientOptions.from_env."""

import sys
import os
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgwire_core.config import DEFAULT_API_ROOT, DEFAULT_TIMEOUT_SECONDS, load_settings
from tgwire_sdk.options import ApiClientOptions

_VARS = ("TGWIRE_BOT_TOKEN", "TGWIRE_API_ROOT", "TGWIRE_ENVIRONMENT", "TGWIRE_TIMEOUT_SECONDS", "TGWIRE_SENSITIVE_LOGS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("tgwire_core.config.load_dotenv"):
        yield


class TestLoadSettings:
    """Validate parsing of TGWIRE_* variables."""

    def test_defaults(self) -> None:
        settings = load_settings()
        assert settings.bot_token is None
        assert settings.api_root == DEFAULT_API_ROOT
        assert settings.environment == "prod"
        assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert settings.sensitive_logs is False

    def test_all_values(self, monkeypatch) -> None:
        monkeypatch.setenv("TGWIRE_BOT_TOKEN", "1:a")
        monkeypatch.setenv("TGWIRE_API_ROOT", "http://localhost:8081")
        monkeypatch.setenv("TGWIRE_ENVIRONMENT", "TEST")
        monkeypatch.setenv("TGWIRE_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("TGWIRE_SENSITIVE_LOGS", "yes")
        settings = load_settings()
        assert settings.bot_token == "1:a"
        assert settings.api_root == "http://localhost:8081"
        assert settings.environment == "test"
        assert settings.timeout_seconds == 12.5
        assert settings.sensitive_logs is True

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_timeout_falls_back(self, monkeypatch, raw: str) -> None:
        monkeypatch.setenv("TGWIRE_TIMEOUT_SECONDS", raw)
        assert load_settings().timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_unknown_environment_falls_back(self, monkeypatch) -> None:
        monkeypatch.setenv("TGWIRE_ENVIRONMENT", "staging")
        assert load_settings().environment == "prod"

    def test_dotenv_path_forwarded(self) -> None:
        with patch("tgwire_core.config.load_dotenv") as mock_load:
            load_settings("/etc/bot.env")
        mock_load.assert_called_once_with("/etc/bot.env")


class TestOptionsFromEnv:
    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TGWIRE_API_ROOT", "http://localhost:8081")
        monkeypatch.setenv("TGWIRE_TIMEOUT_SECONDS", "20")
        options = ApiClientOptions.from_env()
        assert options.api_root == "http://localhost:8081"
        assert options.timeout_seconds == 20

    def test_overrides_win(self, monkeypatch) -> None:
        monkeypatch.setenv("TGWIRE_ENVIRONMENT", "test")
        options = ApiClientOptions.from_env(environment="prod", sensitive_logs=True)
        assert options.environment == "prod"
        assert options.sensitive_logs is True

    def test_trailing_slash_from_env_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("TGWIRE_API_ROOT", "http://localhost:8081/")
        with pytest.raises(ValueError):
            ApiClientOptions.from_env()
