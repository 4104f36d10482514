"""Tests for HappySettings"""

import pytest
from pydantic import ValidationError

from happybot.core.config import HappySettings

BASE = {"discord_token": "token", "database_url": "postgresql://user:pw@localhost/happy"}


def make_settings(**overrides):
    return HappySettings(_env_file=None, **{**BASE, **overrides})


def test_defaults(monkeypatch):
    for var in ("DEFAULT_TIMEZONE", "QUOTE_API_URL", "QUOTE_API_ENABLED", "LOG_LEVEL", "HEALTH_PORT"):
        monkeypatch.delenv(var, raising=False)
    settings = make_settings()
    assert settings.default_timezone == "Europe/Paris"
    assert settings.quote_api_url == "https://api.quotable.io"
    assert settings.quote_api_enabled is True
    assert settings.log_level == "INFO"
    assert settings.health_port == 8080


def test_database_url_must_be_postgres():
    with pytest.raises(ValidationError):
        make_settings(database_url="sqlite:///happy.db")
    assert make_settings(database_url="postgres://x/db").database_url == "postgres://x/db"


def test_invalid_log_level_defaults_to_info():
    assert make_settings(log_level="verbose").log_level == "INFO"
    assert make_settings(log_level="debug").log_level == "DEBUG"


def test_invalid_default_timezone_falls_back():
    assert make_settings(default_timezone="Mars/Base").default_timezone == "Europe/Paris"
    assert make_settings(default_timezone="Asia/Tokyo").default_timezone == "Asia/Tokyo"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "env-token")
    monkeypatch.setenv("DATABASE_URL", "postgresql://env/db")
    monkeypatch.setenv("QUOTE_API_ENABLED", "false")
    settings = HappySettings(_env_file=None)
    assert settings.discord_token == "env-token"
    assert settings.quote_api_enabled is False
