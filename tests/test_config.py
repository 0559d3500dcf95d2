"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from chainpulse.config import Settings, get_settings, reset_settings_cache


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for name in (
        "ANALYTICS_DATABASE_URL",
        "ANALYTICS_MAX_RECORDS",
        "ANALYTICS_DEFAULT_QUERY_LIMIT",
        "ANALYTICS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.database_url == "sqlite+aiosqlite:///./data/analytics.db"
    assert settings.max_records == 50_000
    assert settings.default_query_limit == 100
    assert settings.stats_query_limit == 10_000
    assert settings.top_entities_limit == 10
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ANALYTICS_MAX_RECORDS", "25")
    monkeypatch.setenv("ANALYTICS_LOG_LEVEL", "DEBUG")
    settings = get_settings()
    assert settings.max_records == 25
    assert settings.log_level == "DEBUG"
    assert get_settings() is settings


def test_reset_settings_cache(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("ANALYTICS_DEFAULT_QUERY_LIMIT", "7")
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings().default_query_limit == 7


def test_max_records_must_be_positive(monkeypatch):
    monkeypatch.setenv("ANALYTICS_MAX_RECORDS", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
