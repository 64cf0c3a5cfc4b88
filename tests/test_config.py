"""
Configuration tests.
"""

import pytest

from app.config import Settings, get_settings


def test_get_settings_returns_cached_settings() -> None:
    """get_settings returns one Settings instance until the cache is cleared."""
    settings = get_settings()
    assert isinstance(settings, Settings)
    assert get_settings() is settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "APP_NAME",
        "MIN_MATCH_SCORE",
        "MAX_PENDING_MATCHES",
        "ROTATION_CADENCE_DAYS",
        "MAX_CIRCLES_PER_RUN",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.app_name == "FounderCircles"
    assert settings.min_match_score == 40
    assert settings.max_pending_matches == 5
    assert settings.rotation_cadence_days == 90
    assert settings.max_circles_per_run == 20


def test_tuning_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MIN_MATCH_SCORE", "55")
    monkeypatch.setenv("MAX_PENDING_MATCHES", "2")
    monkeypatch.setenv("ROTATION_CADENCE_DAYS", "60")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.min_match_score == 55
    assert settings.max_pending_matches == 2
    assert settings.rotation_cadence_days == 60


def test_override_emails_are_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    """OVERRIDE_EMAILS is comma-separated; entries are trimmed and lower-cased."""
    monkeypatch.setenv("OVERRIDE_EMAILS", " Ops@Example.com, ,second@example.com ")
    get_settings.cache_clear()

    assert get_settings().override_emails == ["ops@example.com", "second@example.com"]


def test_generic_postgres_url_uses_psycopg(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db:5432/circles")
    get_settings.cache_clear()

    assert get_settings().database_url == "postgresql+psycopg://user:pw@db:5432/circles"


def test_sqlite_url_is_left_alone() -> None:
    assert get_settings().database_url == "sqlite://"
