from __future__ import annotations

import pytest

from servicecenter.core.config import Settings


def test_production_missing_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "production")
    for key in ["SUPABASE_URL", "SUPABASE_KEY"]:
        monkeypatch.delenv(key, raising=False)

    with pytest.raises(ValueError) as excinfo:
        Settings()

    message = str(excinfo.value)
    for expected in ["SUPABASE_URL", "SUPABASE_KEY"]:
        assert expected in message


def test_production_allows_when_env_complete(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "Production")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co/")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings()
    assert settings.env == "production"
    assert settings.log_level == "DEBUG"
    assert settings.supabase.is_configured
    assert settings.supabase.rest_url == "https://example.supabase.co/rest/v1"
    assert settings.supabase.auth_url == "https://example.supabase.co/auth/v1"


def test_development_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ["ENV", "SUPABASE_URL", "SUPABASE_KEY", "VEHICLE_TYPES", "CHART_COLORS", "ANALYTICS_CACHE_TTL"]:
        monkeypatch.delenv(key, raising=False)

    settings = Settings()
    assert settings.env == "development"
    assert not settings.supabase.is_configured
    assert settings.business.vehicle_types == ["bike", "car"]
    assert settings.business.upcoming_window_days == 30
    assert settings.analytics.chart_colors == ["#0088FE", "#00C49F", "#FFBB28", "#FF8042"]
    assert settings.analytics.cache_ttl_seconds == 300


def test_lists_can_be_overridden_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_TYPES", '["bike"]')
    monkeypatch.setenv("CHART_COLORS", '["#111111", "#222222"]')

    settings = Settings()
    assert settings.business.vehicle_types == ["bike"]
    assert settings.analytics.chart_colors == ["#111111", "#222222"]


def test_empty_vehicle_types_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_TYPES", "[]")

    with pytest.raises(ValueError) as excinfo:
        Settings()

    assert "VEHICLE_TYPES" in str(excinfo.value)
