"""
Tests for settings validation.
"""

from shared.config.settings import Settings


def test_development_defaults_are_valid():
    settings = Settings(environment="development")
    assert settings.validate_production_settings() == []


def test_production_requires_origins_and_no_debug():
    settings = Settings(environment="production", debug=True, allowed_origins="")

    errors = settings.validate_production_settings()

    assert any("DEBUG" in error for error in errors)
    assert any("ALLOWED_ORIGINS" in error for error in errors)


def test_non_positive_limits_are_reported():
    settings = Settings(ws_accept_timeout=0, ws_max_total_connections=0)

    errors = settings.validate_production_settings()

    assert "WS_ACCEPT_TIMEOUT must be positive" in errors
    assert "WS_MAX_TOTAL_CONNECTIONS must be positive" in errors
