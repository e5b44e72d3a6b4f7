"""Unit tests for configuration and settings."""
from common.config import Settings, get_settings, reset_settings_cache


class TestSettings:
    """Test configuration management."""

    def test_get_settings_returns_same_instance(self):
        assert get_settings() is get_settings()

    def test_reset_settings_cache(self):
        settings1 = get_settings()
        reset_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("JWT_ALGORITHM", "HS512")
        monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "5")
        monkeypatch.setenv("RATE_LIMITING_ENABLED", "true")

        settings = Settings()

        assert settings.jwt_algorithm == "HS512"
        assert settings.access_token_expire_minutes == 5
        assert settings.rate_limiting_enabled is True

    def test_test_environment_is_applied(self):
        settings = get_settings()

        assert settings.database_url.startswith("sqlite")
        assert settings.rate_limiting_enabled is False

    def test_service_ports_configuration(self):
        settings = get_settings()

        assert settings.users_service_port == 8001
        assert settings.bookings_service_port == 8003

    def test_cors_origins_configuration(self):
        settings = get_settings()

        assert isinstance(settings.cors_origins, list)
        assert len(settings.cors_origins) > 0
