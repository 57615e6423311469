"""Tests for API configuration."""

from api.config import APISettings


class TestAPISettings:
    """Tests for APISettings class."""

    def test_default_values(self, monkeypatch):
        """Should have sensible defaults."""
        for name in ("CLIXEN_HOST", "CLIXEN_PORT", "CLIXEN_DEBUG", "CLIXEN_RELOAD"):
            monkeypatch.delenv(name, raising=False)
        settings = APISettings(_env_file=None)
        assert settings.host == "0.0.0.0"
        assert settings.port == 8000
        assert settings.debug is False
        assert settings.reload is False

    def test_env_override(self, monkeypatch):
        """Should load prefixed environment variables."""
        monkeypatch.setenv("CLIXEN_PORT", "9000")
        monkeypatch.setenv("CLIXEN_DEBUG", "true")
        monkeypatch.setenv("CLIXEN_RELOAD", "true")
        settings = APISettings(_env_file=None)
        assert settings.port == 9000
        assert settings.debug is True
        assert settings.reload is True

    def test_unprefixed_variables_ignored(self, monkeypatch):
        monkeypatch.delenv("CLIXEN_PORT", raising=False)
        monkeypatch.setenv("PORT", "9999")
        assert APISettings(_env_file=None).port == 8000

    def test_cors_defaults(self):
        """Should have CORS defaults."""
        settings = APISettings(_env_file=None)
        assert "http://localhost:3000" in settings.cors_origins
        assert settings.cors_allow_credentials is True
        assert settings.cors_allow_methods == ["*"]
        assert settings.cors_allow_headers == ["*"]
