"""
API server configuration using Pydantic Settings.

Only settings of the HTTP server itself live here (prefix CLIXEN_).
Integration settings (Supabase, Stripe, n8n, Telegram) are in shared.config.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CLIXEN_",
        case_sensitive=False,
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]


def get_settings() -> APISettings:
    """Get settings instance."""
    return APISettings()
