"""
Centralized configuration for the Clixen backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced (e.g., STRIPE_*, SUPABASE_*, N8N_*).
Secrets never have defaults: an unset key means the integration is disabled.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Clixen AI API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""

    # Sessions (web dashboard cookie)
    session_cookie_name: str = "clixen_session"
    session_ttl_hours: int = 24 * 7
    session_cookie_secure: bool = False

    # Trial and quota
    trial_duration_days: int = 7
    trial_quota: int = 50
    free_quota: int = 50
    trial_activation_window_hours: int = 24

    # n8n
    n8n_base_url: str = ""
    n8n_api_key: str = ""
    n8n_timeout: float = 30.0

    # Telegram
    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""
    telegram_bot_username: str = "clixen_bot"
    telegram_linking_token_ttl_minutes: int = 10

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_starter: str = ""
    stripe_price_pro: str = ""
    stripe_price_enterprise: str = ""

    # Frontend URLs (for redirects and bot messages)
    frontend_url: str = "http://localhost:3000"

    # Feature Flags
    enable_usage_tracking: bool = True
    enable_billing: bool = True


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
