"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Repositories are Supabase-backed when SUPABASE_URL and
SUPABASE_SERVICE_ROLE_KEY are set, and in-memory otherwise.
"""

import logging
from typing import TYPE_CHECKING, Optional

from fastapi import Depends

from shared.config import get_settings
from shared.database import get_supabase_client, is_supabase_configured

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth import AccountService, IAuthService, IIdentityProvider, SessionService
    from modules.billing import IBillingService
    from modules.profiles import IProfileService
    from modules.telegram import TelegramBotClient, TelegramBotService, TelegramLinkingService
    from modules.usage import IAuditService, IUsageService
    from modules.workflows import N8nClient

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset_container() to start over in tests.
    """

    def __init__(self, use_supabase: Optional[bool] = None) -> None:
        self._use_supabase = is_supabase_configured() if use_supabase is None else use_supabase
        self._profiles: "IProfileService | None" = None
        self._sessions: "SessionService | None" = None
        self._auth: "IAuthService | None" = None
        self._identity: "IIdentityProvider | None" = None
        self._usage: "IUsageService | None" = None
        self._audit: "IAuditService | None" = None
        self._linking: "TelegramLinkingService | None" = None
        self._billing: "IBillingService | None" = None
        self._n8n: "N8nClient | None" = None
        self._telegram_bot: "TelegramBotClient | None" = None

    @property
    def uses_supabase(self) -> bool:
        return self._use_supabase

    @property
    def profiles(self) -> "IProfileService":
        """Get the profile service instance."""
        if self._profiles is None:
            from modules.profiles import (
                InMemoryProfileRepository,
                ProfileService,
                SupabaseProfileRepository,
            )
            repository = (
                SupabaseProfileRepository(get_supabase_client())
                if self._use_supabase
                else InMemoryProfileRepository()
            )
            self._profiles = ProfileService(repository)
        return self._profiles

    @property
    def sessions(self) -> "SessionService":
        """Get the dashboard session service instance."""
        if self._sessions is None:
            from modules.auth import (
                InMemorySessionRepository,
                SessionService,
                SupabaseSessionRepository,
            )
            repository = (
                SupabaseSessionRepository(get_supabase_client())
                if self._use_supabase
                else InMemorySessionRepository()
            )
            self._sessions = SessionService(repository)
        return self._sessions

    @property
    def auth(self) -> "IAuthService":
        """Get the auth service instance."""
        if self._auth is None:
            from modules.auth.service import get_auth_service
            self._auth = get_auth_service()
        return self._auth

    @property
    def identity(self) -> "IIdentityProvider":
        """Get the identity provider (Supabase Auth)."""
        if self._identity is None:
            from modules.auth.identity import SupabaseIdentityProvider
            self._identity = SupabaseIdentityProvider()
        return self._identity

    @property
    def usage(self) -> "IUsageService":
        """Get the usage service instance."""
        if self._usage is None:
            from modules.usage import SupabaseUsageService, UsageService
            if self._use_supabase:
                self._usage = SupabaseUsageService(get_supabase_client(), self.profiles)
            else:
                self._usage = UsageService(self.profiles)
        return self._usage

    @property
    def audit(self) -> "IAuditService":
        """Get the audit log service instance."""
        if self._audit is None:
            from modules.usage import AuditService, SupabaseAuditService
            self._audit = (
                SupabaseAuditService(get_supabase_client())
                if self._use_supabase
                else AuditService()
            )
        return self._audit

    @property
    def linking(self) -> "TelegramLinkingService":
        """Get the Telegram linking service instance."""
        if self._linking is None:
            from modules.telegram import (
                InMemoryLinkingTokenRepository,
                SupabaseLinkingTokenRepository,
                TelegramLinkingService,
            )
            repository = (
                SupabaseLinkingTokenRepository(get_supabase_client())
                if self._use_supabase
                else InMemoryLinkingTokenRepository()
            )
            self._linking = TelegramLinkingService(self.profiles, self.audit, repository)
        return self._linking

    @property
    def billing(self) -> "IBillingService":
        """Get the billing service instance."""
        if self._billing is None:
            from modules.billing import BillingService
            self._billing = BillingService(self.profiles)
        return self._billing

    @property
    def n8n(self) -> "N8nClient | None":
        """The n8n client, or None when N8N_BASE_URL/N8N_API_KEY are unset."""
        settings = get_settings()
        if self._n8n is None and settings.n8n_base_url and settings.n8n_api_key:
            from modules.workflows import N8nClient
            self._n8n = N8nClient()
        return self._n8n

    @property
    def telegram_bot(self) -> "TelegramBotClient | None":
        """The Bot API client, or None when TELEGRAM_BOT_TOKEN is unset."""
        if self._telegram_bot is None and get_settings().telegram_bot_token:
            from modules.telegram import TelegramBotClient
            self._telegram_bot = TelegramBotClient()
        return self._telegram_bot

    async def aclose(self) -> None:
        """Close the HTTP clients."""
        if self._n8n is not None:
            await self._n8n.aclose()
        if self._telegram_bot is not None:
            await self._telegram_bot.aclose()


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_auth_service() -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_profile_service() -> "IProfileService":
    """FastAPI dependency for profile service."""
    return get_container().profiles


def get_session_service() -> "SessionService":
    """FastAPI dependency for session service."""
    return get_container().sessions


def get_identity_provider() -> "IIdentityProvider":
    """FastAPI dependency for the identity provider."""
    return get_container().identity


def get_account_service(
    identity: "IIdentityProvider" = Depends(get_identity_provider),
    profiles: "IProfileService" = Depends(get_profile_service),
    sessions: "SessionService" = Depends(get_session_service),
) -> "AccountService":
    """FastAPI dependency for account flows."""
    from modules.auth import AccountService
    return AccountService(identity, profiles, sessions)


def get_usage_service() -> "IUsageService":
    """FastAPI dependency for usage service."""
    return get_container().usage


def get_audit_service() -> "IAuditService":
    """FastAPI dependency for audit service."""
    return get_container().audit


def get_linking_service() -> "TelegramLinkingService":
    """FastAPI dependency for Telegram linking service."""
    return get_container().linking


def get_billing_service() -> "IBillingService":
    """FastAPI dependency for billing service."""
    return get_container().billing


def get_n8n_client() -> "N8nClient | None":
    """FastAPI dependency for the n8n client."""
    return get_container().n8n


def get_telegram_bot() -> "TelegramBotClient | None":
    """FastAPI dependency for the Bot API client."""
    return get_container().telegram_bot


def get_bot_service(
    bot: "TelegramBotClient | None" = Depends(get_telegram_bot),
    linking: "TelegramLinkingService" = Depends(get_linking_service),
    usage: "IUsageService" = Depends(get_usage_service),
    audit: "IAuditService" = Depends(get_audit_service),
    n8n: "N8nClient | None" = Depends(get_n8n_client),
) -> "TelegramBotService | None":
    """FastAPI dependency for update handling; None without a bot token."""
    if bot is None:
        return None
    from modules.telegram import TelegramBotService
    return TelegramBotService(bot, linking, usage, audit, n8n)
