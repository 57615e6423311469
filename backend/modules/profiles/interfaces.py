"""
Profile module interfaces.

Other modules depend on IProfileService. Repositories implement
IProfileRepository so the service runs against memory or Supabase.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import Profile, SubscriptionTier


@runtime_checkable
class IProfileRepository(Protocol):
    """Storage contract for the profiles table."""

    def insert(self, profile: Profile) -> Profile:
        """Insert a profile; raises ProfileAlreadyExistsError on a unique clash."""
        ...

    def get_by_auth_user_id(self, auth_user_id: str) -> Optional[Profile]:
        ...

    def get_by_email(self, email: str) -> Optional[Profile]:
        ...

    def get_by_telegram_chat_id(self, chat_id: str) -> Optional[Profile]:
        ...

    def get_by_stripe_customer_id(self, customer_id: str) -> Optional[Profile]:
        ...

    def update(self, auth_user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        """Apply column updates; returns the updated profile or None if missing."""
        ...

    def increment_quota(self, auth_user_id: str, amount: int, now: datetime) -> bool:
        """Add to quota_used only if it stays within quota_limit."""
        ...


@runtime_checkable
class IProfileService(Protocol):
    """
    Interface for profile operations.

    The auth, telegram, usage and billing modules use this to read
    and mutate user records.
    """

    def now(self) -> datetime:
        """The service clock (aware UTC)."""
        ...

    async def create_profile(
        self,
        auth_user_id: str,
        email: str,
        full_name: Optional[str] = None,
    ) -> Profile:
        """
        Create a profile with free-tier defaults and a 7-day trial.

        Raises:
            ProfileAlreadyExistsError: If the user or email already has a profile
        """
        ...

    async def get_profile(self, auth_user_id: str) -> Profile:
        """
        Raises:
            ProfileNotFoundError: If the user has no profile
        """
        ...

    async def find_by_email(self, email: str) -> Optional[Profile]:
        ...

    async def find_by_telegram_chat_id(self, chat_id: str) -> Optional[Profile]:
        ...

    async def email_exists(self, email: str) -> bool:
        ...

    async def record_login(self, auth_user_id: str) -> Profile:
        ...

    async def consume_quota(self, auth_user_id: str, amount: int = 1) -> bool:
        ...

    async def find_by_stripe_customer_id(self, customer_id: str) -> Optional[Profile]:
        ...

    async def touch_activity(self, auth_user_id: str) -> Profile:
        ...

    async def reset_quota(self, auth_user_id: str) -> Profile:
        ...

    async def start_trial(self, auth_user_id: str) -> Profile:
        """
        Raises:
            TrialNotAvailableError: If the user is not eligible
        """
        ...

    async def set_tier(
        self,
        auth_user_id: str,
        tier: SubscriptionTier,
        quota_limit: int,
        **fields: Any,
    ) -> Profile:
        ...

    async def update_billing(self, auth_user_id: str, **fields: Any) -> Profile:
        ...

    async def set_telegram_link(
        self,
        auth_user_id: str,
        chat_id: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Profile:
        ...

    async def clear_telegram_link(self, auth_user_id: str) -> Profile:
        ...
