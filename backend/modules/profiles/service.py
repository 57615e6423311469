"""
Profile service implementation.

Owns every mutation of the profiles table: signup defaults, logins,
quota consumption, trials, Stripe plan changes and Telegram linking.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from shared.config import get_settings
from .exceptions import (
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    TrialNotAvailableError,
)
from .interfaces import IProfileRepository
from .models import Profile, SubscriptionTier
from .repository import InMemoryProfileRepository
from . import trial

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class ProfileService:
    """
    Profile operations over a profile repository.

    Uses InMemoryProfileRepository when no repository is given.
    """

    def __init__(
        self,
        repository: Optional[IProfileRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings()
        self._repo = repository or InMemoryProfileRepository()
        self._now = clock or utcnow
        self._free_quota = settings.free_quota
        self._trial_days = settings.trial_duration_days
        self._trial_quota = settings.trial_quota
        self._activation_window_hours = settings.trial_activation_window_hours

    def now(self) -> datetime:
        return self._now()

    # -------------------------------------------------------------------------
    # Creation and lookup
    # -------------------------------------------------------------------------

    async def create_profile(
        self,
        auth_user_id: str,
        email: str,
        full_name: Optional[str] = None,
    ) -> Profile:
        email = normalize_email(email)
        if self._repo.get_by_auth_user_id(auth_user_id) is not None:
            raise ProfileAlreadyExistsError("auth_user_id", auth_user_id)
        if self._repo.get_by_email(email) is not None:
            raise ProfileAlreadyExistsError("email", email)

        now = self._now()
        profile = Profile(
            id=str(uuid.uuid4()),
            auth_user_id=auth_user_id,
            email=email,
            full_name=full_name,
            tier=SubscriptionTier.FREE,
            trial_started_at=now,
            trial_expires_at=now + timedelta(days=self._trial_days),
            quota_used=0,
            quota_limit=self._free_quota,
            last_activity_at=now,
            created_at=now,
            updated_at=now,
        )
        created = self._repo.insert(profile)
        logger.info(f"Created profile for user {auth_user_id}")
        return created

    async def get_profile(self, auth_user_id: str) -> Profile:
        profile = self._repo.get_by_auth_user_id(auth_user_id)
        if profile is None:
            raise ProfileNotFoundError(auth_user_id)
        return profile

    async def find_by_email(self, email: str) -> Optional[Profile]:
        return self._repo.get_by_email(normalize_email(email))

    async def find_by_telegram_chat_id(self, chat_id: str) -> Optional[Profile]:
        return self._repo.get_by_telegram_chat_id(str(chat_id))

    async def find_by_stripe_customer_id(self, customer_id: str) -> Optional[Profile]:
        return self._repo.get_by_stripe_customer_id(customer_id)

    async def email_exists(self, email: str) -> bool:
        return await self.find_by_email(email) is not None

    # -------------------------------------------------------------------------
    # Activity and quota
    # -------------------------------------------------------------------------

    async def record_login(self, auth_user_id: str) -> Profile:
        return await self.touch_activity(auth_user_id)

    async def touch_activity(self, auth_user_id: str) -> Profile:
        now = self._now()
        return await self._update(
            auth_user_id, {"last_activity_at": now, "updated_at": now}
        )

    async def consume_quota(self, auth_user_id: str, amount: int = 1) -> bool:
        """
        Consume request quota.

        Returns:
            True if the quota was incremented, False if it would exceed the limit
        """
        consumed = self._repo.increment_quota(auth_user_id, amount, self._now())
        if not consumed:
            logger.info(f"Quota exhausted for user {auth_user_id}")
        return consumed

    async def reset_quota(self, auth_user_id: str) -> Profile:
        return await self._update(
            auth_user_id, {"quota_used": 0, "updated_at": self._now()}
        )

    # -------------------------------------------------------------------------
    # Trial
    # -------------------------------------------------------------------------

    async def start_trial(self, auth_user_id: str) -> Profile:
        """
        Start the free trial for an eligible free-tier user.

        Raises:
            ProfileNotFoundError: If the user has no profile
            TrialNotAvailableError: If the trial was used, the user is paid,
                or signup was too long ago
        """
        profile = await self.get_profile(auth_user_id)
        now = self._now()
        reason = trial.trial_unavailable_reason(
            profile, now, self._activation_window_hours
        )
        if reason is not None:
            raise TrialNotAvailableError(reason)

        updated = await self._update(
            auth_user_id,
            {
                "trial_started_at": now,
                "trial_expires_at": now + timedelta(days=self._trial_days),
                "quota_limit": profile.quota_limit + self._trial_quota,
                "updated_at": now,
            },
        )
        logger.info(f"Started trial for user {auth_user_id}")
        return updated

    # -------------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------------

    async def set_tier(
        self,
        auth_user_id: str,
        tier: SubscriptionTier,
        quota_limit: int,
        **fields: Any,
    ) -> Profile:
        """Apply a plan change; extra fields are Stripe columns."""
        update = {"tier": tier, "quota_limit": quota_limit, "updated_at": self._now()}
        update.update(fields)
        profile = await self._update(auth_user_id, update)
        logger.info(f"Set tier {tier.value} (quota {quota_limit}) for user {auth_user_id}")
        return profile

    async def update_billing(self, auth_user_id: str, **fields: Any) -> Profile:
        fields["updated_at"] = self._now()
        return await self._update(auth_user_id, fields)

    # -------------------------------------------------------------------------
    # Telegram
    # -------------------------------------------------------------------------

    async def set_telegram_link(
        self,
        auth_user_id: str,
        chat_id: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Profile:
        """
        Raises:
            ProfileAlreadyExistsError: If the chat is linked to another profile
        """
        now = self._now()
        return await self._update(
            auth_user_id,
            {
                "telegram_chat_id": str(chat_id),
                "telegram_username": username,
                "telegram_first_name": first_name,
                "telegram_last_name": last_name,
                "telegram_linked_at": now,
                "last_activity_at": now,
                "updated_at": now,
            },
        )

    async def clear_telegram_link(self, auth_user_id: str) -> Profile:
        return await self._update(
            auth_user_id,
            {
                "telegram_chat_id": None,
                "telegram_username": None,
                "telegram_first_name": None,
                "telegram_last_name": None,
                "telegram_linked_at": None,
                "updated_at": self._now(),
            },
        )

    async def _update(self, auth_user_id: str, fields: dict[str, Any]) -> Profile:
        profile = self._repo.update(auth_user_id, fields)
        if profile is None:
            raise ProfileNotFoundError(auth_user_id)
        return profile
