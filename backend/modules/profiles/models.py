"""
Profile module data models.

A profile is the application's user record, keyed by the Supabase Auth
UID (auth_user_id). It carries the subscription tier, the trial window,
the request quota and the Telegram link.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SubscriptionTier(str, Enum):
    """User subscription tiers."""

    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Profile(BaseModel):
    """A row of the profiles table."""

    id: str = Field(..., description="Profile ID (UUID)")
    auth_user_id: str = Field(..., description="Supabase Auth UID (unique)")
    email: str = Field(..., description="Lowercased email address")
    full_name: Optional[str] = Field(None, description="Display name")

    tier: SubscriptionTier = Field(default=SubscriptionTier.FREE)
    trial_started_at: Optional[datetime] = None
    trial_expires_at: Optional[datetime] = None
    quota_used: int = Field(default=0, ge=0)
    quota_limit: int = Field(default=50, ge=0)

    telegram_chat_id: Optional[str] = Field(None, description="Linked chat (unique)")
    telegram_username: Optional[str] = None
    telegram_first_name: Optional[str] = None
    telegram_last_name: Optional[str] = None
    telegram_linked_at: Optional[datetime] = None

    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None

    last_activity_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"extra": "ignore"}

    @property
    def is_paid(self) -> bool:
        return self.tier != SubscriptionTier.FREE

    @property
    def quota_remaining(self) -> int:
        return max(0, self.quota_limit - self.quota_used)

    @property
    def is_telegram_linked(self) -> bool:
        return self.telegram_chat_id is not None


class TrialStatus(BaseModel):
    """Derived trial state for a profile at a point in time."""

    is_active: bool = False
    is_expired: bool = False
    days_remaining: int = 0
    expires_at: Optional[datetime] = None
    quota_remaining: int = 0


class AccessLevel(str, Enum):
    """Severity of an access status message (maps to UI styling)."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AccessStatus(BaseModel):
    """User-facing summary of whether the bot can be used and why."""

    has_access: bool
    message: str
    level: AccessLevel
    cta_text: Optional[str] = None
    cta_action: Optional[str] = None


class ProfileResponse(BaseModel):
    """API response for the current user's profile."""

    profile: Profile
    trial: TrialStatus
    access: AccessStatus
    permissions: list[str] = Field(default_factory=list)


class TrialStartResponse(BaseModel):
    """API response after starting a free trial."""

    success: bool = True
    message: str
    started_at: datetime
    expires_at: datetime
    quota_limit: int
    days_remaining: int
