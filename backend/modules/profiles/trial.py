"""
Free-trial rules.

A new user gets a 7-day trial with 50 requests. Access to the Telegram
bot requires either a paid tier or an unexpired trial. All functions take
``now`` so callers and tests control the clock.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from .models import AccessLevel, AccessStatus, Profile, SubscriptionTier, TrialStatus

TRIAL_DURATION_DAYS = 7
TRIAL_QUOTA = 50
TRIAL_ACTIVATION_WINDOW_HOURS = 24
EXPIRY_WARNING_DAYS = 2

FREE_PERMISSIONS = ["weather", "translate"]
STARTER_PERMISSIONS = FREE_PERMISSIONS + ["email_scan", "pdf_summary", "reminder"]
PRO_PERMISSIONS = STARTER_PERMISSIONS + ["premium_features", "priority_support"]

TIER_PERMISSIONS: dict[SubscriptionTier, list[str]] = {
    SubscriptionTier.FREE: FREE_PERMISSIONS,
    SubscriptionTier.STARTER: STARTER_PERMISSIONS,
    SubscriptionTier.PRO: PRO_PERMISSIONS,
    SubscriptionTier.ENTERPRISE: PRO_PERMISSIONS,
}


def get_trial_status(profile: Profile, now: datetime) -> TrialStatus:
    """Derive the trial state of a profile at ``now``."""
    if profile.is_paid or profile.trial_expires_at is None:
        return TrialStatus(quota_remaining=profile.quota_remaining)

    remaining = profile.trial_expires_at - now
    is_expired = remaining <= timedelta(0)
    days_remaining = 0 if is_expired else math.ceil(remaining / timedelta(days=1))

    return TrialStatus(
        is_active=not is_expired,
        is_expired=is_expired,
        days_remaining=days_remaining,
        expires_at=profile.trial_expires_at,
        quota_remaining=profile.quota_remaining,
    )


def trial_unavailable_reason(
    profile: Profile,
    now: datetime,
    activation_window_hours: int = TRIAL_ACTIVATION_WINDOW_HOURS,
) -> Optional[str]:
    """Return why a trial cannot be started, or None if it can."""
    if profile.tier != SubscriptionTier.FREE:
        return "paid tier"
    if profile.trial_started_at is not None:
        return "already used"
    if now - profile.created_at > timedelta(hours=activation_window_hours):
        return "signup too old"
    return None


def is_eligible_for_trial(profile: Profile, now: datetime) -> bool:
    return trial_unavailable_reason(profile, now) is None


def has_bot_access(profile: Profile, now: datetime) -> bool:
    """Paid tiers always have access; free users need an active trial."""
    if profile.is_paid:
        return True
    return get_trial_status(profile, now).is_active


def get_access_status(profile: Profile, now: datetime) -> AccessStatus:
    """Build the user-facing message describing bot access."""
    if profile.is_paid:
        return AccessStatus(
            has_access=True,
            message=f"{profile.tier.value.capitalize()} plan active",
            level=AccessLevel.SUCCESS,
        )

    trial = get_trial_status(profile, now)

    if trial.is_active:
        plural = "s" if trial.days_remaining != 1 else ""
        if trial.days_remaining <= EXPIRY_WARNING_DAYS:
            return AccessStatus(
                has_access=True,
                message=f"Trial expires in {trial.days_remaining} day{plural}",
                level=AccessLevel.WARNING,
                cta_text="Upgrade Now",
                cta_action="upgrade",
            )
        return AccessStatus(
            has_access=True,
            message=f"Free trial: {trial.days_remaining} day{plural} remaining",
            level=AccessLevel.INFO,
        )

    if trial.is_expired:
        return AccessStatus(
            has_access=False,
            message="Your free trial has expired",
            level=AccessLevel.ERROR,
            cta_text="Upgrade Now",
            cta_action="upgrade",
        )

    if is_eligible_for_trial(profile, now):
        return AccessStatus(
            has_access=False,
            message=f"Start your {TRIAL_DURATION_DAYS}-day free trial",
            level=AccessLevel.INFO,
            cta_text="Start Free Trial",
            cta_action="start_trial",
        )

    return AccessStatus(
        has_access=False,
        message="Subscription required",
        level=AccessLevel.ERROR,
        cta_text="View Plans",
        cta_action="upgrade",
    )


def format_time_remaining(expires_at: datetime, now: datetime) -> str:
    remaining = expires_at - now
    if remaining <= timedelta(0):
        return "Expired"

    days = remaining.days
    if days > 0:
        return f"{days} day{'s' if days != 1 else ''} remaining"

    hours = int(remaining.total_seconds() // 3600)
    return f"{hours} hour{'s' if hours != 1 else ''} remaining"


def permissions_for_tier(tier: SubscriptionTier) -> list[str]:
    return list(TIER_PERMISSIONS.get(tier, FREE_PERMISSIONS))
