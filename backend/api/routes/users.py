"""
User-related endpoints.

Provides endpoints for the current user's profile, trial and access state.
"""

import logging

from fastapi import APIRouter, Depends

from modules.profiles import (
    IProfileService,
    Profile,
    ProfileNotFoundError,
    ProfileResponse,
    TrialStartResponse,
)
from modules.profiles import trial
from shared.models import AuthenticatedUser
from ..dependencies import get_profile_service
from ..middleware.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


async def ensure_profile(service: IProfileService, user: AuthenticatedUser) -> Profile:
    """Load the user's profile, creating it for accounts made outside the API."""
    try:
        return await service.get_profile(user.id)
    except ProfileNotFoundError:
        logger.info(f"No profile for user {user.id}, creating one")
        return await service.create_profile(user.id, user.email)


def build_profile_response(profile: Profile, service: IProfileService) -> ProfileResponse:
    now = service.now()
    return ProfileResponse(
        profile=profile,
        trial=trial.get_trial_status(profile, now),
        access=trial.get_access_status(profile, now),
        permissions=trial.permissions_for_tier(profile.tier),
    )


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Get the current user's profile with trial and access status.

    Requires authentication.
    """
    profile = await ensure_profile(service, user)
    return build_profile_response(profile, service)


@router.post("/me/trial", response_model=TrialStartResponse)
async def start_trial(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IProfileService = Depends(get_profile_service),
) -> TrialStartResponse:
    """
    Start the 7-day free trial.

    Fails with 400 when the trial was already used, the user is on a paid
    plan, or the account is older than the activation window.
    """
    await ensure_profile(service, user)
    profile = await service.start_trial(user.id)
    status = trial.get_trial_status(profile, service.now())
    return TrialStartResponse(
        message="Your free trial has started",
        started_at=profile.trial_started_at,
        expires_at=profile.trial_expires_at,
        quota_limit=profile.quota_limit,
        days_remaining=status.days_remaining,
    )
