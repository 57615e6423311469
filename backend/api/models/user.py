"""
Page models.

The dashboard summary and the sign-in page descriptor.
"""

from pydantic import BaseModel
from typing import Optional

from modules.profiles import AccessStatus, Profile, TrialStatus
from modules.telegram import LinkStatus


class DashboardResponse(BaseModel):
    """What the dashboard page shows for a signed-in user."""

    profile: Profile
    trial: TrialStatus
    access: AccessStatus
    telegram: LinkStatus
    permissions: list[str]
    trial_time_remaining: Optional[str] = None


class SigninPageResponse(BaseModel):
    """Descriptor of the sign-in page (the redirect target)."""

    page: str = "signin"
    signin_endpoint: str = "/api/auth/signin"
    signup_endpoint: str = "/api/auth/signup"
    message: Optional[str] = None
