"""
Page endpoints backed by the session cookie.

The frontend renders these; the API decides who may see the dashboard.
Requests without a live session are redirected to the sign-in page.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from modules.auth import SessionService
from modules.profiles import IProfileService, ProfileNotFoundError
from modules.profiles import trial
from modules.telegram import TelegramLinkingService
from ..dependencies import get_linking_service, get_profile_service, get_session_service
from ..middleware.auth import get_session_id
from ..models.user import DashboardResponse, SigninPageResponse
from .auth import clear_session_cookie

router = APIRouter()

SIGNIN_PATH = "/auth/signin"


def redirect_to_signin() -> RedirectResponse:
    response = RedirectResponse(SIGNIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response)
    return response


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionService = Depends(get_session_service),
    profiles: IProfileService = Depends(get_profile_service),
    linking: TelegramLinkingService = Depends(get_linking_service),
) -> Union[DashboardResponse, RedirectResponse]:
    """
    The signed-in user's dashboard.

    Shows the profile with trial, access and Telegram link state.
    """
    session = await sessions.resolve(session_id)
    if session is None:
        return redirect_to_signin()

    try:
        profile = await profiles.get_profile(session.auth_user_id)
    except ProfileNotFoundError:
        await sessions.revoke(session.id)
        return redirect_to_signin()

    now = profiles.now()
    trial_status = trial.get_trial_status(profile, now)
    return DashboardResponse(
        profile=profile,
        trial=trial_status,
        access=trial.get_access_status(profile, now),
        telegram=await linking.get_link_status(profile.auth_user_id),
        permissions=trial.permissions_for_tier(profile.tier),
        trial_time_remaining=(
            trial.format_time_remaining(profile.trial_expires_at, now)
            if trial_status.is_active
            else None
        ),
    )


@router.get(SIGNIN_PATH, response_model=SigninPageResponse)
async def signin_page() -> SigninPageResponse:
    """The sign-in page descriptor."""
    return SigninPageResponse()
