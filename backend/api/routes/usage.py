"""
Usage tracking endpoints.

Provides endpoints for viewing usage statistics and history.
"""

from fastapi import APIRouter, Depends, Query

from modules.profiles import IProfileService
from modules.usage import IUsageService, UsageHistoryResponse, UsageSummary
from shared.models import AuthenticatedUser
from ..dependencies import get_profile_service, get_usage_service
from ..middleware.auth import get_current_user
from .users import ensure_profile

router = APIRouter()


@router.get("/summary", response_model=UsageSummary)
async def get_usage_summary(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IUsageService = Depends(get_usage_service),
    profiles: IProfileService = Depends(get_profile_service),
) -> UsageSummary:
    """
    Get usage summary for the current tracking period.

    Returns request counts per action and workflow for the current month,
    together with the quota state.

    Requires authentication.
    """
    await ensure_profile(profiles, user)
    return await service.get_usage_summary(user.id)


@router.get("/history", response_model=UsageHistoryResponse)
async def get_usage_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IUsageService = Depends(get_usage_service),
) -> UsageHistoryResponse:
    """Get the user's usage log, most recent first."""
    items = await service.get_usage_history(user.id, limit=limit, offset=offset)
    return UsageHistoryResponse(items=items, limit=limit, offset=offset)
