"""
Usage tracking service implementation.

Provides both in-memory (for testing) and Supabase-backed (for production)
implementations of usage tracking.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from dateutil.relativedelta import relativedelta

from modules.profiles import IProfileService, Profile
from .exceptions import QuotaExceededError
from .models import UsageLog, UsageSummary

logger = logging.getLogger(__name__)


class UsageService:
    """
    Usage tracking service with in-memory storage.

    For testing and development. Use SupabaseUsageService for production.
    """

    def __init__(
        self,
        profile_service: IProfileService,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the usage service.

        Args:
            profile_service: Profile service that owns the quota counters
            clock: Optional clock returning an aware UTC datetime
        """
        self._profiles = profile_service
        self._now = clock or (lambda: datetime.now(timezone.utc))
        # In-memory storage for testing
        self._logs: dict[str, list[UsageLog]] = {}

    def get_current_period(self) -> tuple[datetime, datetime]:
        """
        Get the current tracking period (monthly).

        Returns:
            Tuple of (period_start, period_end) datetimes
        """
        now = self._now()
        period_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        period_end = period_start + relativedelta(months=1)
        return period_start, period_end

    async def check_and_consume(
        self, auth_user_id: str, workflow: str, cost: int = 1
    ) -> Profile:
        """Consume quota, raising QuotaExceededError when it would overflow."""
        if not await self._profiles.consume_quota(auth_user_id, cost):
            profile = await self._profiles.get_profile(auth_user_id)
            logger.info(
                f"Quota exceeded for user {auth_user_id} on {workflow}: "
                f"{profile.quota_used}/{profile.quota_limit}"
            )
            raise QuotaExceededError(profile.quota_used, profile.quota_limit, cost)
        return await self._profiles.get_profile(auth_user_id)

    async def record_usage(self, log: UsageLog) -> UsageLog:
        """Record an automation request."""
        complete = log.model_copy(
            update={"id": str(uuid.uuid4()), "created_at": self._now()}
        )
        self._logs.setdefault(log.auth_user_id, []).insert(0, complete)
        return complete

    async def get_usage_history(
        self,
        auth_user_id: str,
        limit: int = 50,
        offset: int = 0,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[UsageLog]:
        """Get a user's usage history, most recent first."""
        logs = self._logs.get(auth_user_id, [])

        if start_date or end_date:
            logs = [
                log for log in logs
                if (not start_date or log.created_at >= start_date)
                and (not end_date or log.created_at < end_date)
            ]

        return logs[offset : offset + limit]

    async def get_usage_summary(self, auth_user_id: str) -> UsageSummary:
        """Aggregate the current period's usage with the profile's quota."""
        period_start, period_end = self.get_current_period()
        logs = await self.get_usage_history(
            auth_user_id,
            limit=10000,  # Get all for aggregation
            start_date=period_start,
            end_date=period_end,
        )
        profile = await self._profiles.get_profile(auth_user_id)
        return summarize(auth_user_id, period_start, period_end, logs, profile)


def summarize(
    auth_user_id: str,
    period_start: datetime,
    period_end: datetime,
    logs: list[UsageLog],
    profile: Profile,
) -> UsageSummary:
    summary = UsageSummary(
        auth_user_id=auth_user_id,
        period_start=period_start,
        period_end=period_end,
        quota_used=profile.quota_used,
        quota_limit=profile.quota_limit,
        quota_remaining=profile.quota_remaining,
    )

    for log in logs:
        summary.total_requests += 1
        if log.success:
            summary.successful_requests += 1
        summary.total_quota_cost += log.quota_cost
        summary.by_action[log.action] = summary.by_action.get(log.action, 0) + 1
        if log.workflow:
            summary.by_workflow[log.workflow] = summary.by_workflow.get(log.workflow, 0) + 1

    return summary


class SupabaseUsageService(UsageService):
    """
    Usage service with Supabase persistence.

    Extends the base UsageService to store logs in the usage_logs table
    while maintaining the same interface.
    """

    def __init__(
        self,
        supabase_client: Any,
        profile_service: IProfileService,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(profile_service, clock)
        self._db = supabase_client

    async def record_usage(self, log: UsageLog) -> UsageLog:
        """Record usage with database persistence."""
        complete = log.model_copy(
            update={"id": str(uuid.uuid4()), "created_at": self._now()}
        )
        self._db.table("usage_logs").insert(complete.model_dump(mode="json")).execute()
        return complete

    async def get_usage_history(
        self,
        auth_user_id: str,
        limit: int = 50,
        offset: int = 0,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[UsageLog]:
        """Get usage history from database."""
        query = self._db.table("usage_logs").select("*").eq("auth_user_id", auth_user_id)

        if start_date:
            query = query.gte("created_at", start_date.isoformat())
        if end_date:
            query = query.lt("created_at", end_date.isoformat())

        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = query.execute()

        return [
            UsageLog(
                id=r["id"],
                auth_user_id=r["auth_user_id"],
                action=r["action"],
                workflow=r.get("workflow"),
                quota_cost=r.get("quota_cost", 1),
                success=r.get("success", True),
                duration_ms=r.get("duration_ms"),
                metadata=r.get("metadata") or {},
                created_at=datetime.fromisoformat(
                    r["created_at"].replace("Z", "+00:00")
                ),
            )
            for r in result.data
        ]
