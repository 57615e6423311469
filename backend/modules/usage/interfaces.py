"""
Usage tracking module interfaces.

Other modules should depend on these protocols, not the concrete
implementations.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from modules.profiles import Profile
from .models import AuditEntry, UsageLog, UsageSummary, UserStats


@runtime_checkable
class IUsageService(Protocol):
    """
    Interface for request usage and quota enforcement.

    The telegram module calls check_and_consume before forwarding a
    request to n8n, then record_usage with the outcome.
    """

    async def check_and_consume(
        self, auth_user_id: str, workflow: str, cost: int = 1
    ) -> Profile:
        """
        Consume quota for a request.

        Returns:
            The profile after consumption

        Raises:
            QuotaExceededError: If used + cost would exceed the limit
        """
        ...

    async def record_usage(self, log: UsageLog) -> UsageLog:
        ...

    async def get_usage_history(
        self, auth_user_id: str, limit: int = 50, offset: int = 0
    ) -> list[UsageLog]:
        """Most recent first."""
        ...

    async def get_usage_summary(self, auth_user_id: str) -> UsageSummary:
        ...


@runtime_checkable
class IAuditService(Protocol):
    """Interface for the bot interaction audit log."""

    async def log_action(
        self,
        action_type: str,
        auth_user_id: Optional[str] = None,
        telegram_chat_id: Optional[str] = None,
        action_detail: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
        success: bool = True,
        duration_ms: Optional[int] = None,
    ) -> AuditEntry:
        ...

    async def get_user_stats(self, auth_user_id: str) -> UserStats:
        ...
