"""
Usage module data models.

Usage logs record every automation request a user makes (one row per
request in usage_logs). The audit log records every bot interaction,
linked or not (user_audit_log).
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class UsageLog(BaseModel):
    """A single automation request."""

    id: Optional[str] = Field(None, description="Log ID (set on record)")
    auth_user_id: str = Field(..., description="User who made the request")
    action: str = Field(..., description="e.g. 'workflow_request'")
    workflow: Optional[str] = Field(None, description="Workflow id, e.g. 'weather'")
    quota_cost: int = Field(default=1, ge=0)
    success: bool = True
    duration_ms: Optional[int] = Field(None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class UsageSummary(BaseModel):
    """Usage for one user over a monthly period."""

    auth_user_id: str
    period_start: datetime
    period_end: datetime

    total_requests: int = 0
    successful_requests: int = 0
    total_quota_cost: int = 0
    by_action: dict[str, int] = Field(default_factory=dict)
    by_workflow: dict[str, int] = Field(default_factory=dict)

    quota_used: int = 0
    quota_limit: int = 0
    quota_remaining: int = 0


class UsageHistoryResponse(BaseModel):
    """Paginated usage history."""

    items: list[UsageLog]
    limit: int
    offset: int


class AuditEntry(BaseModel):
    """A row of user_audit_log."""

    id: Optional[str] = None
    auth_user_id: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    action_type: str
    action_detail: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)
    success: bool = True
    duration_ms: Optional[int] = None
    created_at: Optional[datetime] = None


class UserStats(BaseModel):
    """Aggregate audit statistics for a user."""

    total_actions: int = 0
    successful_actions: int = 0
    last_action_at: Optional[datetime] = None
