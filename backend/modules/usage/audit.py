"""
Audit log of bot interactions.

Every Telegram update handled by the bot writes one entry, including
those from chats that are not linked to a profile.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from .models import AuditEntry, UserStats

logger = logging.getLogger(__name__)


class AuditService:
    """Audit log with in-memory storage (for testing)."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

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
        entry = AuditEntry(
            auth_user_id=auth_user_id,
            telegram_chat_id=str(telegram_chat_id) if telegram_chat_id is not None else None,
            action_type=action_type,
            action_detail=action_detail,
            context=context or {},
            success=success,
            duration_ms=duration_ms,
            created_at=datetime.now(timezone.utc),
        )
        return self._store(entry)

    def _store(self, entry: AuditEntry) -> AuditEntry:
        stored = entry.model_copy(update={"id": str(len(self._entries) + 1)})
        self._entries.append(stored)
        return stored

    def entries(self) -> list[AuditEntry]:
        return list(self._entries)

    async def get_user_stats(self, auth_user_id: str) -> UserStats:
        mine = [e for e in self._entries if e.auth_user_id == auth_user_id]
        return UserStats(
            total_actions=len(mine),
            successful_actions=sum(1 for e in mine if e.success),
            last_action_at=max((e.created_at for e in mine), default=None),
        )


class SupabaseAuditService(AuditService):
    """Audit log persisted to user_audit_log."""

    def __init__(self, supabase_client: Any):
        super().__init__()
        self._db = supabase_client

    def _store(self, entry: AuditEntry) -> AuditEntry:
        # id is a BIGSERIAL assigned by the database
        result = self._db.table("user_audit_log").insert(
            entry.model_dump(mode="json", exclude_none=True)
        ).execute()
        if result.data:
            return entry.model_copy(update={"id": str(result.data[0]["id"])})
        return entry

    async def get_user_stats(self, auth_user_id: str) -> UserStats:
        result = (
            self._db.table("user_audit_log")
            .select("success, created_at")
            .eq("auth_user_id", auth_user_id)
            .order("created_at", desc=True)
            .execute()
        )
        rows = result.data or []
        last = rows[0]["created_at"] if rows else None
        return UserStats(
            total_actions=len(rows),
            successful_actions=sum(1 for r in rows if r.get("success")),
            last_action_at=datetime.fromisoformat(last.replace("Z", "+00:00")) if last else None,
        )
