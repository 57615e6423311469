"""
Session repositories for the user_sessions table.
"""

from datetime import datetime
from typing import Any, Optional

from shared.repository import BaseRepository
from .models import UserSession


class InMemorySessionRepository:
    """Dict-backed session storage for tests and local development."""

    def __init__(self) -> None:
        self._sessions: dict[str, UserSession] = {}

    def insert(self, session: UserSession) -> UserSession:
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[UserSession]:
        return self._sessions.get(session_id)

    def mark_revoked(self, session_id: str, revoked_at: datetime) -> Optional[UserSession]:
        current = self._sessions.get(session_id)
        if current is None:
            return None
        if current.revoked_at is None:
            current = current.model_copy(update={"revoked_at": revoked_at})
            self._sessions[session_id] = current
        return current


class SupabaseSessionRepository(BaseRepository[UserSession]):
    """Repository for the user_sessions table."""

    TABLE = "user_sessions"

    def insert(self, session: UserSession) -> UserSession:
        result = self._db.table(self.TABLE).insert(session.model_dump(mode="json")).execute()
        return self._map_to_session(result.data[0])

    def get(self, session_id: str) -> Optional[UserSession]:
        result = self._db.table(self.TABLE).select("*").eq("id", session_id).execute()
        row = self._first(result)
        return self._map_to_session(row) if row else None

    def mark_revoked(self, session_id: str, revoked_at: datetime) -> Optional[UserSession]:
        result = (
            self._db.table(self.TABLE)
            .update({"revoked_at": revoked_at.isoformat()})
            .eq("id", session_id)
            .is_("revoked_at", "null")
            .execute()
        )
        row = self._first(result)
        if row:
            return self._map_to_session(row)
        # Already revoked, or missing
        return self.get(session_id)

    def _map_to_session(self, row: dict[str, Any]) -> UserSession:
        return UserSession(
            id=row["id"],
            auth_user_id=row["auth_user_id"],
            access_token_hash=row.get("access_token_hash"),
            created_at=self._parse_timestamp(row["created_at"]),
            expires_at=self._parse_timestamp(row["expires_at"]),
            revoked_at=self._parse_timestamp(row.get("revoked_at")),
        )
