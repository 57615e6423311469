"""
Linking token repositories for the telegram_linking_tokens table.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from shared.repository import BaseRepository
from .models import LinkingToken


@runtime_checkable
class ILinkingTokenRepository(Protocol):
    def insert(self, token: LinkingToken) -> LinkingToken:
        ...

    def get(self, token: str) -> Optional[LinkingToken]:
        ...

    def mark_used(self, token: str, used_at: datetime) -> bool:
        """Set used_at if still unused; returns False if it was already used."""
        ...

    def release(self, token: str) -> None:
        """Clear used_at so the token can be redeemed again."""
        ...

    def delete_unused_for_user(self, auth_user_id: str) -> int:
        ...

    def delete_expired(self, now: datetime) -> int:
        ...


class InMemoryLinkingTokenRepository:
    def __init__(self) -> None:
        self._tokens: dict[str, LinkingToken] = {}

    def insert(self, token: LinkingToken) -> LinkingToken:
        self._tokens[token.token] = token
        return token

    def get(self, token: str) -> Optional[LinkingToken]:
        return self._tokens.get(token)

    def mark_used(self, token: str, used_at: datetime) -> bool:
        current = self._tokens.get(token)
        if current is None or current.used_at is not None:
            return False
        self._tokens[token] = current.model_copy(update={"used_at": used_at})
        return True

    def release(self, token: str) -> None:
        current = self._tokens.get(token)
        if current is not None:
            self._tokens[token] = current.model_copy(update={"used_at": None})

    def delete_unused_for_user(self, auth_user_id: str) -> int:
        doomed = [
            t.token for t in self._tokens.values()
            if t.auth_user_id == auth_user_id and t.used_at is None
        ]
        for token in doomed:
            del self._tokens[token]
        return len(doomed)

    def delete_expired(self, now: datetime) -> int:
        doomed = [t.token for t in self._tokens.values() if t.expires_at <= now]
        for token in doomed:
            del self._tokens[token]
        return len(doomed)


class SupabaseLinkingTokenRepository(BaseRepository[LinkingToken]):
    TABLE = "telegram_linking_tokens"

    def insert(self, token: LinkingToken) -> LinkingToken:
        self._db.table(self.TABLE).insert(token.model_dump(mode="json")).execute()
        return token

    def get(self, token: str) -> Optional[LinkingToken]:
        result = self._db.table(self.TABLE).select("*").eq("token", token).execute()
        row = self._first(result)
        return self._map_to_token(row) if row else None

    def mark_used(self, token: str, used_at: datetime) -> bool:
        result = (
            self._db.table(self.TABLE)
            .update({"used_at": used_at.isoformat()})
            .eq("token", token)
            .is_("used_at", "null")
            .execute()
        )
        return bool(result.data)

    def release(self, token: str) -> None:
        self._db.table(self.TABLE).update({"used_at": None}).eq("token", token).execute()

    def delete_unused_for_user(self, auth_user_id: str) -> int:
        result = (
            self._db.table(self.TABLE)
            .delete()
            .eq("auth_user_id", auth_user_id)
            .is_("used_at", "null")
            .execute()
        )
        return len(result.data or [])

    def delete_expired(self, now: datetime) -> int:
        result = (
            self._db.table(self.TABLE)
            .delete()
            .lte("expires_at", now.isoformat())
            .execute()
        )
        return len(result.data or [])

    def _map_to_token(self, row: dict[str, Any]) -> LinkingToken:
        return LinkingToken(
            token=row["token"],
            auth_user_id=row["auth_user_id"],
            created_at=self._parse_timestamp(row["created_at"]),
            expires_at=self._parse_timestamp(row["expires_at"]),
            used_at=self._parse_timestamp(row.get("used_at")),
        )
