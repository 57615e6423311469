"""
Profile repositories.

InMemoryProfileRepository backs tests and local development.
SupabaseProfileRepository maps the profiles table and the
increment_user_quota function.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError

from shared.repository import BaseRepository
from .exceptions import ProfileAlreadyExistsError
from .models import Profile

UNIQUE_VIOLATION = "23505"
UNIQUE_COLUMNS = ("auth_user_id", "email", "telegram_chat_id")


class InMemoryProfileRepository:
    """Dict-backed profile storage enforcing the table's unique columns."""

    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}

    def _check_unique(self, candidate: Profile, ignore: Optional[str] = None) -> None:
        for existing in self._profiles.values():
            if existing.auth_user_id == ignore:
                continue
            for column in UNIQUE_COLUMNS:
                value = getattr(candidate, column)
                if value is not None and getattr(existing, column) == value:
                    raise ProfileAlreadyExistsError(column, str(value))

    def insert(self, profile: Profile) -> Profile:
        self._check_unique(profile)
        self._profiles[profile.auth_user_id] = profile
        return profile

    def get_by_auth_user_id(self, auth_user_id: str) -> Optional[Profile]:
        return self._profiles.get(auth_user_id)

    def get_by_email(self, email: str) -> Optional[Profile]:
        email = email.lower()
        return next((p for p in self._profiles.values() if p.email == email), None)

    def get_by_telegram_chat_id(self, chat_id: str) -> Optional[Profile]:
        return next(
            (p for p in self._profiles.values() if p.telegram_chat_id == chat_id),
            None,
        )

    def get_by_stripe_customer_id(self, customer_id: str) -> Optional[Profile]:
        return next(
            (p for p in self._profiles.values() if p.stripe_customer_id == customer_id),
            None,
        )

    def update(self, auth_user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        current = self._profiles.get(auth_user_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self._check_unique(updated, ignore=auth_user_id)
        self._profiles[auth_user_id] = updated
        return updated

    def increment_quota(self, auth_user_id: str, amount: int, now: datetime) -> bool:
        current = self._profiles.get(auth_user_id)
        if current is None or current.quota_used + amount > current.quota_limit:
            return False
        self._profiles[auth_user_id] = current.model_copy(
            update={
                "quota_used": current.quota_used + amount,
                "last_activity_at": now,
                "updated_at": now,
            }
        )
        return True


class SupabaseProfileRepository(BaseRepository[Profile]):
    """
    Repository for the profiles table.

    Note: This repository does NOT perform authorization checks.
    It is used with the service-role client.
    """

    TABLE = "profiles"

    def insert(self, profile: Profile) -> Profile:
        data = profile.model_dump(mode="json")
        try:
            result = self._db.table(self.TABLE).insert(data).execute()
        except APIError as e:
            if e.code != UNIQUE_VIOLATION:
                raise
            raise self._unique_violation(e, profile) from e
        return self._map_to_profile(result.data[0])

    def get_by_auth_user_id(self, auth_user_id: str) -> Optional[Profile]:
        return self._get_one("auth_user_id", auth_user_id)

    def get_by_email(self, email: str) -> Optional[Profile]:
        return self._get_one("email", email.lower())

    def get_by_telegram_chat_id(self, chat_id: str) -> Optional[Profile]:
        return self._get_one("telegram_chat_id", chat_id)

    def get_by_stripe_customer_id(self, customer_id: str) -> Optional[Profile]:
        return self._get_one("stripe_customer_id", customer_id)

    def update(self, auth_user_id: str, fields: dict[str, Any]) -> Optional[Profile]:
        data = {k: self._to_column(v) for k, v in fields.items()}
        try:
            result = (
                self._db.table(self.TABLE)
                .update(data)
                .eq("auth_user_id", auth_user_id)
                .execute()
            )
        except APIError as e:
            if e.code != UNIQUE_VIOLATION:
                raise
            raise self._unique_violation(e, None) from e
        row = self._first(result)
        return self._map_to_profile(row) if row else None

    def increment_quota(self, auth_user_id: str, amount: int, now: datetime) -> bool:
        result = self._db.rpc(
            "increment_user_quota",
            {"p_user_id": auth_user_id, "p_amount": amount},
        ).execute()
        return bool(result.data)

    def _get_one(self, column: str, value: str) -> Optional[Profile]:
        result = self._db.table(self.TABLE).select("*").eq(column, value).execute()
        row = self._first(result)
        return self._map_to_profile(row) if row else None

    @staticmethod
    def _to_column(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.astimezone(timezone.utc).isoformat()
        if hasattr(value, "value"):
            return value.value
        return value

    @staticmethod
    def _unique_violation(
        error: APIError, profile: Optional[Profile]
    ) -> ProfileAlreadyExistsError:
        text = f"{error.message} {error.details}"
        for column in UNIQUE_COLUMNS:
            if column in text:
                value = getattr(profile, column, "") if profile else ""
                return ProfileAlreadyExistsError(column, str(value or ""))
        return ProfileAlreadyExistsError("value", "")

    def _map_to_profile(self, row: dict[str, Any]) -> Profile:
        data = dict(row)
        for column in (
            "trial_started_at",
            "trial_expires_at",
            "telegram_linked_at",
            "last_activity_at",
            "created_at",
            "updated_at",
        ):
            data[column] = self._parse_timestamp(data.get(column))
        if data.get("telegram_chat_id") is not None:
            data["telegram_chat_id"] = str(data["telegram_chat_id"])
        return Profile(**data)
