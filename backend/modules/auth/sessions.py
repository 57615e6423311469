"""
Dashboard sessions.

A session is opened on signup or sign-in and referenced by an opaque,
random id stored in an HTTP-only cookie. Signing out revokes it, so the
dashboard redirects to the sign-in page afterwards.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from shared.config import get_settings
from .interfaces import ISessionRepository
from .models import UserSession
from .repository import InMemorySessionRepository

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionService:
    """Opens, resolves and revokes dashboard sessions."""

    def __init__(
        self,
        repository: Optional[ISessionRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ttl_hours: Optional[int] = None,
    ):
        self._repo = repository or InMemorySessionRepository()
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._ttl = timedelta(hours=ttl_hours or get_settings().session_ttl_hours)

    async def open_session(
        self, auth_user_id: str, access_token: Optional[str] = None
    ) -> UserSession:
        now = self._now()
        session = UserSession(
            id=secrets.token_urlsafe(32),
            auth_user_id=auth_user_id,
            access_token_hash=hash_token(access_token) if access_token else None,
            created_at=now,
            expires_at=now + self._ttl,
        )
        logger.debug(f"Opened session for user {auth_user_id}")
        return self._repo.insert(session)

    async def resolve(self, session_id: Optional[str]) -> Optional[UserSession]:
        """Return the session if it exists, is not revoked and has not expired."""
        if not session_id:
            return None
        session = self._repo.get(session_id)
        if session is None or not session.is_active(self._now()):
            return None
        return session

    async def revoke(self, session_id: Optional[str]) -> bool:
        """
        Revoke a session.

        Returns:
            True if a session with this id exists (revoked now or earlier)
        """
        if not session_id:
            return False
        session = self._repo.mark_revoked(session_id, self._now())
        if session is not None:
            logger.debug(f"Revoked session for user {session.auth_user_id}")
        return session is not None
