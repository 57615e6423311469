"""
Linking a Telegram chat to a Clixen account.

The dashboard asks for a one-time token (64 hex characters, valid for
10 minutes). The user sends it to the bot, which binds the chat to the
profile that requested the token.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from modules.profiles import (
    IProfileService,
    Profile,
    ProfileAlreadyExistsError,
)
from modules.profiles import trial
from modules.usage import IAuditService
from shared.config import get_settings
from .exceptions import AlreadyLinkedError, ChatAlreadyLinkedError, InvalidLinkingTokenError
from .models import LinkingToken, LinkStatus, TelegramUser, UserContext
from .repository import ILinkingTokenRepository, InMemoryLinkingTokenRepository

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def is_linking_token(text: str) -> bool:
    return bool(TOKEN_PATTERN.match(text.strip()))


class TelegramLinkingService:
    """Issues linking tokens and binds Telegram chats to profiles."""

    def __init__(
        self,
        profile_service: IProfileService,
        audit_service: IAuditService,
        repository: Optional[ILinkingTokenRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
        token_ttl_minutes: Optional[int] = None,
    ):
        self._profiles = profile_service
        self._audit = audit_service
        self._tokens = repository or InMemoryLinkingTokenRepository()
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._ttl = timedelta(
            minutes=token_ttl_minutes or get_settings().telegram_linking_token_ttl_minutes
        )

    @property
    def token_ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    async def generate_linking_token(self, auth_user_id: str) -> LinkingToken:
        """
        Issue a fresh token, discarding the user's unused ones.

        Raises:
            ProfileNotFoundError: If the user has no profile
            AlreadyLinkedError: If the profile already has a Telegram chat
        """
        profile = await self._profiles.get_profile(auth_user_id)
        if profile.is_telegram_linked:
            raise AlreadyLinkedError(profile.telegram_username)

        self._tokens.delete_unused_for_user(auth_user_id)

        now = self._now()
        token = LinkingToken(
            token=secrets.token_hex(32),
            auth_user_id=auth_user_id,
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._tokens.insert(token)
        logger.info(f"Issued Telegram linking token for user {auth_user_id}")
        return token

    async def link_account(self, token: str, chat_id: int | str, user: TelegramUser) -> Profile:
        """
        Bind a chat to the profile that requested ``token``.

        Raises:
            InvalidLinkingTokenError: If the token is malformed, unknown,
                used or expired
            ChatAlreadyLinkedError: If the chat belongs to another profile
        """
        chat_id = str(chat_id)
        token = token.strip()
        try:
            profile = await self._link(token, chat_id, user)
        except (InvalidLinkingTokenError, ChatAlreadyLinkedError) as e:
            await self._audit.log_action(
                "telegram_link",
                telegram_chat_id=chat_id,
                action_detail=e.code,
                success=False,
            )
            raise

        await self._audit.log_action(
            "telegram_link",
            auth_user_id=profile.auth_user_id,
            telegram_chat_id=chat_id,
            context={"telegram_username": user.username},
        )
        logger.info(f"Linked Telegram chat {chat_id} to user {profile.auth_user_id}")
        return profile

    async def _link(self, token: str, chat_id: str, user: TelegramUser) -> Profile:
        if not is_linking_token(token):
            raise InvalidLinkingTokenError("malformed")

        record = self._tokens.get(token)
        if record is None:
            raise InvalidLinkingTokenError("not found")
        if record.used_at is not None:
            raise InvalidLinkingTokenError("already used")
        if not record.is_valid(self._now()):
            raise InvalidLinkingTokenError("expired")

        owner = await self._profiles.find_by_telegram_chat_id(chat_id)
        if owner is not None and owner.auth_user_id != record.auth_user_id:
            raise ChatAlreadyLinkedError(chat_id)

        if not self._tokens.mark_used(token, self._now()):
            raise InvalidLinkingTokenError("already used")

        try:
            return await self._profiles.set_telegram_link(
                record.auth_user_id,
                chat_id,
                username=user.username,
                first_name=user.first_name,
                last_name=user.last_name,
            )
        except ProfileAlreadyExistsError as e:
            self._tokens.release(token)
            raise ChatAlreadyLinkedError(chat_id) from e
        except Exception:
            # The claim is undone so the same code can be sent again
            self._tokens.release(token)
            raise

    async def unlink_account(self, auth_user_id: str) -> Profile:
        profile = await self._profiles.get_profile(auth_user_id)
        if not profile.is_telegram_linked:
            return profile

        updated = await self._profiles.clear_telegram_link(auth_user_id)
        await self._audit.log_action(
            "telegram_unlink",
            auth_user_id=auth_user_id,
            telegram_chat_id=profile.telegram_chat_id,
        )
        logger.info(f"Unlinked Telegram chat from user {auth_user_id}")
        return updated

    async def get_link_status(self, auth_user_id: str) -> LinkStatus:
        profile = await self._profiles.get_profile(auth_user_id)
        return LinkStatus(
            linked=profile.is_telegram_linked,
            telegram_chat_id=profile.telegram_chat_id,
            telegram_username=profile.telegram_username,
            telegram_first_name=profile.telegram_first_name,
            linked_at=profile.telegram_linked_at,
        )

    async def resolve_user(self, chat_id: int | str) -> Optional[UserContext]:
        """Return the linked user's context, or None for an unknown chat."""
        profile = await self._profiles.find_by_telegram_chat_id(str(chat_id))
        if profile is None:
            return None

        now = self._now()
        return UserContext(
            auth_user_id=profile.auth_user_id,
            profile_id=profile.id,
            email=profile.email,
            telegram_chat_id=str(chat_id),
            tier=profile.tier,
            quota_used=profile.quota_used,
            quota_limit=profile.quota_limit,
            trial=trial.get_trial_status(profile, now),
            has_access=trial.has_bot_access(profile, now),
            permissions=trial.permissions_for_tier(profile.tier),
        )

    async def cleanup_expired_tokens(self) -> int:
        removed = self._tokens.delete_expired(self._now())
        if removed:
            logger.info(f"Removed {removed} expired Telegram linking tokens")
        return removed
