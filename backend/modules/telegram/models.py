"""
Telegram module data models.

Update/message models cover the subset of the Bot API payload the bot
reads. Telegram sends ``from`` which is a Python keyword, hence the alias.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.profiles import SubscriptionTier, TrialStatus


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_id: int
    from_user: Optional[TelegramUser] = Field(None, alias="from")
    chat: TelegramChat
    date: Optional[int] = None
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    edited_message: Optional[TelegramMessage] = None

    @property
    def effective_message(self) -> Optional[TelegramMessage]:
        return self.message or self.edited_message


class LinkingToken(BaseModel):
    """A row of telegram_linking_tokens."""

    token: str = Field(..., min_length=64, max_length=64)
    auth_user_id: str
    created_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        return self.used_at is None and now < self.expires_at


class LinkTokenResponse(BaseModel):
    """API response for POST /api/telegram/link."""

    token: str
    expires_in: int = Field(..., description="Seconds until the token expires")
    bot_username: str
    deep_link: str
    instructions: list[str]


class LinkStatus(BaseModel):
    linked: bool
    telegram_chat_id: Optional[str] = None
    telegram_username: Optional[str] = None
    telegram_first_name: Optional[str] = None
    linked_at: Optional[datetime] = None


class UserContext(BaseModel):
    """Everything the bot needs to know about a linked chat's owner."""

    auth_user_id: str
    profile_id: str
    email: str
    telegram_chat_id: str
    tier: SubscriptionTier
    quota_used: int
    quota_limit: int
    trial: TrialStatus
    has_access: bool
    permissions: list[str] = Field(default_factory=list)

    @property
    def quota_remaining(self) -> int:
        return max(0, self.quota_limit - self.quota_used)
