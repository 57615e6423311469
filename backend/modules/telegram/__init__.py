"""
Telegram module.

The Telegram bot is the product's main surface. This module links chats
to accounts, routes messages to n8n workflows and talks to the Bot API.

Public API:
- TelegramBotClient: Bot API client
- TelegramLinkingService: Linking tokens and chat/account binding
- MessageRouter: Keyword routing to workflows
- TelegramBotService: Update handling
- poll_forever: Long-polling loop
"""

from .bot import TelegramBotService, poll_forever
from .bot_client import TelegramBotClient
from .exceptions import (
    AlreadyLinkedError,
    ChatAlreadyLinkedError,
    InvalidLinkingTokenError,
    TelegramAPIError,
)
from .linking import TelegramLinkingService, is_linking_token
from .models import (
    LinkingToken,
    LinkStatus,
    LinkTokenResponse,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
    UserContext,
)
from .repository import (
    ILinkingTokenRepository,
    InMemoryLinkingTokenRepository,
    SupabaseLinkingTokenRepository,
)
from .router import MessageRouter

__all__ = [
    "TelegramBotService",
    "poll_forever",
    "TelegramBotClient",
    "TelegramLinkingService",
    "is_linking_token",
    "MessageRouter",
    # Exceptions
    "AlreadyLinkedError",
    "ChatAlreadyLinkedError",
    "InvalidLinkingTokenError",
    "TelegramAPIError",
    # Models
    "LinkingToken",
    "LinkStatus",
    "LinkTokenResponse",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
    "UserContext",
    # Repositories
    "ILinkingTokenRepository",
    "InMemoryLinkingTokenRepository",
    "SupabaseLinkingTokenRepository",
]
