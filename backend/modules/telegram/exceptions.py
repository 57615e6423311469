"""
Telegram module exceptions.
"""

from typing import Any, Optional

from shared.exceptions import ConflictError, ExternalServiceError, ValidationError


class AlreadyLinkedError(ConflictError):
    """Raised when requesting a linking token for an already linked account."""

    def __init__(self, telegram_username: Optional[str] = None):
        super().__init__(
            "Telegram account already linked",
            code="TELEGRAM_ALREADY_LINKED",
            details={"telegram_username": telegram_username},
        )


class ChatAlreadyLinkedError(ConflictError):
    """Raised when a Telegram chat is already linked to another account."""

    def __init__(self, chat_id: str):
        super().__init__(
            "This Telegram account is already linked to another Clixen account",
            code="TELEGRAM_CHAT_IN_USE",
            details={"telegram_chat_id": chat_id},
        )


class InvalidLinkingTokenError(ValidationError):
    """Raised when a linking token is malformed, unknown, used or expired."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid linking token: {reason}",
            code="INVALID_LINKING_TOKEN",
            details={"reason": reason},
        )
        self.reason = reason


class TelegramAPIError(ExternalServiceError):
    """Raised when the Bot API returns ok=false or an HTTP error."""

    def __init__(self, method: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Telegram {method} failed: {message}",
            service="telegram",
            code="TELEGRAM_API_ERROR",
            details={"method": method, **(details or {})},
        )
