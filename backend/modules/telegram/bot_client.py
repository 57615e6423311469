"""
Telegram Bot API client.
"""

import logging
from typing import Any, Optional

import httpx

from shared.config import get_settings
from .exceptions import TelegramAPIError
from .models import TelegramUpdate

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096


class TelegramBotClient:
    """
    Thin async wrapper over the Bot API methods the bot uses.

    send_message and send_chat_action never raise: a failed reply is
    logged and reported as False. get_updates and set_webhook raise
    TelegramAPIError.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        api_url: str = TELEGRAM_API_URL,
    ):
        self._token = token or get_settings().telegram_bot_token
        if not self._token:
            raise ValueError(
                "Telegram bot token missing. Set the TELEGRAM_BOT_TOKEN environment variable."
            )
        self._client = httpx.AsyncClient(
            base_url=f"{api_url}/bot{self._token}",
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TelegramBotClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _call(
        self,
        method: str,
        payload: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        try:
            response = await self._client.post(
                f"/{method}",
                json=payload or {},
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            raise TelegramAPIError(method, str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {"ok": False, "description": response.text}

        if response.status_code >= 400 or not data.get("ok"):
            raise TelegramAPIError(
                method,
                data.get("description", f"HTTP {response.status_code}"),
                {"status_code": response.status_code},
            )
        return data.get("result")

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        parse_mode: Optional[str] = "HTML",
    ) -> bool:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text[:MAX_MESSAGE_LENGTH],
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        try:
            await self._call("sendMessage", payload)
        except TelegramAPIError as e:
            logger.error(f"Failed to send message to {chat_id}: {e.message}")
            return False
        return True

    async def send_chat_action(self, chat_id: int | str, action: str = "typing") -> bool:
        try:
            await self._call("sendChatAction", {"chat_id": chat_id, "action": action})
        except TelegramAPIError as e:
            logger.debug(f"sendChatAction failed for {chat_id}: {e.message}")
            return False
        return True

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> list[TelegramUpdate]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # The HTTP timeout must outlast the long-poll timeout
        result = await self._call("getUpdates", payload, timeout=timeout + 10)
        return [TelegramUpdate.model_validate(u) for u in result or []]

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        payload: dict[str, Any] = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        return bool(await self._call("setWebhook", payload))

    async def delete_webhook(self) -> bool:
        return bool(await self._call("deleteWebhook", {"drop_pending_updates": False}))

    async def get_me(self) -> dict[str, Any]:
        return await self._call("getMe")
