"""
Telegram endpoints.

Dashboard users request a linking token here and manage the link; the
Bot API delivers updates to the webhook route.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header

from modules.profiles import IProfileService
from modules.telegram import (
    LinkStatus,
    LinkTokenResponse,
    TelegramBotService,
    TelegramLinkingService,
    TelegramUpdate,
)
from shared.config import get_settings
from shared.models import AuthenticatedUser
from ..dependencies import get_bot_service, get_linking_service, get_profile_service
from ..middleware.auth import get_current_user
from .users import ensure_profile

logger = logging.getLogger(__name__)

router = APIRouter()


def build_instructions(bot_username: str, minutes: int) -> list[str]:
    return [
        f"Open Telegram and start a chat with @{bot_username}",
        "Send the linking code shown here, or tap the deep link",
        f"The code expires in {minutes} minutes and can be used once",
    ]


@router.post("/link", response_model=LinkTokenResponse)
async def create_link_token(
    user: AuthenticatedUser = Depends(get_current_user),
    linking: TelegramLinkingService = Depends(get_linking_service),
    profiles: IProfileService = Depends(get_profile_service),
) -> LinkTokenResponse:
    """
    Issue a one-time token for linking a Telegram chat.

    Fails with 409 if the account is already linked.
    """
    await ensure_profile(profiles, user)
    token = await linking.generate_linking_token(user.id)

    bot_username = get_settings().telegram_bot_username
    expires_in = linking.token_ttl_seconds
    return LinkTokenResponse(
        token=token.token,
        expires_in=expires_in,
        bot_username=bot_username,
        deep_link=f"https://t.me/{bot_username}?start={token.token}",
        instructions=build_instructions(bot_username, expires_in // 60),
    )


@router.get("/link", response_model=LinkStatus)
async def get_link_status(
    user: AuthenticatedUser = Depends(get_current_user),
    linking: TelegramLinkingService = Depends(get_linking_service),
    profiles: IProfileService = Depends(get_profile_service),
) -> LinkStatus:
    """Get the Telegram link state of the current user."""
    await ensure_profile(profiles, user)
    return await linking.get_link_status(user.id)


@router.delete("/link", response_model=LinkStatus)
async def unlink(
    user: AuthenticatedUser = Depends(get_current_user),
    linking: TelegramLinkingService = Depends(get_linking_service),
) -> LinkStatus:
    """Unlink the Telegram chat from the current user."""
    await linking.unlink_account(user.id)
    return await linking.get_link_status(user.id)


@router.post("/webhook")
async def telegram_webhook(
    payload: dict[str, Any] = Body(...),
    secret_token: Optional[str] = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
    service: Optional[TelegramBotService] = Depends(get_bot_service),
) -> dict[str, bool]:
    """
    Receive a Bot API update.

    Always answers {"ok": true} so Telegram does not redeliver; failures
    are logged.
    """
    expected = get_settings().telegram_webhook_secret
    if expected and secret_token != expected:
        logger.warning("Rejected Telegram update with a bad secret token")
        return {"ok": True}

    if service is None:
        logger.warning("Telegram update received but TELEGRAM_BOT_TOKEN is not set")
        return {"ok": True}

    try:
        update = TelegramUpdate.model_validate(payload)
        await service.handle_update(update)
    except Exception:
        logger.exception(f"Failed to handle Telegram update {payload.get('update_id')}")

    return {"ok": True}
