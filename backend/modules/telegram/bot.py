"""
Telegram bot update handling.

One entry point, handle_update(), serves both the webhook route and the
long-polling CLI. Free text from a linked user passes three gates (bot
access, tier permission, quota) before it is forwarded to the matching
n8n workflow webhook; the bot replies with the workflow's ``message``.
"""

import asyncio
import html
import logging
import time
from typing import Any, Optional

from modules.usage import IAuditService, IUsageService, QuotaExceededError, UsageLog
from modules.workflows import N8nClient, N8nError
from shared.config import get_settings
from .bot_client import TelegramBotClient
from .exceptions import ChatAlreadyLinkedError, InvalidLinkingTokenError, TelegramAPIError
from .linking import TelegramLinkingService, is_linking_token
from .models import TelegramMessage, TelegramUpdate, TelegramUser, UserContext
from .router import WORKFLOW_LABELS, MessageRouter

logger = logging.getLogger(__name__)

WORKFLOW_WEBHOOK_PREFIX = "api/v1"

LINKING_ERRORS = {
    "malformed": "That doesn't look like a linking code. Copy it again from your dashboard.",
    "not found": "That linking code is not valid. Generate a new one from your dashboard.",
    "already used": "That linking code has already been used. Generate a new one from your dashboard.",
    "expired": "That linking code has expired. Codes are valid for 10 minutes; generate a new one from your dashboard.",
}


class TelegramBotService:
    """Turns Telegram updates into replies."""

    def __init__(
        self,
        bot: TelegramBotClient,
        linking: TelegramLinkingService,
        usage: IUsageService,
        audit: IAuditService,
        n8n: Optional[N8nClient] = None,
        router: Optional[MessageRouter] = None,
    ):
        self._bot = bot
        self._linking = linking
        self._usage = usage
        self._audit = audit
        self._n8n = n8n
        self._router = router or MessageRouter()
        self._frontend_url = get_settings().frontend_url.rstrip("/")

    async def handle_update(self, update: TelegramUpdate) -> Optional[str]:
        """
        Handle one update and send the reply.

        Returns:
            The reply text, or None if the update carried no text
        """
        message = update.effective_message
        if message is None or not message.text:
            return None

        text = message.text.strip()
        if text.startswith("/"):
            reply = await self._handle_command(message, text)
        elif is_linking_token(text):
            reply = await self._link(message, text)
        else:
            reply = await self._handle_text(message, text)

        await self._bot.send_message(message.chat.id, reply)
        return reply

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def _handle_command(self, message: TelegramMessage, text: str) -> str:
        parts = text.split()
        command = parts[0].split("@")[0].lower()
        argument = parts[1] if len(parts) > 1 else None
        chat_id = message.chat.id

        if command in ("/start", "/link") and argument and is_linking_token(argument):
            return await self._link(message, argument)

        context = await self._linking.resolve_user(chat_id)
        await self._audit.log_action(
            "command",
            auth_user_id=context.auth_user_id if context else None,
            telegram_chat_id=str(chat_id),
            action_detail=command,
        )

        if command == "/start":
            if context:
                return self._welcome_back(message)
            return self._welcome(message) + "\n\n" + self._linking_instructions()

        if command == "/link":
            if context:
                return "✅ Your Telegram account is already linked. Send /status to see your plan."
            return self._linking_instructions()

        if command not in ("/help", "/status", "/unlink"):
            return "I don't know that command. Send /help to see what I can do."

        if context is None:
            return "Your Telegram account isn't linked yet.\n\n" + self._linking_instructions()

        if command == "/help":
            return self._help(context)
        if command == "/status":
            return self._status(context)

        await self._linking.unlink_account(context.auth_user_id)
        return (
            "Your Telegram account has been unlinked. "
            f"Link it again any time from {self._frontend_url}/dashboard"
        )

    async def _link(self, message: TelegramMessage, token: str) -> str:
        user = message.from_user or TelegramUser(id=message.chat.id)
        try:
            await self._linking.link_account(token, message.chat.id, user)
        except InvalidLinkingTokenError as e:
            return "❌ " + LINKING_ERRORS.get(e.reason, html.escape(e.message))
        except ChatAlreadyLinkedError:
            return "❌ This Telegram account is already linked to another Clixen account."

        name = html.escape(user.first_name or "there")
        return (
            f"✅ Account linked! Welcome, {name}.\n\n"
            "Just tell me what you need, for example:\n"
            "• <i>What's the weather in Paris?</i>\n"
            "• <i>Translate good morning to Spanish</i>\n\n"
            "Send /help for everything I can do."
        )

    # -------------------------------------------------------------------------
    # Free text
    # -------------------------------------------------------------------------

    async def _handle_text(self, message: TelegramMessage, text: str) -> str:
        chat_id = str(message.chat.id)
        context = await self._linking.resolve_user(chat_id)

        if context is None:
            await self._audit.log_action(
                "message", telegram_chat_id=chat_id, action_detail="unlinked", success=False
            )
            return "Please link your Clixen account first.\n\n" + self._linking_instructions()

        if not context.has_access:
            await self._deny(context, "access_denied")
            if context.trial.is_expired:
                return (
                    "⏰ Your free trial has expired.\n\n"
                    f"Upgrade to keep automating: {self._frontend_url}/pricing"
                )
            return f"A subscription is required to use the bot: {self._frontend_url}/pricing"

        workflow = self._router.route(text)
        if workflow is None:
            await self._audit.log_action(
                "message",
                auth_user_id=context.auth_user_id,
                telegram_chat_id=chat_id,
                action_detail="no_route",
            )
            return "I'm not sure what you'd like me to do.\n\n" + self._help(context)

        if workflow not in context.permissions:
            await self._deny(context, "permission_denied", workflow)
            return (
                f"🔒 {WORKFLOW_LABELS.get(workflow, workflow)} is not included in your plan.\n\n"
                f"Upgrade to unlock it: {self._frontend_url}/pricing"
            )

        try:
            await self._usage.check_and_consume(context.auth_user_id, workflow)
        except QuotaExceededError as e:
            await self._deny(context, "quota_exceeded", workflow)
            return (
                f"📊 You've used all {e.limit} requests in your plan.\n\n"
                f"Upgrade for more: {self._frontend_url}/pricing"
            )

        return await self._run_workflow(context, workflow, text, message)

    async def _run_workflow(
        self,
        context: UserContext,
        workflow: str,
        text: str,
        message: TelegramMessage,
    ) -> str:
        await self._bot.send_chat_action(message.chat.id, "typing")

        started = time.monotonic()
        reply, success, status_code = await self._forward(context, workflow, text, message)
        duration_ms = int((time.monotonic() - started) * 1000)

        await self._usage.record_usage(
            UsageLog(
                auth_user_id=context.auth_user_id,
                action="workflow_request",
                workflow=workflow,
                success=success,
                duration_ms=duration_ms,
                metadata={"status_code": status_code},
            )
        )
        await self._audit.log_action(
            "workflow_request",
            auth_user_id=context.auth_user_id,
            telegram_chat_id=context.telegram_chat_id,
            action_detail=workflow,
            context={"status_code": status_code},
            success=success,
            duration_ms=duration_ms,
        )
        return reply

    async def _forward(
        self,
        context: UserContext,
        workflow: str,
        text: str,
        message: TelegramMessage,
    ) -> tuple[str, bool, Optional[int]]:
        failure = "⚠️ Something went wrong while processing your request. Please try again later."
        if self._n8n is None:
            logger.error("n8n is not configured; cannot forward bot request")
            return failure, False, None

        payload: dict[str, Any] = {
            "message": text,
            "workflow": workflow,
            "user": {
                "id": context.auth_user_id,
                "email": context.email,
                "tier": context.tier.value,
                "quota_remaining": context.quota_remaining,
            },
            "telegram": {
                "chat_id": message.chat.id,
                "message_id": message.message_id,
                "username": message.from_user.username if message.from_user else None,
            },
        }
        try:
            result = await self._n8n.trigger_webhook(
                f"{WORKFLOW_WEBHOOK_PREFIX}/{workflow}", payload
            )
        except N8nError as e:
            logger.error(f"Workflow {workflow} unreachable: {e.message}")
            return failure, False, None

        if not result.ok:
            logger.error(f"Workflow {workflow} returned {result.status_code}: {result.body}")
            return failure, False, result.status_code

        if isinstance(result.body, dict) and result.body.get("message"):
            return html.escape(str(result.body["message"])), True, result.status_code
        return "✅ Done!", True, result.status_code

    async def _deny(self, context: UserContext, reason: str, workflow: Optional[str] = None) -> None:
        await self._audit.log_action(
            "message",
            auth_user_id=context.auth_user_id,
            telegram_chat_id=context.telegram_chat_id,
            action_detail=reason,
            context={"workflow": workflow} if workflow else None,
            success=False,
        )

    # -------------------------------------------------------------------------
    # Texts
    # -------------------------------------------------------------------------

    def _welcome(self, message: TelegramMessage) -> str:
        name = message.from_user.first_name if message.from_user else None
        return f"👋 Welcome to Clixen AI, {html.escape(name or 'there')}!"

    def _welcome_back(self, message: TelegramMessage) -> str:
        return self._welcome(message) + "\n\nYour account is linked. Send /help to see what I can do."

    def _linking_instructions(self) -> str:
        return (
            "To link your account:\n"
            f"1. Sign in at {self._frontend_url}/dashboard\n"
            "2. Click <b>Link Telegram</b> to get a code\n"
            "3. Send the code here (it is valid for 10 minutes)"
        )

    def _help(self, context: UserContext) -> str:
        lines = ["Here's what I can do on your plan:"]
        for workflow in self._router.workflows:
            if workflow in context.permissions:
                lines.append(f"• {WORKFLOW_LABELS.get(workflow, workflow)}")
        lines.append("")
        lines.append("Commands: /status, /unlink, /help")
        return "\n".join(lines)

    def _status(self, context: UserContext) -> str:
        lines = [
            "<b>Account status</b>",
            f"Email: {html.escape(context.email)}",
            f"Plan: {context.tier.value.capitalize()}",
            f"Requests: {context.quota_used}/{context.quota_limit}",
        ]
        if context.trial.is_active:
            lines.append(f"Trial: {context.trial.days_remaining} day(s) remaining")
        elif context.trial.is_expired:
            lines.append("Trial: expired")
        return "\n".join(lines)


async def poll_forever(
    bot: TelegramBotClient,
    service: TelegramBotService,
    timeout: int = 30,
    error_delay: float = 5.0,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Long-poll getUpdates and hand each update to the bot service."""
    offset: Optional[int] = None
    logger.info("Telegram bot polling started")

    while stop is None or not stop.is_set():
        try:
            updates = await bot.get_updates(offset=offset, timeout=timeout)
        except TelegramAPIError as e:
            logger.error(f"getUpdates failed: {e.message}")
            await asyncio.sleep(error_delay)
            continue

        for update in updates:
            offset = update.update_id + 1
            try:
                await service.handle_update(update)
            except Exception:
                logger.exception(f"Failed to handle update {update.update_id}")

    logger.info("Telegram bot polling stopped")
