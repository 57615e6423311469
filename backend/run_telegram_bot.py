#!/usr/bin/env python3
"""
Run the Clixen Telegram bot.

Usage:
    python run_telegram_bot.py poll                          # Long-polling (development)
    python run_telegram_bot.py set-webhook https://api.example.com/api/telegram/webhook
    python run_telegram_bot.py delete-webhook

Configuration:
    TELEGRAM_BOT_TOKEN must be set. set-webhook passes
    TELEGRAM_WEBHOOK_SECRET to Telegram when it is set.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console

from api.dependencies import get_container
from modules.telegram import TelegramAPIError, TelegramBotService, poll_forever
from shared.config import get_settings
from shared.logging_config import configure_logging

console = Console()
logger = logging.getLogger(__name__)


async def poll(timeout: int) -> int:
    container = get_container()
    bot = container.telegram_bot
    if bot is None:
        console.print("[red]Error:[/red] TELEGRAM_BOT_TOKEN is not set.")
        return 1

    if container.n8n is None:
        logger.warning("N8N_BASE_URL/N8N_API_KEY not set; workflow requests will fail")

    service = TelegramBotService(
        bot, container.linking, container.usage, container.audit, container.n8n
    )
    try:
        me = await bot.get_me()
        console.print(f"Polling as [bold]@{me.get('username')}[/bold] (Ctrl+C to stop)")
        # Updates are not delivered to getUpdates while a webhook is set
        await bot.delete_webhook()
        await poll_forever(bot, service, timeout=timeout)
    finally:
        await container.aclose()
    return 0


async def set_webhook(url: str) -> int:
    container = get_container()
    bot = container.telegram_bot
    if bot is None:
        console.print("[red]Error:[/red] TELEGRAM_BOT_TOKEN is not set.")
        return 1

    secret = get_settings().telegram_webhook_secret or None
    try:
        await bot.set_webhook(url, secret_token=secret)
    finally:
        await container.aclose()
    console.print(f"[green]✓[/green] Webhook set to {url}")
    if secret is None:
        console.print("[yellow]Warning:[/yellow] TELEGRAM_WEBHOOK_SECRET is not set; updates are not authenticated")
    return 0


async def delete_webhook() -> int:
    container = get_container()
    bot = container.telegram_bot
    if bot is None:
        console.print("[red]Error:[/red] TELEGRAM_BOT_TOKEN is not set.")
        return 1
    try:
        await bot.delete_webhook()
    finally:
        await container.aclose()
    console.print("[green]✓[/green] Webhook removed")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the Clixen Telegram bot")
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    poll_parser = sub.add_parser("poll", help="Receive updates by long polling")
    poll_parser.add_argument("--timeout", type=int, default=30, help="getUpdates timeout (seconds)")

    webhook_parser = sub.add_parser("set-webhook", help="Register the webhook URL with Telegram")
    webhook_parser.add_argument("url")

    sub.add_parser("delete-webhook", help="Remove the webhook")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "poll":
            return asyncio.run(poll(args.timeout))
        if args.command == "set-webhook":
            return asyncio.run(set_webhook(args.url))
        return asyncio.run(delete_webhook())
    except TelegramAPIError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    except KeyboardInterrupt:
        console.print("Stopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
