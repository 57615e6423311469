"""
Fixtures for Telegram tests.

Services run in memory on a shared test clock. FakeBot records replies
instead of calling the Bot API; n8n is the real client over a
MockTransport.
"""

import json
from datetime import timedelta
from typing import Any, Optional

import httpx
import pytest

from modules.profiles import InMemoryProfileRepository, Profile, ProfileService
from modules.telegram import (
    MessageRouter,
    TelegramBotService,
    TelegramLinkingService,
    TelegramUpdate,
)
from modules.usage import AuditService, UsageService
from modules.workflows import N8nClient

CHAT_ID = 555000111


class FakeBot:
    """Records what the bot service would send."""

    def __init__(self, updates: Optional[list[list[TelegramUpdate]]] = None):
        self.sent: list[tuple[Any, str]] = []
        self.actions: list[tuple[Any, str]] = []
        self.offsets: list[Optional[int]] = []
        self._batches = list(updates or [])

    async def send_message(self, chat_id, text, parse_mode="HTML") -> bool:
        self.sent.append((chat_id, text))
        return True

    async def send_chat_action(self, chat_id, action="typing") -> bool:
        self.actions.append((chat_id, action))
        return True

    async def get_updates(self, offset=None, timeout=30) -> list[TelegramUpdate]:
        self.offsets.append(offset)
        return self._batches.pop(0) if self._batches else []

    @property
    def last_reply(self) -> str:
        return self.sent[-1][1]


class FakeWorkflows:
    """n8n webhook endpoint answering every workflow path."""

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.status_code = 200
        self.body: Any = {"message": "Sunny, 21°C in Paris"}

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/webhook/"):]
        self.calls.append((path, json.loads(request.content)))
        return httpx.Response(self.status_code, json=self.body)


def make_update(text: Optional[str], chat_id: int = CHAT_ID, update_id: int = 1, **user: Any) -> TelegramUpdate:
    sender = {"id": chat_id, "first_name": "Ada", "username": "ada", **user}
    message: dict[str, Any] = {
        "message_id": update_id * 10,
        "from": sender,
        "chat": {"id": chat_id, "type": "private"},
        "date": 1773144000,
    }
    if text is not None:
        message["text"] = text
    return TelegramUpdate.model_validate({"update_id": update_id, "message": message})


@pytest.fixture
def profile_repository():
    return InMemoryProfileRepository()


@pytest.fixture
def profiles(profile_repository, clock):
    return ProfileService(profile_repository, clock=clock)


@pytest.fixture
def audit():
    return AuditService()


@pytest.fixture
def usage(profiles, clock):
    return UsageService(profiles, clock=clock)


@pytest.fixture
def linking(profiles, audit, clock):
    return TelegramLinkingService(profiles, audit, clock=clock, token_ttl_minutes=10)


@pytest.fixture
def add_profile(profile_repository, clock):
    """Insert a profile in its trial; keyword arguments override fields."""

    def _add(auth_user_id: str = "user-1", **overrides: Any) -> Profile:
        data = {
            "id": f"profile-{auth_user_id}",
            "auth_user_id": auth_user_id,
            "email": f"{auth_user_id}@example.com",
            "trial_started_at": clock.now,
            "trial_expires_at": clock.now + timedelta(days=7),
            "quota_limit": 50,
            "created_at": clock.now,
            "updated_at": clock.now,
        }
        data.update(overrides)
        return profile_repository.insert(Profile(**data))

    return _add


@pytest.fixture
def linked_profile(add_profile, clock):
    return add_profile(telegram_chat_id=str(CHAT_ID), telegram_linked_at=clock.now)


@pytest.fixture
def bot():
    return FakeBot()


@pytest.fixture
def workflows():
    return FakeWorkflows()


@pytest.fixture
def n8n(workflows):
    return N8nClient(
        base_url="http://n8n.test",
        api_key="test-api-key",
        transport=httpx.MockTransport(workflows.handle),
    )


@pytest.fixture
def bot_service(bot, linking, usage, audit, n8n):
    return TelegramBotService(bot, linking, usage, audit, n8n, MessageRouter())
