"""Tests for the Telegram linking and webhook endpoints."""

import re

import pytest

from api.app import app
from api.dependencies import get_bot_service
from modules.telegram import TelegramUser


class RecordingBotService:
    def __init__(self, fail: bool = False):
        self.updates = []
        self.fail = fail

    async def handle_update(self, update):
        self.updates.append(update)
        if self.fail:
            raise RuntimeError("boom")
        return "ok"


UPDATE = {
    "update_id": 1001,
    "message": {
        "message_id": 1,
        "from": {"id": 555, "first_name": "Ada", "username": "ada"},
        "chat": {"id": 555, "type": "private"},
        "date": 1767225600,
        "text": "/help",
    },
}


class TestLinkToken:
    def test_requires_authentication(self, client):
        assert client.post("/api/telegram/link").status_code == 401

    def test_issue_token(self, client, auth_headers):
        response = client.post("/api/telegram/link", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(r"[0-9a-f]{64}", data["token"])
        assert data["expires_in"] == 600
        assert data["bot_username"] == "clixen_bot"
        assert data["deep_link"] == f"https://t.me/clixen_bot?start={data['token']}"
        assert len(data["instructions"]) == 3

    def test_each_request_issues_a_new_token(self, client, auth_headers):
        first = client.post("/api/telegram/link", headers=auth_headers).json()["token"]
        second = client.post("/api/telegram/link", headers=auth_headers).json()["token"]
        assert first != second


class TestLinkStatus:
    def test_unlinked(self, client, auth_headers):
        response = client.get("/api/telegram/link", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["linked"] is False

    @pytest.mark.asyncio
    async def test_link_then_unlink(self, client, container, auth_headers):
        token = client.post("/api/telegram/link", headers=auth_headers).json()["token"]
        await container.linking.link_account(
            token, 555, TelegramUser(id=555, first_name="Ada", username="ada")
        )

        status = client.get("/api/telegram/link", headers=auth_headers).json()
        assert status["linked"] is True
        assert status["telegram_chat_id"] == "555"
        assert status["telegram_username"] == "ada"

        again = client.post("/api/telegram/link", headers=auth_headers)
        assert again.status_code == 409

        unlinked = client.delete("/api/telegram/link", headers=auth_headers)
        assert unlinked.status_code == 200
        assert unlinked.json()["linked"] is False


class TestWebhook:
    def test_without_bot_token(self, client):
        response = client.post("/api/telegram/webhook", json=UPDATE)
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_dispatches_update(self, client):
        service = RecordingBotService()
        app.dependency_overrides[get_bot_service] = lambda: service

        response = client.post("/api/telegram/webhook", json=UPDATE)
        assert response.json() == {"ok": True}
        assert len(service.updates) == 1
        assert service.updates[0].message.from_user.username == "ada"

    def test_handler_failure_still_ok(self, client):
        service = RecordingBotService(fail=True)
        app.dependency_overrides[get_bot_service] = lambda: service

        response = client.post("/api/telegram/webhook", json=UPDATE)
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_bad_secret_is_ignored(self, client, monkeypatch):
        monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "s3cret")
        from shared.config import get_settings
        get_settings.cache_clear()

        service = RecordingBotService()
        app.dependency_overrides[get_bot_service] = lambda: service

        response = client.post(
            "/api/telegram/webhook",
            json=UPDATE,
            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
        )
        assert response.json() == {"ok": True}
        assert service.updates == []

        client.post(
            "/api/telegram/webhook",
            json=UPDATE,
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
        )
        assert len(service.updates) == 1

    def test_malformed_update(self, client):
        service = RecordingBotService()
        app.dependency_overrides[get_bot_service] = lambda: service
        response = client.post("/api/telegram/webhook", json={"nonsense": True})
        assert response.json() == {"ok": True}
        assert service.updates == []
