"""Tests for N8nClient against a fake n8n instance."""

import httpx
import pytest

from modules.workflows import (
    N8nAPIError,
    N8nClient,
    N8nConnectionError,
    N8nNotConfiguredError,
    WorkflowNotFoundError,
)
from tests.modules.workflows.conftest import N8N_URL, FakeN8n, workflow_definition


class TestConfiguration:
    def test_requires_url_and_key(self):
        with pytest.raises(N8nNotConfiguredError) as exc_info:
            N8nClient()
        assert exc_info.value.code == "N8N_NOT_CONFIGURED"

    def test_reads_settings(self, monkeypatch):
        from shared.config import get_settings

        monkeypatch.setenv("N8N_BASE_URL", "http://n8n.example.com/")
        monkeypatch.setenv("N8N_API_KEY", "key")
        get_settings.cache_clear()

        client = N8nClient()
        assert client.base_url == "http://n8n.example.com"

    def test_webhook_url(self, client):
        assert client.webhook_url("/api/v1/weather") == f"{N8N_URL}/webhook/api/v1/weather"


class TestWorkflows:
    @pytest.mark.asyncio
    async def test_list_follows_cursor(self, make_client):
        server = FakeN8n(page_size=2)
        for i in range(5):
            server.add(workflow_definition(f"Workflow {i}"))

        async with make_client(server) as client:
            workflows = await client.list_workflows()

        assert [w.name for w in workflows] == [f"Workflow {i}" for i in range(5)]
        cursors = [r.url.params.get("cursor") for r in server.calls("GET", "/api/v1/workflows")]
        assert cursors == [None, "2", "4"]

    @pytest.mark.asyncio
    async def test_sends_api_key(self, client, n8n):
        await client.list_workflows(active=True)
        request = n8n.requests[0]
        assert request.headers["X-N8N-API-KEY"] == "test-api-key"
        assert request.url.params["active"] == "true"

    @pytest.mark.asyncio
    async def test_get_workflow(self, client, n8n):
        created = n8n.add(workflow_definition("Weather", "api/v1/weather"))
        workflow = await client.get_workflow(created["id"])
        assert workflow.name == "Weather"
        assert len(workflow.nodes) == 1

    @pytest.mark.asyncio
    async def test_get_missing_workflow(self, client):
        with pytest.raises(WorkflowNotFoundError) as exc_info:
            await client.get_workflow("missing")
        assert exc_info.value.details["workflow_id"] == "missing"

    @pytest.mark.asyncio
    async def test_create_update_delete(self, client, n8n):
        created = await client.create_workflow(workflow_definition("Translate"))
        assert created.id in n8n.workflows

        updated = await client.update_workflow(created.id, workflow_definition("Translate v2"))
        assert updated.name == "Translate v2"

        await client.delete_workflow(created.id)
        assert n8n.workflows == {}

    @pytest.mark.asyncio
    async def test_activate_and_deactivate(self, client, n8n):
        created = n8n.add(workflow_definition("Weather"))
        assert (await client.activate_workflow(created["id"])).active is True
        assert (await client.deactivate_workflow(created["id"])).active is False

    @pytest.mark.asyncio
    async def test_api_error(self, make_client):
        async with make_client(api_key="wrong-key") as client:
            with pytest.raises(N8nAPIError) as exc_info:
                await client.list_workflows()
        assert exc_info.value.status_code == 401
        assert exc_info.value.body == {"message": "unauthorized"}

    @pytest.mark.asyncio
    async def test_list_executions(self, client, n8n):
        n8n.executions = [
            {"id": 1, "workflowId": "wf1", "status": "success", "mode": "webhook", "finished": True,
             "startedAt": "2026-03-10T12:00:00.000Z"},
            {"id": 2, "workflowId": "wf2", "status": "error", "mode": "webhook", "finished": True},
        ]

        executions = await client.list_executions("wf1", limit=5)

        assert [e.id for e in executions] == ["1"]
        assert executions[0].started_at.year == 2026
        assert n8n.requests[0].url.params["limit"] == "5"


class TestWebhooks:
    @pytest.mark.asyncio
    async def test_active_webhook(self, client, n8n):
        n8n.add(workflow_definition("Weather", "api/v1/weather"), active=True)

        result = await client.trigger_webhook("/api/v1/weather", {"city": "Paris"})

        assert result.ok is True
        assert result.path == "api/v1/weather"
        assert result.body == {"received": {"city": "Paris"}}
        assert result.elapsed_ms >= 0
        assert "X-N8N-API-KEY" not in n8n.requests[0].headers

    @pytest.mark.asyncio
    async def test_unregistered_webhook_is_not_raised(self, client):
        result = await client.trigger_webhook("api/v1/missing", {})
        assert result.status_code == 404
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_plain_text_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="Workflow was started"))
        async with N8nClient(base_url=N8N_URL, api_key="k", transport=transport) as client:
            result = await client.trigger_webhook("hook", {})
        assert result.body == "Workflow was started"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with N8nClient(base_url=N8N_URL, api_key="k", transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(N8nConnectionError):
                await client.trigger_webhook("hook", {})
            with pytest.raises(N8nConnectionError):
                await client.list_workflows()
