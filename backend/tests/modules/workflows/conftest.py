"""
Fixtures for workflow tests.

FakeN8n answers the management API and production webhooks through an
httpx.MockTransport, so the real N8nClient is exercised end to end.
"""

import json
from typing import Any, Optional

import httpx
import pytest

from modules.workflows import N8nClient
from modules.workflows.definitions import WEBHOOK_NODE_TYPE

N8N_URL = "http://n8n.test"
N8N_KEY = "test-api-key"


def webhook_node(path: str, name: str = "Webhook") -> dict[str, Any]:
    return {
        "name": name,
        "type": WEBHOOK_NODE_TYPE,
        "parameters": {"path": path, "httpMethod": "POST"},
    }


def workflow_definition(name: str, *paths: str) -> dict[str, Any]:
    return {
        "name": name,
        "nodes": [webhook_node(p, f"Webhook {i}") for i, p in enumerate(paths)],
        "connections": {},
        "settings": {"executionOrder": "v1"},
    }


class FakeN8n:
    """In-memory n8n instance."""

    def __init__(self, page_size: int = 100):
        self.workflows: dict[str, dict[str, Any]] = {}
        self.executions: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.page_size = page_size
        # Paths that stay unregistered even while their workflow is active
        self.broken_paths: set[str] = set()
        self.failing_activations: set[str] = set()
        self._next_id = 1

    def add(self, definition: dict[str, Any], active: bool = False) -> dict[str, Any]:
        workflow_id = f"wf{self._next_id}"
        self._next_id += 1
        workflow = {"id": workflow_id, "active": active, **definition}
        self.workflows[workflow_id] = workflow
        return workflow

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.startswith("/webhook/"):
            return self._webhook(path[len("/webhook/"):], request)

        if request.headers.get("X-N8N-API-KEY") != N8N_KEY:
            return httpx.Response(401, json={"message": "unauthorized"})

        parts = path[len("/api/v1/"):].split("/")
        body = json.loads(request.content) if request.content else None

        if parts == ["workflows"]:
            if request.method == "GET":
                return self._list(request)
            return httpx.Response(200, json=self.add(body))

        if parts == ["executions"]:
            workflow_id = request.url.params.get("workflowId")
            data = [e for e in self.executions if not workflow_id or e["workflowId"] == workflow_id]
            return httpx.Response(200, json={"data": data, "nextCursor": None})

        workflow = self.workflows.get(parts[1])
        if workflow is None:
            return httpx.Response(404, json={"message": "Not Found"})

        if len(parts) == 3:
            return self._set_active(workflow, parts[2] == "activate")
        if request.method == "GET":
            return httpx.Response(200, json=workflow)
        if request.method == "PUT":
            workflow.update(body)
            return httpx.Response(200, json=workflow)
        if request.method == "DELETE":
            del self.workflows[workflow["id"]]
            return httpx.Response(200, json=workflow)
        return httpx.Response(405)

    def _list(self, request: httpx.Request) -> httpx.Response:
        # The list endpoint leaves out nodes, like some n8n versions do
        items = [
            {k: v for k, v in w.items() if k != "nodes"}
            for w in self.workflows.values()
        ]
        start = int(request.url.params.get("cursor") or 0)
        page = items[start : start + self.page_size]
        end = start + self.page_size
        return httpx.Response(
            200, json={"data": page, "nextCursor": str(end) if end < len(items) else None}
        )

    def _set_active(self, workflow: dict[str, Any], active: bool) -> httpx.Response:
        if active and workflow["id"] in self.failing_activations:
            return httpx.Response(400, json={"message": "Workflow could not be activated"})
        workflow["active"] = active
        return httpx.Response(200, json=workflow)

    def _webhook(self, hook: str, request: httpx.Request) -> httpx.Response:
        for workflow in self.workflows.values():
            if not workflow["active"] or hook in self.broken_paths:
                continue
            paths = [n["parameters"]["path"] for n in workflow.get("nodes", []) if n.get("type") == WEBHOOK_NODE_TYPE]
            if hook in paths:
                return httpx.Response(200, json={"received": json.loads(request.content)})
        return httpx.Response(
            404, json={"code": 404, "message": f'The requested webhook "POST {hook}" is not registered.'}
        )


@pytest.fixture
def n8n() -> FakeN8n:
    return FakeN8n()


@pytest.fixture
def make_client(n8n):
    """Build an N8nClient that talks to the fake instance."""

    def _make(server: Optional[FakeN8n] = None, api_key: str = N8N_KEY) -> N8nClient:
        return N8nClient(
            base_url=N8N_URL,
            api_key=api_key,
            transport=httpx.MockTransport((server or n8n).handle),
        )

    return _make


@pytest.fixture
def client(make_client) -> N8nClient:
    return make_client()
