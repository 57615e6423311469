"""
Async client for the n8n REST API and production webhooks.

Management calls go to ``/api/v1/...`` with the X-N8N-API-KEY header and
raise N8nAPIError on non-2xx responses. Webhook calls go to
``/webhook/<path>`` and return the status code as data, since 404 is the
expected answer for an inactive or unregistered path.
"""

import logging
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from .exceptions import (
    N8nAPIError,
    N8nConnectionError,
    N8nNotConfiguredError,
    WorkflowNotFoundError,
)
from .models import Execution, WebhookResult, Workflow

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
PAGE_SIZE = 100


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class N8nClient:
    """
    n8n API client.

    Usage:
        async with N8nClient() as n8n:
            workflows = await n8n.list_workflows()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._base_url = (base_url or settings.n8n_base_url).rstrip("/")
        self._api_key = api_key or settings.n8n_api_key
        if not self._base_url or not self._api_key:
            raise N8nNotConfiguredError()

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or settings.n8n_timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def webhook_url(self, path: str) -> str:
        return f"{self._base_url}/webhook/{path.lstrip('/')}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "N8nClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _api(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{API_PREFIX}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                params=params,
                headers={
                    "X-N8N-API-KEY": self._api_key,
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"n8n {method} {url} failed: {e}")
            raise N8nConnectionError(self._base_url, str(e)) from e

        if response.status_code >= 400:
            body = _response_body(response)
            logger.error(f"n8n {method} {url} returned {response.status_code}: {body}")
            raise N8nAPIError(method, url, response.status_code, body)

        if not response.content:
            return {}
        return response.json()

    # -------------------------------------------------------------------------
    # Workflows
    # -------------------------------------------------------------------------

    async def list_workflows(self, active: Optional[bool] = None) -> list[Workflow]:
        """List all workflows, following nextCursor pagination."""
        workflows: list[Workflow] = []
        params: dict[str, Any] = {"limit": PAGE_SIZE}
        if active is not None:
            params["active"] = str(active).lower()

        while True:
            data = await self._api("GET", "/workflows", params=params)
            workflows.extend(Workflow.from_api(w) for w in data.get("data", []))
            cursor = data.get("nextCursor")
            if not cursor:
                return workflows
            params["cursor"] = cursor

    async def get_workflow(self, workflow_id: str) -> Workflow:
        try:
            data = await self._api("GET", f"/workflows/{workflow_id}")
        except N8nAPIError as e:
            if e.status_code == 404:
                raise WorkflowNotFoundError(workflow_id) from e
            raise
        return Workflow.from_api(data)

    async def create_workflow(self, definition: dict[str, Any]) -> Workflow:
        data = await self._api("POST", "/workflows", json=definition)
        logger.info(f"Created workflow {data.get('id')} ({data.get('name')})")
        return Workflow.from_api(data)

    async def update_workflow(self, workflow_id: str, definition: dict[str, Any]) -> Workflow:
        data = await self._api("PUT", f"/workflows/{workflow_id}", json=definition)
        logger.info(f"Updated workflow {workflow_id}")
        return Workflow.from_api(data)

    async def delete_workflow(self, workflow_id: str) -> None:
        await self._api("DELETE", f"/workflows/{workflow_id}")
        logger.info(f"Deleted workflow {workflow_id}")

    async def activate_workflow(self, workflow_id: str) -> Workflow:
        data = await self._api("POST", f"/workflows/{workflow_id}/activate")
        return Workflow.from_api(data)

    async def deactivate_workflow(self, workflow_id: str) -> Workflow:
        data = await self._api("POST", f"/workflows/{workflow_id}/deactivate")
        return Workflow.from_api(data)

    # -------------------------------------------------------------------------
    # Executions
    # -------------------------------------------------------------------------

    async def list_executions(
        self, workflow_id: Optional[str] = None, limit: int = 20
    ) -> list[Execution]:
        params: dict[str, Any] = {"limit": limit}
        if workflow_id:
            params["workflowId"] = workflow_id
        data = await self._api("GET", "/executions", params=params)
        return [Execution.from_api(e) for e in data.get("data", [])]

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def trigger_webhook(
        self,
        path: str,
        payload: dict[str, Any],
        headers: Optional[dict[str, str]] = None,
    ) -> WebhookResult:
        """
        POST a JSON payload to a production webhook.

        Non-2xx responses are returned, not raised.

        Raises:
            N8nConnectionError: If the request could not be sent
        """
        url = self.webhook_url(path)
        started = time.monotonic()
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Webhook {url} failed: {e}")
            raise N8nConnectionError(url, str(e)) from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = WebhookResult(
            path=path.lstrip("/"),
            status_code=response.status_code,
            body=_response_body(response),
            elapsed_ms=elapsed_ms,
        )
        logger.debug(f"Webhook {url} returned {result.status_code} in {elapsed_ms}ms")
        return result
