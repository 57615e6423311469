"""
Webhook re-registration.

n8n sometimes keeps a workflow marked active while its production webhook
returns 404. Deactivating, waiting, reactivating and waiting again makes
it register the webhooks anew; each path is then tested once.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .client import N8nClient
from .definitions import classify_webhook_status, has_webhook_node, webhook_paths
from .exceptions import N8nError
from .models import RepairReport, RepairStatus, WebhookCheck, Workflow

logger = logging.getLogger(__name__)

DEACTIVATE_WAIT_SECONDS = 3.0
ACTIVATE_WAIT_SECONDS = 5.0

Sleeper = Callable[[float], Awaitable[Any]]


def probe_payload(path: str) -> dict[str, Any]:
    return {
        "content": f"TEST: This is a test document for webhook path {path}",
        "type": "test",
        "source": "webhook-registration-fix",
    }


class WebhookRepairer:
    """Runs the deactivate/reactivate/test sequence over webhook workflows."""

    def __init__(
        self,
        client: N8nClient,
        deactivate_wait: float = DEACTIVATE_WAIT_SECONDS,
        activate_wait: float = ACTIVATE_WAIT_SECONDS,
        sleep: Optional[Sleeper] = None,
    ):
        self._client = client
        self._deactivate_wait = deactivate_wait
        self._activate_wait = activate_wait
        self._sleep = sleep or asyncio.sleep

    async def repair(self, workflow: Workflow) -> RepairReport:
        paths = webhook_paths(workflow)
        report = RepairReport(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            status=RepairStatus.NO_WEBHOOK_PATHS,
            webhook_paths=paths,
        )
        if not paths:
            logger.warning(f"No webhook paths found in workflow {workflow.name}")
            return report

        try:
            try:
                await self._client.deactivate_workflow(workflow.id)
            except N8nError as e:
                # It may already be inactive
                logger.warning(f"Deactivation of {workflow.id} failed: {e.message}")

            await self._sleep(self._deactivate_wait)

            try:
                await self._client.activate_workflow(workflow.id)
            except N8nError as e:
                logger.error(f"Reactivation of {workflow.id} failed: {e.message}")
                report.status = RepairStatus.REACTIVATION_FAILED
                report.error = e.message
                return report

            await self._sleep(self._activate_wait)

            for path in paths:
                result = await self._client.trigger_webhook(path, probe_payload(path))
                report.checks.append(
                    WebhookCheck(
                        path=path,
                        status_code=result.status_code,
                        status=classify_webhook_status(result.status_code),
                        body=result.body,
                    )
                )
        except N8nError as e:
            logger.error(f"Error fixing {workflow.name}: {e.message}")
            report.status = RepairStatus.ERROR
            report.error = e.message
            return report

        report.status = RepairStatus.REACTIVATED
        logger.info(
            f"Reactivated {workflow.name}: {report.working_paths}/{len(paths)} webhooks working"
        )
        return report

    async def repair_all(self, workflow_ids: Optional[list[str]] = None) -> list[RepairReport]:
        """Repair the given workflows, or every workflow with a webhook node."""
        if workflow_ids:
            workflows = [await self._client.get_workflow(wid) for wid in workflow_ids]
        else:
            # The list endpoint omits nodes on some n8n versions
            workflows = [
                await self._client.get_workflow(w.id)
                for w in await self._client.list_workflows()
            ]
            workflows = [w for w in workflows if has_webhook_node(w)]

        reports = []
        for workflow in workflows:
            reports.append(await self.repair(workflow))
        return reports
