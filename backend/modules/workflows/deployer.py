"""
Workflow deployment and housekeeping.

deploy() upserts a definition by name, activates it and smoke-tests its
webhooks. cleanup() removes workflows left behind by test runs.
"""

import asyncio
import logging
from typing import Any, Optional

from .client import N8nClient
from .definitions import strip_read_only_fields, validate_workflow_definition, webhook_paths
from .models import CleanupReport, DeployReport, WebhookResult, Workflow

logger = logging.getLogger(__name__)


class WorkflowDeployer:
    """Creates or updates workflows on an n8n instance."""

    def __init__(self, client: N8nClient):
        self._client = client

    async def find_by_name(self, name: str) -> Optional[Workflow]:
        for workflow in await self._client.list_workflows():
            if workflow.name == name:
                return workflow
        return None

    async def deploy(
        self,
        definition: dict[str, Any],
        activate: bool = True,
        smoke_payload: Optional[dict[str, Any]] = None,
    ) -> DeployReport:
        """
        Deploy a workflow definition.

        An existing workflow with the same name is updated in place,
        otherwise a new one is created. Webhooks are only smoke-tested
        when the workflow was activated and a payload is given.
        """
        validate_workflow_definition(definition)
        body = strip_read_only_fields(definition)

        existing = await self.find_by_name(body["name"])
        if existing:
            logger.info(f"Updating existing workflow {existing.id} ({existing.name})")
            workflow = await self._client.update_workflow(existing.id, body)
        else:
            workflow = await self._client.create_workflow(body)

        report = DeployReport(
            workflow_id=workflow.id,
            name=workflow.name,
            created=existing is None,
        )

        if activate:
            await self._client.activate_workflow(workflow.id)
            report.activated = True
            logger.info(f"Activated workflow {workflow.id}")

            if smoke_payload is not None:
                report.webhook_results = await self.smoke_test(
                    webhook_paths(definition), smoke_payload
                )

        return report

    async def smoke_test(
        self,
        paths: list[str],
        payload: dict[str, Any],
        concurrent: bool = False,
    ) -> list[WebhookResult]:
        """POST the payload to each path, optionally all at once."""
        if concurrent:
            return list(
                await asyncio.gather(
                    *(self._client.trigger_webhook(path, payload) for path in paths)
                )
            )
        results = []
        for path in paths:
            results.append(await self._client.trigger_webhook(path, payload))
        return results

    async def cleanup(self, name_prefix: str, dry_run: bool = False) -> CleanupReport:
        """Delete every workflow whose name starts with name_prefix."""
        if not name_prefix:
            raise ValueError("name_prefix must not be empty")

        report = CleanupReport(prefix=name_prefix, dry_run=dry_run)
        for workflow in await self._client.list_workflows():
            if not workflow.name.startswith(name_prefix):
                continue
            report.matched.append(workflow)
            if dry_run:
                continue
            await self._client.delete_workflow(workflow.id)
            report.deleted.append(workflow.id)

        return report
