"""
Workflows module.

Manages automation workflows on the hosted n8n instance through its
REST API: deploy, activate, test and re-register webhooks.

Public API:
- N8nClient: Async REST/webhook client
- WorkflowDeployer: Upsert, activate, smoke-test and clean up workflows
- WebhookRepairer: Deactivate/reactivate/test sequence for 404 webhooks
- definitions: Helpers for workflow JSON files
"""

from .client import N8nClient
from .definitions import (
    classify_webhook_status,
    load_workflow_definition,
    strip_read_only_fields,
    webhook_paths,
)
from .deployer import WorkflowDeployer
from .exceptions import (
    N8nError,
    N8nAPIError,
    N8nConnectionError,
    N8nNotConfiguredError,
    WorkflowNotFoundError,
    InvalidWorkflowDefinitionError,
)
from .models import (
    CleanupReport,
    DeployReport,
    Execution,
    RepairReport,
    RepairStatus,
    WebhookCheck,
    WebhookResult,
    WebhookStatus,
    Workflow,
)
from .repair import WebhookRepairer

__all__ = [
    "N8nClient",
    "WorkflowDeployer",
    "WebhookRepairer",
    "classify_webhook_status",
    "load_workflow_definition",
    "strip_read_only_fields",
    "webhook_paths",
    # Exceptions
    "N8nError",
    "N8nAPIError",
    "N8nConnectionError",
    "N8nNotConfiguredError",
    "WorkflowNotFoundError",
    "InvalidWorkflowDefinitionError",
    # Models
    "CleanupReport",
    "DeployReport",
    "Execution",
    "RepairReport",
    "RepairStatus",
    "WebhookCheck",
    "WebhookResult",
    "WebhookStatus",
    "Workflow",
]
