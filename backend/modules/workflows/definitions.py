"""
Helpers for n8n workflow definition files.
"""

import json
from pathlib import Path
from typing import Any, Union

from .exceptions import InvalidWorkflowDefinitionError
from .models import Workflow, WebhookStatus

WEBHOOK_NODE_TYPE = "n8n-nodes-base.webhook"
REQUIRED_FIELDS = ("name", "nodes", "connections")

# The public API rejects anything else on create/update (id, active, tags, ...)
WRITABLE_FIELDS = ("name", "nodes", "connections", "settings", "staticData")


def load_workflow_definition(path: Union[str, Path]) -> dict[str, Any]:
    """
    Load and validate a workflow JSON file.

    Raises:
        InvalidWorkflowDefinitionError: If the file is not valid JSON or
            lacks name, nodes or connections
    """
    path = Path(path)
    try:
        definition = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidWorkflowDefinitionError(str(path), str(e)) from e

    validate_workflow_definition(definition, source=str(path))
    return definition


def validate_workflow_definition(definition: Any, source: str = "<inline>") -> None:
    if not isinstance(definition, dict):
        raise InvalidWorkflowDefinitionError(source, "expected a JSON object")
    missing = [f for f in REQUIRED_FIELDS if f not in definition]
    if missing:
        raise InvalidWorkflowDefinitionError(source, f"missing {', '.join(missing)}")
    if not isinstance(definition["nodes"], list):
        raise InvalidWorkflowDefinitionError(source, "nodes must be a list")


def strip_read_only_fields(definition: dict[str, Any]) -> dict[str, Any]:
    stripped = {k: definition[k] for k in WRITABLE_FIELDS if k in definition}
    stripped.setdefault("settings", {})
    return stripped


def webhook_paths(workflow: Union[Workflow, dict[str, Any]]) -> list[str]:
    """Return the parameters.path of every webhook node that has one."""
    nodes = workflow.nodes if isinstance(workflow, Workflow) else workflow.get("nodes", [])
    paths = []
    for node in nodes or []:
        if node.get("type") != WEBHOOK_NODE_TYPE:
            continue
        path = (node.get("parameters") or {}).get("path")
        if path:
            paths.append(path.lstrip("/"))
    return paths


def has_webhook_node(workflow: Union[Workflow, dict[str, Any]]) -> bool:
    nodes = workflow.nodes if isinstance(workflow, Workflow) else workflow.get("nodes", [])
    return any(node.get("type") == WEBHOOK_NODE_TYPE for node in nodes or [])


def classify_webhook_status(status_code: int) -> WebhookStatus:
    if 200 <= status_code < 300:
        return WebhookStatus.WORKING
    if status_code == 404:
        return WebhookStatus.NOT_REGISTERED
    return WebhookStatus.ERROR
