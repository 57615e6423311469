"""
Workflow module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Workflow(BaseModel):
    """An n8n workflow as returned by the management API."""

    id: str
    name: str
    active: bool = False
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    connections: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Workflow":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            active=bool(data.get("active", False)),
            nodes=data.get("nodes") or [],
            connections=data.get("connections") or {},
            settings=data.get("settings") or {},
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


class Execution(BaseModel):
    """A workflow execution record."""

    id: str
    workflow_id: Optional[str] = None
    status: Optional[str] = None
    mode: Optional[str] = None
    finished: bool = False
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Execution":
        return cls(
            id=str(data.get("id", "")),
            workflow_id=str(data["workflowId"]) if data.get("workflowId") else None,
            status=data.get("status"),
            mode=data.get("mode"),
            finished=bool(data.get("finished", False)),
            started_at=data.get("startedAt"),
            stopped_at=data.get("stoppedAt"),
        )


class WebhookResult(BaseModel):
    """Outcome of POSTing to a production webhook."""

    path: str
    status_code: int
    body: Any = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class WebhookStatus(str, Enum):
    WORKING = "working"
    NOT_REGISTERED = "not_registered"
    ERROR = "error"


class WebhookCheck(BaseModel):
    path: str
    status_code: int
    status: WebhookStatus
    body: Any = None


class RepairStatus(str, Enum):
    REACTIVATED = "reactivated"
    REACTIVATION_FAILED = "reactivation_failed"
    NO_WEBHOOK_PATHS = "no_webhook_paths"
    ERROR = "error"


class RepairReport(BaseModel):
    """Result of the deactivate/reactivate/test sequence for one workflow."""

    workflow_id: str
    workflow_name: str
    status: RepairStatus
    webhook_paths: list[str] = Field(default_factory=list)
    checks: list[WebhookCheck] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def working_paths(self) -> int:
        return sum(1 for c in self.checks if c.status == WebhookStatus.WORKING)

    @property
    def all_working(self) -> bool:
        return (
            self.status == RepairStatus.REACTIVATED
            and bool(self.checks)
            and self.working_paths == len(self.checks)
        )


class DeployReport(BaseModel):
    """Result of deploying one workflow definition."""

    workflow_id: str
    name: str
    created: bool
    activated: bool = False
    webhook_results: list[WebhookResult] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.ok for r in self.webhook_results)


class CleanupReport(BaseModel):
    prefix: str
    dry_run: bool
    matched: list[Workflow] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
