"""
Workflow (n8n) module exceptions.
"""

from typing import Any, Optional

from shared.exceptions import ExternalServiceError, NotFoundError, ValidationError


class N8nError(ExternalServiceError):
    """Base exception for n8n errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, service="n8n", code=code, details=details)


class N8nNotConfiguredError(N8nError):
    """Raised when N8N_BASE_URL or N8N_API_KEY is missing."""

    def __init__(self):
        super().__init__(
            "n8n is not configured. Set N8N_BASE_URL and N8N_API_KEY environment variables.",
            code="N8N_NOT_CONFIGURED",
        )


class N8nConnectionError(N8nError):
    """Raised when the n8n instance cannot be reached."""

    def __init__(self, url: str, message: str):
        super().__init__(
            f"Could not reach n8n at {url}: {message}",
            code="N8N_CONNECTION_ERROR",
            details={"url": url, "error": message},
        )


class N8nAPIError(N8nError):
    """Raised when the n8n management API returns a non-2xx status."""

    def __init__(self, method: str, path: str, status_code: int, body: Any):
        super().__init__(
            f"n8n API {method} {path} returned {status_code}",
            code="N8N_API_ERROR",
            details={"method": method, "path": path, "status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class WorkflowNotFoundError(NotFoundError):
    """Raised when a workflow id does not exist."""

    def __init__(self, workflow_id: str):
        super().__init__(
            f"Workflow not found: {workflow_id}",
            code="WORKFLOW_NOT_FOUND",
            details={"workflow_id": workflow_id},
        )


class InvalidWorkflowDefinitionError(ValidationError):
    """Raised when a workflow JSON file is missing required fields."""

    def __init__(self, source: str, message: str):
        super().__init__(
            f"Invalid workflow definition {source}: {message}",
            code="INVALID_WORKFLOW_DEFINITION",
            details={"source": source},
        )
