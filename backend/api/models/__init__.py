"""API models package."""

from .errors import ErrorResponse
from .user import DashboardResponse, SigninPageResponse

__all__ = [
    "ErrorResponse",
    "DashboardResponse",
    "SigninPageResponse",
]
