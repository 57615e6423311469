"""
Base exception classes for the Clixen backend.

Each module defines its own exceptions that inherit from these bases.
The API layer maps each base class to an HTTP status code.
"""

from typing import Optional, Any


class ClixenError(Exception):
    """
    Base exception for all Clixen errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ClixenError):
    """Resource not found."""

    pass


class ValidationError(ClixenError):
    """Input validation failed."""

    pass


class ConflictError(ClixenError):
    """Resource already exists or is in a conflicting state."""

    pass


class AuthenticationError(ClixenError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(ClixenError):
    """Authorization failed (insufficient permissions)."""

    pass


class RateLimitError(ClixenError):
    """A usage limit was reached."""

    pass


class ExternalServiceError(ClixenError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
