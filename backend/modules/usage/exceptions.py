"""
Usage tracking module exceptions.
"""

from shared.exceptions import ClixenError, RateLimitError


class UsageError(ClixenError):
    """Base exception for usage-related errors."""

    pass


class QuotaExceededError(RateLimitError):
    """Raised when a request would exceed the user's quota."""

    def __init__(self, used: int, limit: int, required: int = 1):
        super().__init__(
            f"Quota exceeded: {used}/{limit} requests used",
            code="QUOTA_EXCEEDED",
            details={"used": used, "limit": limit, "required": required},
        )
        self.used = used
        self.limit = limit
        self.required = required
