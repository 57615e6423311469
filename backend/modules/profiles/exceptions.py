"""
Profile module exceptions.
"""

from shared.exceptions import ConflictError, NotFoundError, ValidationError


class ProfileNotFoundError(NotFoundError):
    """Raised when no profile exists for a user."""

    def __init__(self, auth_user_id: str):
        super().__init__(
            f"Profile not found: {auth_user_id}",
            code="PROFILE_NOT_FOUND",
            details={"auth_user_id": auth_user_id},
        )


class ProfileAlreadyExistsError(ConflictError):
    """Raised when a unique profile column would be duplicated."""

    def __init__(self, field: str, value: str):
        super().__init__(
            f"A profile with this {field} already exists",
            code="PROFILE_EXISTS",
            details={"field": field, "value": value},
        )
        self.field = field


class TrialNotAvailableError(ValidationError):
    """Raised when a user cannot start a free trial."""

    def __init__(self, reason: str):
        super().__init__(
            f"Trial not available: {reason}",
            code="TRIAL_NOT_AVAILABLE",
            details={"reason": reason},
        )
        self.reason = reason
