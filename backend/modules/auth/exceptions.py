"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from shared.exceptions import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ValidationError,
)


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair is rejected."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class InvalidEmailError(ValidationError):
    """Raised when an email address is malformed."""

    def __init__(self, email: str):
        super().__init__(
            "Please enter a valid email address",
            code="INVALID_EMAIL",
            details={"email": email},
        )


class WeakPasswordError(ValidationError):
    """Raised when a password does not meet the minimum length."""

    def __init__(self, min_length: int):
        super().__init__(
            f"Password must be at least {min_length} characters long",
            code="WEAK_PASSWORD",
            details={"min_length": min_length},
        )


class EmailAlreadyExistsError(ConflictError):
    """Raised when signing up with an email that already has an account."""

    def __init__(self, email: str):
        super().__init__(
            "An account with this email already exists",
            code="USER_ALREADY_EXISTS",
            details={"email": email},
        )


class IdentityProviderError(ExternalServiceError):
    """Raised when Supabase Auth fails for reasons other than bad input."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            f"Identity provider error: {message}",
            service="supabase_auth",
            code="IDENTITY_PROVIDER_ERROR",
            details=details,
        )
