"""
Authentication module.

Handles JWT validation, account signup/sign-in through Supabase Auth,
and the dashboard session cookie.

Public API:
- IAuthService: Interface for token validation
- IIdentityProvider: Interface for the hosted identity service
- AccountService: Signup, sign-in and sign-out flows
- SessionService: Dashboard session lifecycle
- Auth exceptions: InvalidTokenError, ExpiredTokenError, etc.
"""

from .interfaces import IAuthService, IIdentityProvider, ISessionRepository
from .models import (
    AuthIdentity,
    CheckEmailRequest,
    CheckEmailResponse,
    JWTPayload,
    SigninRequest,
    SigninResult,
    SignoutResult,
    SignupRequest,
    SignupResult,
    UserSession,
)
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
    InvalidCredentialsError,
    InvalidEmailError,
    WeakPasswordError,
    EmailAlreadyExistsError,
    IdentityProviderError,
)
from .accounts import AccountService, validate_email, validate_password
from .repository import InMemorySessionRepository, SupabaseSessionRepository
from .sessions import SessionService

__all__ = [
    # Interfaces
    "IAuthService",
    "IIdentityProvider",
    "ISessionRepository",
    # Models
    "AuthIdentity",
    "CheckEmailRequest",
    "CheckEmailResponse",
    "JWTPayload",
    "SigninRequest",
    "SigninResult",
    "SignoutResult",
    "SignupRequest",
    "SignupResult",
    "UserSession",
    # Exceptions
    "InvalidTokenError",
    "ExpiredTokenError",
    "MissingTokenError",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "WeakPasswordError",
    "EmailAlreadyExistsError",
    "IdentityProviderError",
    # Implementation
    "AccountService",
    "validate_email",
    "validate_password",
    "InMemorySessionRepository",
    "SupabaseSessionRepository",
    "SessionService",
]
