"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. This enables testing with fakes and swapping the
hosted identity provider.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from shared.models import AuthenticatedUser
from .models import AuthIdentity, UserSession


@runtime_checkable
class IAuthService(Protocol):
    """Validates bearer tokens issued by Supabase Auth."""

    async def validate_token(self, token: str) -> AuthenticatedUser:
        """
        Validate a JWT token and return the authenticated user.

        Args:
            token: JWT access token from Supabase Auth

        Returns:
            AuthenticatedUser with user ID and basic info

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        ...


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    The hosted identity service (Supabase GoTrue).

    Implementations raise EmailAlreadyExistsError, InvalidCredentialsError
    or IdentityProviderError.
    """

    async def sign_up(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> AuthIdentity:
        ...

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        ...

    async def sign_out(self, access_token: str) -> None:
        ...


@runtime_checkable
class ISessionRepository(Protocol):
    """Storage contract for the user_sessions table."""

    def insert(self, session: UserSession) -> UserSession:
        ...

    def get(self, session_id: str) -> Optional[UserSession]:
        ...

    def mark_revoked(self, session_id: str, revoked_at: datetime) -> Optional[UserSession]:
        ...
