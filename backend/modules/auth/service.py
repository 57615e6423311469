"""
Token validation for API requests.

Supabase Auth signs access tokens with the project's JWT secret, so
they are verified locally without a round trip to Supabase.
"""

from datetime import datetime, timezone
from typing import Optional
import jwt

from shared.config import get_settings
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .models import JWTPayload
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
)

AUDIENCE = "authenticated"


class AuthService(IAuthService):
    """Validates Supabase access tokens (HS256, audience ``authenticated``)."""

    def __init__(self, jwt_secret: Optional[str] = None):
        self._secret = jwt_secret if jwt_secret is not None else get_settings().supabase_jwt_secret

    async def validate_token(self, token: Optional[str]) -> AuthenticatedUser:
        if not token:
            raise MissingTokenError()
        if not self._secret:
            raise InvalidTokenError("Server authentication not configured")

        try:
            claims = JWTPayload(
                **jwt.decode(token, self._secret, algorithms=["HS256"], audience=AUDIENCE)
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")
        if not claims.email:
            raise InvalidTokenError("Token has no email claim")

        # Supabase puts "authenticated" in the role claim for every signed-in user
        return AuthenticatedUser(
            id=claims.sub,
            email=claims.email,
            email_verified=claims.email_confirmed_at is not None,
            last_sign_in=datetime.fromtimestamp(claims.iat, tz=timezone.utc),
            role="user" if claims.role == AUDIENCE else claims.role,
        )


_service_instance: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = AuthService()
    return _service_instance


def reset_auth_service() -> None:
    """Reset the auth service singleton (for testing)."""
    global _service_instance
    _service_instance = None
