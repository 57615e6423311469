"""
Authentication dependencies.

API routes authenticate with a Supabase JWT in the Authorization header.
Dashboard pages authenticate with the opaque session cookie set on
signup/sign-in.

Token problems surface as auth module exceptions, which the API error
handlers turn into 401 responses.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from modules.auth import IAuthService, MissingTokenError
from shared.config import get_settings
from shared.exceptions import AuthenticationError
from shared.models import AuthenticatedUser
from ..dependencies import get_auth_service

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """The raw bearer token, unvalidated (used to end the provider session)."""
    return credentials.credentials if credentials else None


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Dependency that requires a valid Supabase access token.

    Usage:
        @router.get("/me")
        async def me(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}

    Raises:
        MissingTokenError: No Authorization header
        ExpiredTokenError / InvalidTokenError: The token was rejected
    """
    if token is None:
        raise MissingTokenError("Missing authorization header")
    return await auth.validate_token(token)


async def get_optional_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth: IAuthService = Depends(get_auth_service),
) -> Optional[AuthenticatedUser]:
    """Dependency that extracts the user if a valid token is present."""
    if token is None:
        return None
    try:
        return await auth.validate_token(token)
    except AuthenticationError:
        return None


def get_session_id(request: Request) -> Optional[str]:
    """The dashboard session id from the session cookie, if any."""
    return request.cookies.get(get_settings().session_cookie_name)
