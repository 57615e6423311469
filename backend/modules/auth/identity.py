"""
Supabase Auth (GoTrue) identity provider.

Sign-up and sign-in use a fresh anon-key client per call so the cached
service-role client never carries an end-user session. Sign-out uses the
admin API with the user's access token.
"""

import logging
from typing import Any, Optional

from supabase import AuthApiError

from shared.database import get_supabase_anon_client, get_supabase_client
from .exceptions import (
    EmailAlreadyExistsError,
    IdentityProviderError,
    InvalidCredentialsError,
)
from .interfaces import IIdentityProvider
from .models import AuthIdentity

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_MARKERS = ("already registered", "already exists", "user_already_exists")


def _is_already_registered(error: AuthApiError) -> bool:
    text = f"{getattr(error, 'code', '')} {error.message}".lower()
    return any(marker in text for marker in ALREADY_REGISTERED_MARKERS)


def _identity_from_response(response: Any, email: str) -> AuthIdentity:
    session = response.session
    return AuthIdentity(
        user_id=response.user.id,
        email=response.user.email or email,
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
    )


class SupabaseIdentityProvider(IIdentityProvider):
    """Identity provider backed by the supabase client's auth API."""

    async def sign_up(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> AuthIdentity:
        user_metadata = {"full_name": full_name} if full_name else {}
        client = get_supabase_anon_client()
        try:
            response = client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": user_metadata},
                }
            )
        except AuthApiError as e:
            if _is_already_registered(e):
                raise EmailAlreadyExistsError(email) from e
            logger.error(f"Supabase sign_up failed for {email}: {e.message}")
            raise IdentityProviderError(e.message, {"status": e.status}) from e

        if not response.user:
            raise IdentityProviderError("sign_up returned no user")

        # With email confirmation on, an existing address comes back as a
        # user with no identities instead of an error.
        if response.user.identities is not None and len(response.user.identities) == 0:
            raise EmailAlreadyExistsError(email)

        return _identity_from_response(response, email)

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        client = get_supabase_anon_client()
        try:
            response = client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthApiError as e:
            if e.status in (400, 401):
                raise InvalidCredentialsError() from e
            logger.error(f"Supabase sign_in failed for {email}: {e.message}")
            raise IdentityProviderError(e.message, {"status": e.status}) from e

        if not response.user or not response.session:
            raise InvalidCredentialsError()

        return _identity_from_response(response, email)

    async def sign_out(self, access_token: str) -> None:
        try:
            get_supabase_client().auth.admin.sign_out(access_token)
        except AuthApiError as e:
            # The token may already be expired or revoked
            logger.warning(f"Supabase sign_out failed: {e.message}")
