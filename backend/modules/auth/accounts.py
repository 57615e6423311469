"""
Account flows: signup, sign-in and sign-out.

Coordinates the identity provider, the profile service and dashboard
sessions. Every new account gets a profile with the free-tier defaults.
"""

import logging
import re
from typing import Optional

from modules.profiles import (
    IProfileService,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    normalize_email,
)
from .exceptions import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidEmailError,
    WeakPasswordError,
)
from .interfaces import IIdentityProvider
from .models import SigninResult, SignupResult, UserSession
from .sessions import SessionService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8


def validate_email(email: str) -> str:
    """Normalize an email address, raising InvalidEmailError if malformed."""
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise InvalidEmailError(email)
    return normalized


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(MIN_PASSWORD_LENGTH)


class AccountService:
    """Signup, sign-in and sign-out against the hosted identity provider."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        profile_service: IProfileService,
        session_service: SessionService,
    ):
        self._identity = identity_provider
        self._profiles = profile_service
        self._sessions = session_service

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> tuple[SignupResult, UserSession]:
        """
        Create an account, its profile and a dashboard session.

        Raises:
            InvalidEmailError: If the email is malformed
            WeakPasswordError: If the password is shorter than 8 characters
            EmailAlreadyExistsError: If the email already has an account
        """
        email = validate_email(email)
        validate_password(password)

        if await self._profiles.email_exists(email):
            raise EmailAlreadyExistsError(email)

        identity = await self._identity.sign_up(email, password, full_name)

        try:
            await self._profiles.create_profile(identity.user_id, email, full_name)
        except ProfileAlreadyExistsError as e:
            raise EmailAlreadyExistsError(email) from e

        session = await self._sessions.open_session(identity.user_id, identity.access_token)
        logger.info(f"Signed up user {identity.user_id}")

        return SignupResult(user_id=identity.user_id, email=email), session

    async def sign_in(self, email: str, password: str) -> tuple[SigninResult, UserSession]:
        """
        Verify credentials, record the login and open a session.

        A missing profile (account created outside this API) is created
        with the signup defaults.

        Raises:
            InvalidCredentialsError: If the provider rejects the credentials
        """
        email = normalize_email(email)
        if not email or not password:
            raise InvalidCredentialsError()

        identity = await self._identity.sign_in(email, password)

        try:
            await self._profiles.get_profile(identity.user_id)
        except ProfileNotFoundError:
            await self._profiles.create_profile(identity.user_id, identity.email)
        await self._profiles.record_login(identity.user_id)

        session = await self._sessions.open_session(identity.user_id, identity.access_token)
        logger.info(f"Signed in user {identity.user_id}")

        return (
            SigninResult(
                user_id=identity.user_id,
                email=identity.email,
                access_token=identity.access_token,
            ),
            session,
        )

    async def sign_out(
        self, session_id: Optional[str], access_token: Optional[str] = None
    ) -> None:
        """
        Revoke the dashboard session. Safe to call repeatedly.

        The provider session is ended too when the caller's access token
        is known.
        """
        await self._sessions.revoke(session_id)
        if access_token:
            await self._identity.sign_out(access_token)

    async def email_exists(self, email: str) -> bool:
        return await self._profiles.email_exists(email)
