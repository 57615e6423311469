"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class JWTPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    This matches the structure of Supabase Auth JWTs.
    """

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User's email")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    role: str = Field(default="authenticated", description="User role")
    email_confirmed_at: Optional[str] = Field(None, description="Email confirmation time")

    # Supabase-specific claims
    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)


class AuthIdentity(BaseModel):
    """An identity returned by the hosted auth provider."""

    user_id: str
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class UserSession(BaseModel):
    """
    A dashboard session (a row of user_sessions).

    The id is the opaque value stored in the session cookie. Only a
    SHA-256 hash of the provider access token is kept.
    """

    id: str
    auth_user_id: str
    access_token_hash: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at


class SignupRequest(BaseModel):
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password (min 8 characters)")
    full_name: Optional[str] = Field(None, max_length=200)


class SigninRequest(BaseModel):
    email: str
    password: str


class CheckEmailRequest(BaseModel):
    email: str


class CheckEmailResponse(BaseModel):
    exists: bool


class SignupResult(BaseModel):
    """Result of a successful signup."""

    user_id: str
    email: str
    redirect_to: str = "/dashboard"


class SigninResult(BaseModel):
    """Result of a successful sign-in."""

    user_id: str
    email: str
    access_token: Optional[str] = None
    redirect_to: str = "/dashboard"


class SignoutResult(BaseModel):
    success: bool = True
    redirect_to: str = "/auth/signin"
