"""
Account endpoints: signup, sign-in, sign-out and email availability.

Successful signup and sign-in set the httponly session cookie that the
dashboard page authenticates with.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from modules.auth import (
    AccountService,
    CheckEmailRequest,
    CheckEmailResponse,
    SigninRequest,
    SigninResult,
    SignoutResult,
    SignupRequest,
    SignupResult,
    UserSession,
)
from shared.config import get_settings
from ..dependencies import get_account_service
from ..middleware.auth import get_bearer_token, get_session_id

router = APIRouter()


def set_session_cookie(response: Response, session: UserSession) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.id,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/signup", response_model=SignupResult, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
) -> SignupResult:
    """
    Create an account.

    The new profile starts on the free tier with an active 7-day trial.
    Fails with 409 if the email is taken and 400 for a malformed email or
    a password shorter than 8 characters.
    """
    result, session = await accounts.sign_up(request.email, request.password, request.full_name)
    set_session_cookie(response, session)
    return result


@router.post("/signin", response_model=SigninResult)
async def signin(
    request: SigninRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
) -> SigninResult:
    """Sign in with email and password."""
    result, session = await accounts.sign_in(request.email, request.password)
    set_session_cookie(response, session)
    return result


@router.post("/signout", response_model=SignoutResult)
async def signout(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    access_token: Optional[str] = Depends(get_bearer_token),
    accounts: AccountService = Depends(get_account_service),
) -> SignoutResult:
    """
    Sign out.

    Revokes the dashboard session and clears the cookie. Calling it
    without a session still succeeds.
    """
    await accounts.sign_out(session_id, access_token)
    clear_session_cookie(response)
    return SignoutResult()


@router.post("/check-email", response_model=CheckEmailResponse)
async def check_email(
    request: CheckEmailRequest,
    accounts: AccountService = Depends(get_account_service),
) -> CheckEmailResponse:
    """Report whether an account exists for the email."""
    return CheckEmailResponse(exists=await accounts.email_exists(request.email))
