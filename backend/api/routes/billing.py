"""
Billing endpoints.

Plan listing and checkout live under /api/billing; Stripe delivers
events to /api/stripe/webhook.
"""

from fastapi import APIRouter, Depends, Header, Request

from modules.billing import (
    CheckoutRequest,
    CheckoutSession,
    IBillingService,
    PlansResponse,
    WebhookOutcome,
)
from modules.profiles import IProfileService
from shared.models import AuthenticatedUser
from ..dependencies import get_billing_service, get_profile_service
from ..middleware.auth import get_current_user
from .users import ensure_profile

router = APIRouter()
stripe_router = APIRouter()


@router.get("/plans", response_model=PlansResponse)
async def list_plans(
    service: IBillingService = Depends(get_billing_service),
) -> PlansResponse:
    """List the subscription plans."""
    return PlansResponse(plans=service.get_plans())


@router.post("/checkout", response_model=CheckoutSession)
async def create_checkout(
    request: CheckoutRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IBillingService = Depends(get_billing_service),
    profiles: IProfileService = Depends(get_profile_service),
) -> CheckoutSession:
    """
    Create a Stripe Checkout Session for a plan.

    The client redirects the user to the returned URL.
    """
    await ensure_profile(profiles, user)
    return await service.create_checkout_session(user, request.plan_id)


@stripe_router.post("/webhook", response_model=WebhookOutcome)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="stripe-signature"),
    service: IBillingService = Depends(get_billing_service),
) -> WebhookOutcome:
    """Handle a Stripe event. Fails with 400 if the signature does not verify."""
    payload = await request.body()
    return await service.handle_webhook(payload, stripe_signature)
