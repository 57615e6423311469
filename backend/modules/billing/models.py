"""
Billing module data models.

These models define the data structures used by the billing module
and exposed to other modules through the interface.
"""

from typing import Optional

from pydantic import BaseModel, Field

from modules.profiles import SubscriptionTier


class PlanConfig(BaseModel):
    """
    A subscription plan.

    The Stripe price id comes from settings (STRIPE_PRICE_*); a plan
    without one cannot be purchased.
    """

    id: SubscriptionTier = Field(..., description="Plan ID (same as the tier)")
    name: str = Field(..., description="Display name")
    price_usd: int = Field(..., description="Monthly price in whole USD")
    quota: int = Field(..., description="Requests per billing period")
    price_id: Optional[str] = Field(None, description="Stripe price ID")
    features: list[str] = Field(default_factory=list)
    popular: bool = Field(default=False, description="Whether to highlight this plan")

    @property
    def amount_cents(self) -> int:
        return self.price_usd * 100


class CheckoutRequest(BaseModel):
    """Request to start a subscription checkout."""

    plan_id: str = Field(..., description="Plan to subscribe to")


class CheckoutSession(BaseModel):
    """
    Stripe checkout session info.

    Returned when initiating a subscription purchase.
    """

    session_id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Checkout URL to redirect user to")


class PlansResponse(BaseModel):
    plans: list[PlanConfig]


class WebhookOutcome(BaseModel):
    """What a Stripe webhook event did."""

    event_type: str
    handled: bool
    user_id: Optional[str] = None
    tier: Optional[SubscriptionTier] = None
