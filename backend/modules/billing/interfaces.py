"""
Billing module interface.

Other modules should depend on IBillingService, not the concrete implementation.
"""

from typing import Protocol, runtime_checkable

from shared.models import AuthenticatedUser
from .models import CheckoutSession, PlanConfig, WebhookOutcome


@runtime_checkable
class IBillingService(Protocol):
    """
    Interface for subscription billing.

    Plan changes are applied to the user's profile (tier and quota).
    """

    def get_plans(self) -> list[PlanConfig]:
        ...

    async def create_checkout_session(
        self,
        user: AuthenticatedUser,
        plan_id: str,
    ) -> CheckoutSession:
        """
        Create a Stripe Checkout Session for a subscription.

        Raises:
            InvalidPlanError: If the plan is unknown or not purchasable
            BillingNotConfiguredError: If Stripe is not configured
        """
        ...

    async def handle_webhook(self, payload: bytes, signature: str) -> WebhookOutcome:
        """
        Verify and apply a Stripe webhook event.

        Raises:
            WebhookVerificationError: If the signature is invalid
        """
        ...
