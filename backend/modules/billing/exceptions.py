"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Optional

from shared.exceptions import ExternalServiceError, ValidationError


class InvalidPlanError(ValidationError):
    """Raised when a plan id is unknown or has no Stripe price."""

    def __init__(self, plan_id: str, reason: str = "Unknown plan"):
        super().__init__(
            f"{reason}: {plan_id}",
            code="INVALID_PLAN",
            details={"plan_id": plan_id},
        )


class BillingNotConfiguredError(ExternalServiceError):
    """Raised when Stripe keys are missing."""

    def __init__(self):
        super().__init__(
            "Stripe is not configured. Set STRIPE_SECRET_KEY environment variable.",
            service="stripe",
            code="BILLING_NOT_CONFIGURED",
        )


class PaymentProviderError(ExternalServiceError):
    """Raised when a Stripe API call fails."""

    def __init__(self, message: str, stripe_error: Optional[str] = None):
        super().__init__(
            message,
            service="stripe",
            code="PAYMENT_PROVIDER_ERROR",
            details={"stripe_error": stripe_error} if stripe_error else {},
        )


class WebhookVerificationError(ValidationError):
    """Raised when Stripe webhook signature verification fails."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            "Webhook signature verification failed",
            code="WEBHOOK_VERIFICATION_FAILED",
            details={"reason": reason} if reason else {},
        )
