"""
Billing module.

Sells monthly subscription plans through Stripe and applies Stripe
events to user profiles.

Public API:
- IBillingService: Interface for billing operations
- BillingService: Stripe implementation
- PlanConfig: Plan definition
- Billing exceptions: InvalidPlanError, WebhookVerificationError, etc.
"""

from .interfaces import IBillingService
from .models import (
    CheckoutRequest,
    CheckoutSession,
    PlanConfig,
    PlansResponse,
    WebhookOutcome,
)
from .exceptions import (
    BillingNotConfiguredError,
    InvalidPlanError,
    PaymentProviderError,
    WebhookVerificationError,
)
from .service import BillingService, PLAN_DEFINITIONS, build_plans

__all__ = [
    # Interface
    "IBillingService",
    # Models
    "CheckoutRequest",
    "CheckoutSession",
    "PlanConfig",
    "PlansResponse",
    "WebhookOutcome",
    # Exceptions
    "BillingNotConfiguredError",
    "InvalidPlanError",
    "PaymentProviderError",
    "WebhookVerificationError",
    # Implementation
    "BillingService",
    "PLAN_DEFINITIONS",
    "build_plans",
]
