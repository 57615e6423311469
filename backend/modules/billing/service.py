"""
Billing service implementation.

Sells monthly subscriptions through Stripe Checkout and applies Stripe
webhook events to the user's profile (tier, request quota and Stripe ids).
"""

import logging
from typing import Any, Optional

import stripe

from modules.profiles import IProfileService, Profile, ProfileNotFoundError, SubscriptionTier
from shared.config import Settings, get_settings
from shared.models import AuthenticatedUser
from .exceptions import (
    BillingNotConfiguredError,
    InvalidPlanError,
    PaymentProviderError,
    WebhookVerificationError,
)
from .interfaces import IBillingService
from .models import CheckoutSession, PlanConfig, WebhookOutcome

logger = logging.getLogger(__name__)

PLAN_DEFINITIONS = {
    SubscriptionTier.STARTER: {
        "name": "Starter",
        "price_usd": 9,
        "quota": 100,
        "features": ["Weather & translation", "Email scan", "PDF summaries", "Reminders"],
        "popular": True,
    },
    SubscriptionTier.PRO: {
        "name": "Pro",
        "price_usd": 29,
        "quota": 500,
        "features": ["Everything in Starter", "Premium features", "Priority support"],
    },
    SubscriptionTier.ENTERPRISE: {
        "name": "Enterprise",
        "price_usd": 99,
        "quota": 2000,
        "features": ["Everything in Pro", "Highest request volume"],
    },
}


def build_plans(settings: Settings) -> list[PlanConfig]:
    price_ids = {
        SubscriptionTier.STARTER: settings.stripe_price_starter,
        SubscriptionTier.PRO: settings.stripe_price_pro,
        SubscriptionTier.ENTERPRISE: settings.stripe_price_enterprise,
    }
    return [
        PlanConfig(id=tier, price_id=price_ids[tier] or None, **definition)
        for tier, definition in PLAN_DEFINITIONS.items()
    ]


class BillingService(IBillingService):
    """
    Stripe-backed subscription billing.

    Stripe's SDK is synchronous; calls are made inline like the
    Supabase repositories do.
    """

    def __init__(self, profile_service: IProfileService, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._profiles = profile_service
        self._plans = {plan.id.value: plan for plan in build_plans(self._settings)}

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.stripe_secret_key)

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise BillingNotConfiguredError()
        stripe.api_key = self._settings.stripe_secret_key

    def get_plans(self) -> list[PlanConfig]:
        return list(self._plans.values())

    def get_plan(self, plan_id: str) -> PlanConfig:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise InvalidPlanError(plan_id)
        return plan

    def plan_for_amount(self, amount_cents: int) -> Optional[PlanConfig]:
        return next((p for p in self._plans.values() if p.amount_cents == amount_cents), None)

    def plan_for_price(self, price_id: Optional[str]) -> Optional[PlanConfig]:
        if not price_id:
            return None
        return next((p for p in self._plans.values() if p.price_id == price_id), None)

    def _subscription_plan(self, subscription: Any) -> Optional[PlanConfig]:
        plan = self._plans.get((subscription.get("metadata") or {}).get("plan_id", ""))
        if plan is not None:
            return plan
        # Payment links and buy buttons only identify the plan by its price
        items = (subscription.get("items") or {}).get("data") or []
        for item in items:
            plan = self.plan_for_price((item.get("price") or {}).get("id"))
            if plan is not None:
                return plan
        return None

    # -------------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------------

    async def create_checkout_session(
        self,
        user: AuthenticatedUser,
        plan_id: str,
    ) -> CheckoutSession:
        plan = self.get_plan(plan_id)
        if not plan.price_id:
            raise InvalidPlanError(plan_id, "Plan is not available for purchase")
        self._ensure_configured()

        profile = await self._profiles.get_profile(user.id)
        metadata = {"supabase_user_id": user.id, "plan_id": plan.id.value}
        frontend = self._settings.frontend_url.rstrip("/")

        try:
            customer_id = await self._ensure_customer(profile)
            session = stripe.checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                client_reference_id=user.id,
                line_items=[{"price": plan.price_id, "quantity": 1}],
                metadata=metadata,
                subscription_data={"metadata": metadata},
                success_url=f"{frontend}/dashboard?checkout=success&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{frontend}/pricing?checkout=cancelled",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout failed for user {user.id}: {e}")
            raise PaymentProviderError("Could not create checkout session", str(e)) from e

        logger.info(f"Created checkout session {session['id']} for user {user.id} ({plan.id.value})")
        return CheckoutSession(session_id=session["id"], url=session["url"])

    async def _ensure_customer(self, profile: Profile) -> str:
        if profile.stripe_customer_id:
            return profile.stripe_customer_id

        customer = stripe.Customer.create(
            email=profile.email,
            metadata={"supabase_user_id": profile.auth_user_id},
        )
        await self._profiles.update_billing(
            profile.auth_user_id, stripe_customer_id=customer["id"]
        )
        return customer["id"]

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def handle_webhook(self, payload: bytes, signature: str) -> WebhookOutcome:
        if not self._settings.stripe_webhook_secret:
            raise BillingNotConfiguredError()

        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self._settings.stripe_webhook_secret
            )
        except ValueError as e:
            raise WebhookVerificationError("invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError("invalid signature") from e

        return await self.apply_event(event)

    async def apply_event(self, event: Any) -> WebhookOutcome:
        """Dispatch a verified event on its type."""
        event_type = event["type"]
        obj = event["data"]["object"]

        handlers = {
            "checkout.session.completed": self._on_checkout_completed,
            "customer.subscription.created": self._on_subscription_changed,
            "customer.subscription.updated": self._on_subscription_changed,
            "customer.subscription.deleted": self._on_subscription_deleted,
            "invoice.payment_succeeded": self._on_payment_succeeded,
            "invoice.payment_failed": self._on_payment_failed,
        }
        handler = handlers.get(event_type)
        if handler is None:
            logger.info(f"Ignoring Stripe event {event_type}")
            return WebhookOutcome(event_type=event_type, handled=False)

        try:
            outcome = await handler(obj)
        except ProfileNotFoundError:
            logger.warning(f"Stripe event {event_type} for unknown user")
            return WebhookOutcome(event_type=event_type, handled=False)

        outcome.event_type = event_type
        return outcome

    async def _resolve_user_id(self, obj: Any) -> Optional[str]:
        metadata = obj.get("metadata") or {}
        user_id = metadata.get("supabase_user_id") or obj.get("client_reference_id")
        if user_id:
            return user_id

        customer_id = obj.get("customer")
        if customer_id:
            profile = await self._profiles.find_by_stripe_customer_id(customer_id)
            if profile:
                return profile.auth_user_id
        return None

    async def _on_checkout_completed(self, session: Any) -> WebhookOutcome:
        user_id = await self._resolve_user_id(session)
        if not user_id:
            logger.warning(f"Checkout session {session.get('id')} has no user")
            return WebhookOutcome(event_type="", handled=False)

        plan_id = (session.get("metadata") or {}).get("plan_id")
        plan = self._plans.get(plan_id) if plan_id else None
        if plan is None:
            # Payment links and buy buttons don't carry metadata
            plan = self.plan_for_amount(session.get("amount_total") or 0)
        if plan is None:
            logger.warning(
                f"Checkout session {session.get('id')} matches no plan "
                f"(amount {session.get('amount_total')})"
            )
            return WebhookOutcome(event_type="", handled=False, user_id=user_id)

        stripe_ids = {
            "stripe_customer_id": session.get("customer"),
            "stripe_subscription_id": session.get("subscription"),
        }
        await self._profiles.set_tier(
            user_id,
            plan.id,
            plan.quota,
            quota_used=0,
            subscription_status="active",
            **{k: v for k, v in stripe_ids.items() if v},
        )
        return WebhookOutcome(event_type="", handled=True, user_id=user_id, tier=plan.id)

    async def _on_subscription_changed(self, subscription: Any) -> WebhookOutcome:
        user_id = await self._resolve_user_id(subscription)
        if not user_id:
            return WebhookOutcome(event_type="", handled=False)

        status = subscription.get("status")
        plan = self._subscription_plan(subscription)

        if status == "active" and plan is None:
            logger.warning(
                f"Subscription {subscription.get('id')} matches no plan; keeping current tier"
            )
            return WebhookOutcome(event_type="", handled=False, user_id=user_id)

        if status == "active":
            await self._profiles.set_tier(
                user_id,
                plan.id,
                plan.quota,
                stripe_subscription_id=subscription.get("id"),
                subscription_status=status,
            )
            return WebhookOutcome(event_type="", handled=True, user_id=user_id, tier=plan.id)

        await self._profiles.set_tier(
            user_id,
            SubscriptionTier.FREE,
            self._settings.free_quota,
            stripe_subscription_id=subscription.get("id"),
            subscription_status=status,
        )
        return WebhookOutcome(
            event_type="", handled=True, user_id=user_id, tier=SubscriptionTier.FREE
        )

    async def _on_subscription_deleted(self, subscription: Any) -> WebhookOutcome:
        user_id = await self._resolve_user_id(subscription)
        if not user_id:
            return WebhookOutcome(event_type="", handled=False)

        await self._profiles.set_tier(
            user_id,
            SubscriptionTier.FREE,
            self._settings.free_quota,
            stripe_subscription_id=None,
            subscription_status="canceled",
        )
        logger.info(f"Downgraded user {user_id} to free")
        return WebhookOutcome(
            event_type="", handled=True, user_id=user_id, tier=SubscriptionTier.FREE
        )

    async def _on_payment_succeeded(self, invoice: Any) -> WebhookOutcome:
        user_id = await self._resolve_user_id(invoice)
        if not user_id:
            return WebhookOutcome(event_type="", handled=False)

        # New billing period: refill the quota
        await self._profiles.reset_quota(user_id)
        await self._profiles.update_billing(user_id, subscription_status="active")
        return WebhookOutcome(event_type="", handled=True, user_id=user_id)

    async def _on_payment_failed(self, invoice: Any) -> WebhookOutcome:
        user_id = await self._resolve_user_id(invoice)
        if not user_id:
            return WebhookOutcome(event_type="", handled=False)

        await self._profiles.update_billing(user_id, subscription_status="past_due")
        logger.warning(f"Payment failed for user {user_id}")
        return WebhookOutcome(event_type="", handled=True, user_id=user_id)
