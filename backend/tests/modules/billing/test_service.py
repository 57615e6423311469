"""Tests for billing service."""

from unittest.mock import patch

import pytest
import stripe

from modules.billing import (
    BillingNotConfiguredError,
    BillingService,
    InvalidPlanError,
    PaymentProviderError,
    WebhookVerificationError,
)
from modules.profiles import SubscriptionTier
from shared.config import Settings
from shared.models import AuthenticatedUser

USER = AuthenticatedUser(id="user-1", email="user@example.com")


def event(event_type, **obj):
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


class TestPlans:
    def test_plans(self, service):
        plans = {p.id: p for p in service.get_plans()}
        assert plans[SubscriptionTier.STARTER].quota == 100
        assert plans[SubscriptionTier.PRO].price_id == "price_pro"
        assert plans[SubscriptionTier.ENTERPRISE].amount_cents == 9900

    def test_unknown_plan(self, service):
        with pytest.raises(InvalidPlanError):
            service.get_plan("platinum")

    def test_plan_for_amount(self, service):
        assert service.plan_for_amount(2900).id == SubscriptionTier.PRO
        assert service.plan_for_amount(1234) is None

    def test_unconfigured_prices(self, profiles):
        service = BillingService(profiles, settings=Settings(_env_file=None))
        assert all(p.price_id is None for p in service.get_plans())
        assert service.is_configured is False


class TestCheckout:
    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.checkout.Session.create")
    @patch("modules.billing.service.stripe.Customer.create")
    async def test_creates_customer_and_session(
        self, mock_customer, mock_session, service, profile, profiles
    ):
        mock_customer.return_value = {"id": "cus_123"}
        mock_session.return_value = {"id": "cs_123", "url": "https://checkout.stripe.test/cs_123"}

        session = await service.create_checkout_session(USER, "starter")

        assert session.session_id == "cs_123"
        mock_customer.assert_called_once_with(
            email="user@example.com", metadata={"supabase_user_id": "user-1"}
        )
        kwargs = mock_session.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["customer"] == "cus_123"
        assert kwargs["line_items"] == [{"price": "price_starter", "quantity": 1}]
        assert kwargs["metadata"] == {"supabase_user_id": "user-1", "plan_id": "starter"}
        assert kwargs["success_url"].endswith("/dashboard?checkout=success&session_id={CHECKOUT_SESSION_ID}")
        assert (await profiles.get_profile("user-1")).stripe_customer_id == "cus_123"

    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.checkout.Session.create")
    @patch("modules.billing.service.stripe.Customer.create")
    async def test_reuses_customer(
        self, mock_customer, mock_session, service, profile, profiles
    ):
        await profiles.update_billing("user-1", stripe_customer_id="cus_existing")
        mock_session.return_value = {"id": "cs_1", "url": "https://checkout.stripe.test/cs_1"}

        await service.create_checkout_session(USER, "pro")

        mock_customer.assert_not_called()
        assert mock_session.call_args.kwargs["customer"] == "cus_existing"

    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.Customer.create")
    async def test_stripe_error(self, mock_customer, service, profile):
        mock_customer.side_effect = stripe.APIConnectionError("network down")

        with pytest.raises(PaymentProviderError) as exc_info:
            await service.create_checkout_session(USER, "pro")
        assert exc_info.value.code == "PAYMENT_PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_not_configured(self, profiles, profile):
        settings = Settings(_env_file=None, stripe_price_pro="price_pro")
        service = BillingService(profiles, settings=settings)

        with pytest.raises(BillingNotConfiguredError):
            await service.create_checkout_session(USER, "pro")

    @pytest.mark.asyncio
    async def test_plan_without_price(self, profiles, profile):
        settings = Settings(_env_file=None, stripe_secret_key="sk_test_dummy")
        service = BillingService(profiles, settings=settings)

        with pytest.raises(InvalidPlanError):
            await service.create_checkout_session(USER, "pro")


class TestWebhookVerification:
    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.Webhook.construct_event")
    async def test_bad_signature(self, mock_construct, service):
        mock_construct.side_effect = stripe.SignatureVerificationError("bad", "sig")

        with pytest.raises(WebhookVerificationError) as exc_info:
            await service.handle_webhook(b"{}", "sig")
        assert exc_info.value.details == {"reason": "invalid signature"}

    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.Webhook.construct_event")
    async def test_bad_payload(self, mock_construct, service):
        mock_construct.side_effect = ValueError("not json")

        with pytest.raises(WebhookVerificationError):
            await service.handle_webhook(b"nope", "sig")

    @pytest.mark.asyncio
    async def test_no_webhook_secret(self, profiles):
        service = BillingService(profiles, settings=Settings(_env_file=None))
        with pytest.raises(BillingNotConfiguredError):
            await service.handle_webhook(b"{}", "sig")

    @pytest.mark.asyncio
    @patch("modules.billing.service.stripe.Webhook.construct_event")
    async def test_verified_event_is_applied(self, mock_construct, service, profile):
        mock_construct.return_value = event("invoice.payment_failed", customer="cus_x", metadata={"supabase_user_id": "user-1"})

        outcome = await service.handle_webhook(b"{}", "t=1,v1=abc")

        assert outcome.handled is True
        mock_construct.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_dummy")


class TestApplyEvent:
    @pytest.mark.asyncio
    async def test_checkout_completed(self, service, profile, profiles):
        outcome = await service.apply_event(
            event(
                "checkout.session.completed",
                id="cs_1",
                client_reference_id="user-1",
                customer="cus_1",
                subscription="sub_1",
                metadata={"supabase_user_id": "user-1", "plan_id": "pro"},
                amount_total=2900,
            )
        )

        assert outcome.handled is True
        assert outcome.tier == SubscriptionTier.PRO
        assert outcome.event_type == "checkout.session.completed"
        updated = await profiles.get_profile("user-1")
        assert updated.tier == SubscriptionTier.PRO
        assert updated.quota_limit == 500
        assert updated.quota_used == 0
        assert updated.stripe_subscription_id == "sub_1"
        assert updated.subscription_status == "active"

    @pytest.mark.asyncio
    async def test_checkout_matched_by_amount(self, service, profile, profiles):
        await service.apply_event(
            event("checkout.session.completed", id="cs_2", client_reference_id="user-1", amount_total=900)
        )
        assert (await profiles.get_profile("user-1")).tier == SubscriptionTier.STARTER

    @pytest.mark.asyncio
    async def test_checkout_unknown_amount(self, service, profile, profiles):
        outcome = await service.apply_event(
            event("checkout.session.completed", id="cs_3", client_reference_id="user-1", amount_total=123)
        )
        assert outcome.handled is False
        assert (await profiles.get_profile("user-1")).tier == SubscriptionTier.FREE

    @pytest.mark.asyncio
    async def test_checkout_without_user(self, service):
        outcome = await service.apply_event(event("checkout.session.completed", id="cs_4"))
        assert outcome.handled is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        outcome = await service.apply_event(
            event("invoice.payment_failed", metadata={"supabase_user_id": "ghost"})
        )
        assert outcome.handled is False

    @pytest.mark.asyncio
    async def test_subscription_updated_active(self, service, profile, profiles):
        outcome = await service.apply_event(
            event(
                "customer.subscription.updated",
                id="sub_1",
                status="active",
                metadata={"supabase_user_id": "user-1", "plan_id": "enterprise"},
            )
        )
        assert outcome.tier == SubscriptionTier.ENTERPRISE
        assert (await profiles.get_profile("user-1")).quota_limit == 2000

    @pytest.mark.asyncio
    async def test_subscription_plan_from_price(self, service, profile, profiles):
        await profiles.update_billing("user-1", stripe_customer_id="cus_1")
        outcome = await service.apply_event(
            event(
                "customer.subscription.updated",
                id="sub_1",
                status="active",
                customer="cus_1",
                metadata={},
                items={"data": [{"price": {"id": "price_enterprise"}}]},
            )
        )
        assert outcome.tier == SubscriptionTier.ENTERPRISE
        assert (await profiles.get_profile("user-1")).tier == SubscriptionTier.ENTERPRISE

    @pytest.mark.asyncio
    async def test_buy_button_subscription_keeps_tier(self, service, profile, profiles):
        await service.apply_event(
            event(
                "checkout.session.completed",
                id="cs_5",
                client_reference_id="user-1",
                amount_total=2900,
                customer="cus_1",
                subscription="sub_1",
            )
        )
        outcome = await service.apply_event(
            event(
                "customer.subscription.updated",
                id="sub_1",
                status="active",
                customer="cus_1",
                metadata={},
            )
        )

        assert outcome.handled is False
        updated = await profiles.get_profile("user-1")
        assert updated.tier == SubscriptionTier.PRO
        assert updated.quota_limit == 500

    @pytest.mark.asyncio
    async def test_subscription_past_due_downgrades(self, service, profile, profiles):
        await profiles.update_billing("user-1", stripe_customer_id="cus_1")
        outcome = await service.apply_event(
            event("customer.subscription.updated", id="sub_1", status="past_due", customer="cus_1")
        )

        assert outcome.tier == SubscriptionTier.FREE
        updated = await profiles.get_profile("user-1")
        assert updated.quota_limit == 50
        assert updated.subscription_status == "past_due"

    @pytest.mark.asyncio
    async def test_subscription_deleted(self, service, profile, profiles):
        await profiles.set_tier("user-1", SubscriptionTier.PRO, 500, stripe_subscription_id="sub_1")

        await service.apply_event(
            event("customer.subscription.deleted", id="sub_1", metadata={"supabase_user_id": "user-1"})
        )

        updated = await profiles.get_profile("user-1")
        assert updated.tier == SubscriptionTier.FREE
        assert updated.stripe_subscription_id is None
        assert updated.subscription_status == "canceled"

    @pytest.mark.asyncio
    async def test_payment_succeeded_refills_quota(self, service, profile, profiles):
        outcome = await service.apply_event(
            event("invoice.payment_succeeded", metadata={"supabase_user_id": "user-1"})
        )
        assert outcome.handled is True
        updated = await profiles.get_profile("user-1")
        assert updated.quota_used == 0
        assert updated.subscription_status == "active"

    @pytest.mark.asyncio
    async def test_payment_failed(self, service, profile, profiles):
        await service.apply_event(event("invoice.payment_failed", metadata={"supabase_user_id": "user-1"}))
        assert (await profiles.get_profile("user-1")).subscription_status == "past_due"

    @pytest.mark.asyncio
    async def test_ignored_event(self, service):
        outcome = await service.apply_event(event("charge.refunded", id="ch_1"))
        assert outcome.handled is False
        assert outcome.event_type == "charge.refunded"
