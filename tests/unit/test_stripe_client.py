"""Unit tests for the Stripe adapter's conversions and error mapping."""

from datetime import UTC, datetime

import pytest
import stripe

from clubhub.modules.billing.exceptions import BillingProviderError
from clubhub.modules.billing.stripe_client import (
    StripeClient,
    to_checkout_session,
    to_merchant_account,
    to_subscription,
)


JAN_1 = 1767225600  # 2026-01-01T00:00:00Z
FEB_1 = 1769904000  # 2026-02-01T00:00:00Z


class TestConversions:
    """Tests for converting Stripe payloads into provider-neutral models."""

    def test_checkout_session_with_expanded_subscription(self):
        checkout = to_checkout_session(
            {
                "id": "cs_1",
                "url": "https://checkout.stripe.test/cs_1",
                "status": "complete",
                "payment_status": "paid",
                "mode": "subscription",
                "subscription": {"id": "sub_1", "object": "subscription"},
                "customer": "cus_1",
                "metadata": {"signup_session_id": "abc"},
            }
        )

        assert checkout.subscription_id == "sub_1"
        assert checkout.customer_id == "cus_1"
        assert checkout.metadata == {"signup_session_id": "abc"}
        assert checkout.is_paid is True

    def test_checkout_session_unpaid(self):
        checkout = to_checkout_session(
            {"id": "cs_1", "status": "complete", "payment_status": "unpaid"}
        )

        assert checkout.is_paid is False
        assert checkout.subscription_id is None
        assert checkout.metadata == {}

    def test_subscription_item_periods(self):
        subscription = to_subscription(
            {
                "id": "sub_1",
                "customer": "cus_1",
                "customer_account": "acct_1",
                "status": "active",
                "items": {
                    "data": [
                        {
                            "price": {"id": "price_1"},
                            "current_period_start": JAN_1,
                            "current_period_end": FEB_1,
                        }
                    ]
                },
            }
        )

        item = subscription.items[0]
        assert item.price_id == "price_1"
        assert item.current_period_start == datetime(2026, 1, 1, tzinfo=UTC)
        assert item.current_period_end == datetime(2026, 2, 1, tzinfo=UTC)
        assert subscription.customer_account == "acct_1"

    def test_subscription_period_falls_back_to_subscription_level(self):
        """Older API versions only carry the period on the subscription."""
        subscription = to_subscription(
            {
                "id": "sub_1",
                "customer": "cus_1",
                "current_period_start": JAN_1,
                "current_period_end": FEB_1,
                "items": {"data": [{"price": "price_1"}]},
            }
        )

        item = subscription.items[0]
        assert item.price_id == "price_1"
        assert item.current_period_start == datetime(2026, 1, 1, tzinfo=UTC)
        assert item.current_period_end == datetime(2026, 2, 1, tzinfo=UTC)

    def test_find_item_by_known_price(self):
        subscription = to_subscription(
            {
                "id": "sub_1",
                "items": {"data": [{"price": "price_addon"}, {"price": "price_plan"}]},
            }
        )

        assert subscription.find_item({"price_plan"}).price_id == "price_plan"
        assert subscription.find_item({"price_other"}) is None

    def test_merchant_account_requirements(self):
        account = to_merchant_account(
            {
                "id": "acct_1",
                "charges_enabled": True,
                "payouts_enabled": False,
                "details_submitted": True,
                "requirements": {"currently_due": ["external_account"], "past_due": []},
            }
        )

        assert account.charges_enabled is True
        assert account.payouts_enabled is False
        assert account.requirements.currently_due == ["external_account"]
        assert account.requirements.pending_verification == []


class TestErrorMapping:
    """Tests for translating SDK failures."""

    async def test_missing_checkout_session_returns_none(self, monkeypatch):
        def retrieve(*_args, **_kwargs):
            raise stripe.InvalidRequestError(
                "No such checkout.session", param="id", code="resource_missing"
            )

        monkeypatch.setattr(stripe.checkout.Session, "retrieve", retrieve)

        assert await StripeClient().get_checkout_session("cs_gone") is None

    async def test_connection_error_becomes_billing_provider_error(self, monkeypatch):
        def create(*_args, **_kwargs):
            raise stripe.APIConnectionError("Network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", create)

        with pytest.raises(BillingProviderError) as exc_info:
            await StripeClient().create_checkout_session(
                price_id="price_1",
                success_url="https://example.com/ok",
                cancel_url="https://example.com/cancel",
                customer_email="a@x.com",
                metadata={"signup_session_id": "abc"},
            )

        assert exc_info.value.status_code == 502
        assert exc_info.value.error_code == "billing_provider_error"

    async def test_checkout_metadata_is_copied_to_subscription(self, monkeypatch):
        captured: dict = {}

        def create(**kwargs):
            captured.update(kwargs)
            return {"id": "cs_1", "url": "https://checkout.stripe.test/cs_1", "status": "open"}

        monkeypatch.setattr(stripe.checkout.Session, "create", create)

        checkout = await StripeClient().create_checkout_session(
            price_id="price_1",
            success_url="https://example.com/ok",
            cancel_url="https://example.com/cancel",
            customer_email="a@x.com",
            metadata={"signup_session_id": "abc"},
        )

        assert checkout.id == "cs_1"
        assert captured["mode"] == "subscription"
        assert captured["line_items"] == [{"price": "price_1", "quantity": 1}]
        assert captured["subscription_data"] == {"metadata": {"signup_session_id": "abc"}}
        assert captured["idempotency_key"]
