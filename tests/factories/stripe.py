"""Provider-neutral Stripe objects for tests."""

import hashlib
import hmac
import time
from datetime import UTC, datetime, timedelta

from clubhub.modules.billing.stripe_client import (
    CheckoutSessionInfo,
    SubscriptionInfo,
    SubscriptionItemInfo,
)


PLAN_PRICE_ID = "price_club_monthly"


def make_checkout(
    checkout_id: str = "cs_test_1",
    status: str = "open",
    payment_status: str = "unpaid",
    subscription_id: str | None = None,
    metadata: dict[str, str] | None = None,
) -> CheckoutSessionInfo:
    return CheckoutSessionInfo(
        id=checkout_id,
        url=f"https://checkout.stripe.test/{checkout_id}",
        status=status,
        payment_status=payment_status,
        mode="subscription",
        subscription_id=subscription_id,
        customer_id="cus_1",
        metadata=metadata or {},
    )


def make_subscription(
    subscription_id: str = "sub_1",
    price_id: str = PLAN_PRICE_ID,
    metadata: dict[str, str] | None = None,
    customer_account: str | None = "acct_1",
) -> SubscriptionInfo:
    start = datetime(2026, 1, 1, tzinfo=UTC)
    return SubscriptionInfo(
        id=subscription_id,
        customer_id="cus_1",
        customer_account=customer_account,
        status="active",
        metadata=metadata or {},
        items=[
            SubscriptionItemInfo(
                price_id=price_id,
                current_period_start=start,
                current_period_end=start + timedelta(days=30),
            )
        ],
    )


def sign_webhook(payload: str, secret: str, timestamp: int | None = None) -> str:
    """Stripe-Signature header value for a payload, as Stripe computes it."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
