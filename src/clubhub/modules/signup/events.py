"""Translation of verified Stripe events into signup operations.

A webhook never drives the orchestrator directly. It is first reduced to
a ``BillingEvent``, which names exactly one of two operations
(activate, or record a billing failure) and carries the identifiers that
operation needs. Events that matter to neither translate to ``None``.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel

from clubhub.config import Settings
from clubhub.core.constants import SIGNUP_SESSION_ID_KEY
from clubhub.modules.billing.stripe_client import (
    StripeClient,
    SubscriptionInfo,
    get_field,
    id_of,
    to_checkout_session,
)
from clubhub.modules.signup.models import SignupSession
from clubhub.modules.signup.services import SignupService


logger = structlog.get_logger()

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
CHECKOUT_ASYNC_PAYMENT_FAILED = "checkout.session.async_payment_failed"
INVOICE_PAID = "invoice.paid"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"

SUBSCRIPTION_CREATE_REASON = "subscription_create"


class BillingEventKind(StrEnum):
    ACTIVATE = "activate"
    FAILURE = "failure"


class BillingEvent(BaseModel):
    """One signup operation derived from a Stripe event."""

    kind: BillingEventKind
    stripe_event_id: str | None = None
    signup_session_id: str | None = None
    checkout_session_id: str | None = None

    # Activation
    subscription_id: str | None = None
    customer_id: str | None = None
    merchant_account_id: str | None = None
    period_start: datetime | None = None
    period_end: datetime | None = None

    # Failure
    error_message: str | None = None


def _invoice_subscription_id(invoice: Any) -> str | None:
    """Subscription of an invoice, across API versions."""
    subscription = id_of(get_field(invoice, "subscription"))
    if subscription:
        return subscription
    details = get_field(get_field(invoice, "parent"), "subscription_details")
    return id_of(get_field(details, "subscription"))


def _activation(
    subscription: SubscriptionInfo,
    event_id: str | None,
    price_ids: set[str] | None,
    customer_id: str | None = None,
    checkout_session_id: str | None = None,
    signup_session_id: str | None = None,
) -> BillingEvent | None:
    if price_ids is None:
        item = subscription.items[0] if subscription.items else None
    else:
        item = subscription.find_item(price_ids)
        if item is None:
            logger.warning(
                "stripe_event_skipped",
                stripe_event_id=event_id,
                reason="unknown_price",
                subscription_id=subscription.id,
            )
            return None
    return BillingEvent(
        kind=BillingEventKind.ACTIVATE,
        stripe_event_id=event_id,
        signup_session_id=signup_session_id or subscription.metadata.get(SIGNUP_SESSION_ID_KEY),
        checkout_session_id=checkout_session_id,
        subscription_id=subscription.id,
        customer_id=subscription.customer_id or customer_id,
        merchant_account_id=subscription.customer_account,
        period_start=item.current_period_start if item else None,
        period_end=item.current_period_end if item else None,
    )


async def translate_stripe_event(
    event: Any,
    stripe: StripeClient,
    settings: Settings,
    price_ids: set[str] | None = None,
) -> BillingEvent | None:
    """Reduce a verified Stripe event to at most one billing event.

    Args:
        event: Verified Stripe event (or an equivalent dict)
        stripe: Client used to fetch the subscription behind a payment
        settings: Decides whether checkout completion alone activates
        price_ids: Plan prices; the period comes from the line item billed
            at one of them, and a subscription with none is skipped. When
            omitted the first line item is used.

    Returns:
        The billing event, or None if the event is not relevant
    """
    event_id = get_field(event, "id")
    event_type = get_field(event, "type")
    obj = get_field(get_field(event, "data"), "object")
    log = logger.bind(stripe_event_id=event_id, event_type=event_type)

    if event_type in (CHECKOUT_COMPLETED, CHECKOUT_ASYNC_PAYMENT_SUCCEEDED):
        if not settings.signup_activate_on_checkout_completed:
            log.info("stripe_event_skipped", reason="activation_waits_for_invoice")
            return None
        checkout = to_checkout_session(obj)
        if checkout.payment_status != "paid" or not checkout.subscription_id:
            log.info(
                "stripe_event_skipped",
                reason="not_paid",
                checkout_session_id=checkout.id,
                payment_status=checkout.payment_status,
            )
            return None
        subscription = await stripe.get_subscription(checkout.subscription_id)
        if subscription is None:
            log.warning("stripe_event_skipped", reason="subscription_missing")
            return None
        return _activation(
            subscription,
            event_id,
            price_ids,
            customer_id=checkout.customer_id,
            checkout_session_id=checkout.id,
            signup_session_id=checkout.metadata.get(SIGNUP_SESSION_ID_KEY),
        )

    if event_type == INVOICE_PAID:
        if get_field(obj, "billing_reason") != SUBSCRIPTION_CREATE_REASON:
            log.info("stripe_event_skipped", reason="not_first_invoice")
            return None
        subscription_id = _invoice_subscription_id(obj)
        if not subscription_id:
            log.info("stripe_event_skipped", reason="no_subscription")
            return None
        subscription = await stripe.get_subscription(subscription_id)
        if subscription is None or not subscription.metadata.get(SIGNUP_SESSION_ID_KEY):
            log.info("stripe_event_skipped", reason="not_a_signup_subscription")
            return None
        return _activation(
            subscription,
            event_id,
            price_ids,
            customer_id=id_of(get_field(obj, "customer")),
        )

    if event_type == CHECKOUT_ASYNC_PAYMENT_FAILED:
        checkout = to_checkout_session(obj)
        return BillingEvent(
            kind=BillingEventKind.FAILURE,
            stripe_event_id=event_id,
            checkout_session_id=checkout.id,
            signup_session_id=checkout.metadata.get(SIGNUP_SESSION_ID_KEY),
            error_message="Payment failed during checkout",
        )

    if event_type == INVOICE_PAYMENT_FAILED:
        subscription_id = _invoice_subscription_id(obj)
        subscription = (
            await stripe.get_subscription(subscription_id) if subscription_id else None
        )
        signup_session_id = subscription.metadata.get(SIGNUP_SESSION_ID_KEY) if subscription else None
        if not signup_session_id:
            log.info("stripe_event_skipped", reason="not_a_signup_subscription")
            return None
        return BillingEvent(
            kind=BillingEventKind.FAILURE,
            stripe_event_id=event_id,
            signup_session_id=signup_session_id,
            error_message=f"Payment failed for invoice {get_field(obj, 'id')}",
        )

    log.info("stripe_event_ignored")
    return None


async def apply_billing_event(
    service: SignupService, event: BillingEvent
) -> SignupSession | None:
    """Run the signup operation a billing event names."""
    if event.kind == BillingEventKind.ACTIVATE:
        return await service.activate(
            subscription_id=event.subscription_id or "",
            customer_id=event.customer_id or "",
            merchant_account_id=event.merchant_account_id,
            period_start=event.period_start,
            period_end=event.period_end,
            checkout_session_id=event.checkout_session_id,
            signup_session_id=event.signup_session_id,
        )
    return await service.record_billing_failure(
        error_message=event.error_message or "Payment failed",
        checkout_session_id=event.checkout_session_id,
        signup_session_id=event.signup_session_id,
    )
