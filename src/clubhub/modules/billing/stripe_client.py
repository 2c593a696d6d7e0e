"""Stripe client wrapper for async operations.

Every SDK call runs in a worker thread with a timeout, and every SDK
object is converted into one of the frozen models below before it
leaves this module. The signup flow therefore never depends on SDK
object shapes, which shift between API versions.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any, TypeVar
from uuid import UUID, uuid4

import stripe
import structlog
from fastapi import Depends
from pydantic import BaseModel, ConfigDict, Field

from clubhub.config import settings
from clubhub.modules.billing.exceptions import BillingProviderError


logger = structlog.get_logger()

R = TypeVar("R")


def configure_stripe() -> None:
    """Configure the Stripe SDK with API key and retry policy."""
    stripe.api_key = settings.stripe_secret_key
    stripe.max_network_retries = settings.stripe_max_network_retries


# ============================================================
# Provider-neutral views of Stripe objects
# ============================================================


class CheckoutSessionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str | None
    status: str | None
    payment_status: str | None
    mode: str | None
    subscription_id: str | None
    customer_id: str | None
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.status == "complete" and self.payment_status == "paid"


class SubscriptionItemInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    price_id: str | None
    current_period_start: datetime | None
    current_period_end: datetime | None


class SubscriptionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    customer_id: str | None
    customer_account: str | None
    status: str | None
    items: list[SubscriptionItemInfo] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)

    def find_item(self, price_ids: set[str]) -> SubscriptionItemInfo | None:
        """First line item billed at one of the given prices."""
        for item in self.items:
            if item.price_id and item.price_id in price_ids:
                return item
        return None


class AccountRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    currently_due: list[str] = Field(default_factory=list)
    eventually_due: list[str] = Field(default_factory=list)
    past_due: list[str] = Field(default_factory=list)
    pending_verification: list[str] = Field(default_factory=list)


class MerchantAccountInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool
    requirements: AccountRequirements = Field(default_factory=AccountRequirements)


# ============================================================
# Field access helpers
# ============================================================


def get_field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return getattr(obj, key, default)
    return default if value is None else value


def id_of(value: Any) -> str | None:
    """Id of an expandable field, whether expanded or not."""
    if value is None or isinstance(value, str):
        return value
    return get_field(value, "id")


def as_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    # Newer SDK objects are no longer dict subclasses
    for method in ("to_dict", "to_dict_recursive"):
        to_dict = getattr(value, method, None)
        if callable(to_dict):
            return dict(to_dict())
    keys = getattr(value, "keys", None)
    if callable(keys):
        return {key: value[key] for key in keys()}
    return {}


def from_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


def to_checkout_session(obj: Any) -> CheckoutSessionInfo:
    return CheckoutSessionInfo(
        id=get_field(obj, "id"),
        url=get_field(obj, "url"),
        status=get_field(obj, "status"),
        payment_status=get_field(obj, "payment_status"),
        mode=get_field(obj, "mode"),
        subscription_id=id_of(get_field(obj, "subscription")),
        customer_id=id_of(get_field(obj, "customer")),
        metadata={k: str(v) for k, v in as_dict(get_field(obj, "metadata")).items()},
    )


def to_subscription(obj: Any) -> SubscriptionInfo:
    # Period bounds moved from the subscription onto its items in newer API versions
    sub_start = get_field(obj, "current_period_start")
    sub_end = get_field(obj, "current_period_end")

    items: list[SubscriptionItemInfo] = []
    for item in get_field(get_field(obj, "items"), "data", []) or []:
        items.append(
            SubscriptionItemInfo(
                price_id=id_of(get_field(item, "price")),
                current_period_start=from_timestamp(
                    get_field(item, "current_period_start", sub_start)
                ),
                current_period_end=from_timestamp(
                    get_field(item, "current_period_end", sub_end)
                ),
            )
        )

    return SubscriptionInfo(
        id=get_field(obj, "id"),
        customer_id=id_of(get_field(obj, "customer")),
        customer_account=id_of(get_field(obj, "customer_account")),
        status=get_field(obj, "status"),
        items=items,
        metadata={k: str(v) for k, v in as_dict(get_field(obj, "metadata")).items()},
    )


def to_merchant_account(obj: Any) -> MerchantAccountInfo:
    requirements = get_field(obj, "requirements")
    return MerchantAccountInfo(
        id=get_field(obj, "id"),
        charges_enabled=bool(get_field(obj, "charges_enabled", False)),
        payouts_enabled=bool(get_field(obj, "payouts_enabled", False)),
        details_submitted=bool(get_field(obj, "details_submitted", False)),
        requirements=AccountRequirements(
            currently_due=list(get_field(requirements, "currently_due", []) or []),
            eventually_due=list(get_field(requirements, "eventually_due", []) or []),
            past_due=list(get_field(requirements, "past_due", []) or []),
            pending_verification=list(
                get_field(requirements, "pending_verification", []) or []
            ),
        ),
    )


def _is_missing(error: stripe.StripeError) -> bool:
    return isinstance(error, stripe.InvalidRequestError) and error.code == "resource_missing"


class StripeClient:
    """Async wrapper for Stripe API operations."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the Stripe client."""
        configure_stripe()
        self.timeout = timeout or settings.stripe_timeout_seconds

    async def _call(self, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        """Run a blocking SDK call off the event loop with a timeout.

        Raises:
            BillingProviderError: On timeout or any Stripe error
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            logger.warning("stripe_call_timeout", call=getattr(func, "__qualname__", str(func)))
            raise BillingProviderError("Billing provider timed out") from e
        except stripe.StripeError as e:
            if _is_missing(e):
                raise
            logger.warning(
                "stripe_call_failed",
                call=getattr(func, "__qualname__", str(func)),
                error=str(e),
            )
            raise BillingProviderError(
                "Billing provider request failed",
                details={"provider_error": getattr(e, "code", None) or type(e).__name__},
            ) from e

    # ============================================================
    # Checkout Sessions
    # ============================================================

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSessionInfo:
        """Create a subscription Checkout session for one platform plan.

        The metadata is copied onto the subscription so invoice events
        can be traced back to the signup session.
        """
        session = await self._call(
            stripe.checkout.Session.create,
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=customer_email,
            metadata=metadata,
            subscription_data={"metadata": metadata},
            idempotency_key=str(uuid4()),
        )
        return to_checkout_session(session)

    async def get_checkout_session(self, session_id: str) -> CheckoutSessionInfo | None:
        """Retrieve a Checkout session, or None if Stripe no longer has it."""
        try:
            session = await self._call(stripe.checkout.Session.retrieve, session_id)
        except stripe.InvalidRequestError:
            return None
        return to_checkout_session(session)

    # ============================================================
    # Subscriptions
    # ============================================================

    async def get_subscription(self, subscription_id: str) -> SubscriptionInfo | None:
        """Retrieve a subscription, or None if Stripe does not know it."""
        try:
            subscription = await self._call(stripe.Subscription.retrieve, subscription_id)
        except stripe.InvalidRequestError:
            return None
        return to_subscription(subscription)

    # ============================================================
    # Connect (merchant accounts)
    # ============================================================

    async def create_connect_account(
        self, tenant_id: UUID, name: str, email: str
    ) -> str:
        """Create a Connect account for a tenant and return its id."""
        account = await self._call(
            stripe.Account.create,
            type="express",
            email=email,
            business_profile={"name": name},
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            metadata={"tenant_id": str(tenant_id)},
            idempotency_key=f"connect-account-{tenant_id}",
        )
        return get_field(account, "id")

    async def create_account_link(
        self,
        account_id: str,
        refresh_url: str,
        return_url: str,
        link_type: str = "account_onboarding",
    ) -> str:
        """Create a hosted onboarding (or update) link for a Connect account."""
        link = await self._call(
            stripe.AccountLink.create,
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type=link_type,
        )
        return get_field(link, "url")

    async def get_connect_account(self, account_id: str) -> MerchantAccountInfo | None:
        """Retrieve a Connect account, or None if it does not exist."""
        try:
            account = await self._call(stripe.Account.retrieve, account_id)
        except stripe.InvalidRequestError:
            return None
        return to_merchant_account(account)

    # ============================================================
    # Webhooks
    # ============================================================

    @staticmethod
    def construct_webhook_event(
        payload: bytes, sig_header: str, webhook_secret: str
    ) -> stripe.Event:
        """Construct and verify a webhook event."""
        return stripe.Webhook.construct_event(payload, sig_header, webhook_secret)


# Global client instance
stripe_client = StripeClient()


def get_stripe_client() -> StripeClient:
    """Dependency returning the shared Stripe client (overridden in tests)."""
    return stripe_client


StripeClientDep = Annotated[StripeClient, Depends(get_stripe_client)]
