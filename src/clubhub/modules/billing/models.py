"""Billing database models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from clubhub.core.constants import (
    MAX_CURRENCY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_STRIPE_ID_LENGTH,
)
from clubhub.core.database import Base, TimestampMixin, UTCDateTime, UUIDMixin


class BillingInterval(StrEnum):
    MONTH = "month"
    YEAR = "year"
    ONE_TIME = "one_time"


class SubscriptionStatus(StrEnum):
    """Mirror of the provider's subscription status."""

    ACTIVE = "active"
    PAST_DUE = "past_due"
    TRIALING = "trialing"
    CANCELLED = "cancelled"


class PlatformPlan(Base, UUIDMixin, TimestampMixin):
    """A plan a club can buy to use the platform."""

    __tablename__ = "platform_plans"

    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(String(MAX_DESCRIPTION_LENGTH))
    price_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(
        String(MAX_CURRENCY_LENGTH), nullable=False, default="usd"
    )
    billing_interval: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH), nullable=False, default=BillingInterval.MONTH
    )

    # Stripe catalogue references; a plan without a price cannot be checked out
    stripe_product_id: Mapped[str | None] = mapped_column(String(MAX_STRIPE_ID_LENGTH))
    stripe_price_id: Mapped[str | None] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH), index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def is_recurring(self) -> bool:
        return self.billing_interval != BillingInterval.ONE_TIME


class TenantSubscription(Base, UUIDMixin, TimestampMixin):
    """Links a tenant to its platform subscription at the provider.

    Written only by the activation reconciler. One row per tenant.
    """

    __tablename__ = "tenant_subscriptions"

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    plan_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("platform_plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    stripe_subscription_id: Mapped[str] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH), nullable=False, index=True
    )
    stripe_customer_id: Mapped[str] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH), nullable=False, default=SubscriptionStatus.ACTIVE
    )

    # Billing period
    current_period_start: Mapped[datetime | None] = mapped_column(UTCDateTime())
    current_period_end: Mapped[datetime | None] = mapped_column(UTCDateTime())
    will_renew: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
