"""Tenant database models."""

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.core.constants import (
    MAX_NAME_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_STRIPE_ID_LENGTH,
    MAX_SUBDOMAIN_LENGTH,
)
from clubhub.core.database.base import Base, TimestampMixin, UTCDateTime, UUIDMixin


if TYPE_CHECKING:
    from clubhub.modules.users.models import TenantUser


class TenantStatus(StrEnum):
    """Tenant lifecycle status."""

    PENDING_ACTIVATION = "PendingActivation"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    CANCELLED = "Cancelled"


class MerchantOnboardingState(StrEnum):
    """Progress of the tenant's Stripe Connect (merchant) onboarding."""

    NOT_STARTED = "NotStarted"
    ACCOUNT_CREATED = "AccountCreated"
    ONBOARDING_STARTED = "OnboardingStarted"
    COMPLETED = "Completed"


class MerchantRequirementsStatus(StrEnum):
    """Most urgent outstanding requirement on the merchant account."""

    NONE = "None"
    EVENTUALLY_DUE = "EventuallyDue"
    CURRENTLY_DUE = "CurrentlyDue"
    PAST_DUE = "PastDue"
    PENDING_VERIFICATION = "PendingVerification"


class Tenant(Base, UUIDMixin, TimestampMixin):
    """A club using the platform.

    Created in PendingActivation by the signup flow. Only the activation
    reconciler moves it to Active; only the merchant account refresh
    touches the capability fields.

    Attributes:
        name: Display name
        subdomain: Unique public identifier, also the directory key
        status: Lifecycle status
        stripe_account_id: Merchant (Connect) account, once known
        charges_enabled: Merchant account can accept charges
        payouts_enabled: Merchant account can receive payouts
        details_submitted: Merchant onboarding form submitted
        onboarding_state: Merchant onboarding progress
        requirements_status: Most urgent open merchant requirement
        onboarding_completed_at: When charges were first enabled
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    subdomain: Mapped[str] = mapped_column(
        String(MAX_SUBDOMAIN_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=TenantStatus.PENDING_ACTIVATION,
        nullable=False,
    )

    # Merchant account (Stripe Connect)
    stripe_account_id: Mapped[str | None] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH),
        nullable=True,
        index=True,
    )
    charges_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payouts_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    details_submitted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    onboarding_state: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=MerchantOnboardingState.NOT_STARTED,
        nullable=False,
    )
    requirements_status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=MerchantRequirementsStatus.NONE,
        nullable=False,
    )
    onboarding_completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Relationships
    members: Mapped[list["TenantUser"]] = relationship(
        "TenantUser",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, subdomain={self.subdomain})>"
