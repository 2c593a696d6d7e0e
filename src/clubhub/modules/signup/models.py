"""Signup session database model."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from clubhub.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_ERROR_MESSAGE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_STRIPE_ID_LENGTH,
    MAX_SUBDOMAIN_LENGTH,
)
from clubhub.core.database import Base, TimestampMixin, UTCDateTime, UUIDMixin


class SignupState(StrEnum):
    """Signup session states, in forward order."""

    STARTED = "Started"
    USER_CREATED = "UserCreated"
    TENANT_CREATED = "TenantCreated"
    BILLING_STARTED = "BillingStarted"
    BILLING_COMPLETE = "BillingComplete"
    COMPLETED = "Completed"
    EXPIRED = "Expired"


TERMINAL_STATES = frozenset({SignupState.COMPLETED, SignupState.EXPIRED})


class SignupSession(Base, UUIDMixin, TimestampMixin):
    """One attempt to provision one tenant.

    Moves forward only and ends in Completed or Expired.

    Attributes:
        plan_id: Platform plan being bought
        email: Contact email of the signing-up admin
        identity_user_id: Credential created in the admin step
        tenant_id: Tenant created in the tenant step
        state: SignupState value
        checkout_session_id: Provider checkout session, once started
        expires_at: After this time the session can only become Expired
        last_activity_at: Touched by every transition
        completed_at: Set by activation
        error_message: Last billing failure reported by the provider
    """

    __tablename__ = "signup_sessions"

    plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("platform_plans.id"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH), nullable=False, index=True
    )
    identity_user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("identity_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    state: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=SignupState.STARTED,
        nullable=False,
    )
    checkout_session_id: Mapped[str | None] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH), nullable=True, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_activity_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    error_message: Mapped[str | None] = mapped_column(
        String(MAX_ERROR_MESSAGE_LENGTH), nullable=True
    )

    # Values captured along the way, used to prefill resumed forms
    first_name: Mapped[str | None] = mapped_column(String(MAX_NAME_LENGTH))
    last_name: Mapped[str | None] = mapped_column(String(MAX_NAME_LENGTH))
    organization_name: Mapped[str | None] = mapped_column(String(MAX_NAME_LENGTH))
    subdomain: Mapped[str | None] = mapped_column(String(MAX_SUBDOMAIN_LENGTH))

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def __repr__(self) -> str:
        return f"<SignupSession(id={self.id}, state={self.state}, email={self.email})>"
