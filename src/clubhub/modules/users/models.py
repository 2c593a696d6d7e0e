"""Person and membership database models."""

from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubhub.core.constants import MAX_NAME_LENGTH, MAX_STATUS_LENGTH
from clubhub.core.database.base import Base, TenantMixin, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from clubhub.modules.tenants.models import Tenant


class TenantRole(IntEnum):
    """Role within one tenant. Higher values include the lower ones."""

    MEMBER = 1
    COACH = 2
    ADMIN = 3


class TenantUserStatus(StrEnum):
    """Membership status within one tenant."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SUSPENDED = "Suspended"
    PENDING_INVITE = "PendingInvite"


class PlatformUser(Base, UUIDMixin, TimestampMixin):
    """A person, independent of login credentials and of any tenant.

    Created once per person; the same person may join many tenants.

    Attributes:
        identity_user_id: The credential that authenticates this person (1:1)
        first_name: Given name
        last_name: Family name
        is_active: Whether the person may use the platform
        default_tenant_id: Tenant to open after login
    """

    __tablename__ = "platform_users"

    identity_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("identity_users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    last_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    default_tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
    )

    memberships: Mapped[list["TenantUser"]] = relationship(
        "TenantUser",
        back_populates="platform_user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<PlatformUser(id={self.id}, identity_user_id={self.identity_user_id})>"


class TenantUser(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Membership of one person in one tenant.

    At most one row exists per (tenant, person). Rows are removed with
    their tenant or person, never the other way round.

    Attributes:
        platform_user_id: The member
        role: TenantRole value
        status: TenantUserStatus value
        is_owner: Set on the admin who signed the tenant up
        membership_plan_id: Club membership plan, if any
        created_by: Who created the membership
    """

    __tablename__ = "tenant_users"
    __table_args__ = (
        UniqueConstraint("tenant_id", "platform_user_id", name="uq_tenant_users_member"),
    )

    platform_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("platform_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[int] = mapped_column(
        Integer,
        default=TenantRole.MEMBER,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=TenantUserStatus.ACTIVE,
        nullable=False,
    )
    is_owner: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    membership_plan_id: Mapped[UUID | None] = mapped_column(nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(MAX_NAME_LENGTH), nullable=True)

    # Relationships
    tenant: Mapped["Tenant"] = relationship(
        "Tenant",
        back_populates="members",
        lazy="selectin",
    )
    platform_user: Mapped["PlatformUser"] = relationship(
        "PlatformUser",
        back_populates="memberships",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<TenantUser(tenant_id={self.tenant_id}, "
            f"platform_user_id={self.platform_user_id}, role={self.role})>"
        )
