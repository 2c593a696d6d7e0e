"""Identity provider credential model."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clubhub.core.constants import MAX_EMAIL_LENGTH, MAX_ROLE_NAME_LENGTH
from clubhub.core.database.base import Base, TimestampMixin, UTCDateTime, UUIDMixin


class PlatformRole(StrEnum):
    """Coarse platform-wide roles held by a credential."""

    PLATFORM_USER = "PlatformUser"
    PLATFORM_ADMIN = "PlatformAdmin"


class IdentityUser(Base, UUIDMixin, TimestampMixin):
    """Login credential, kept apart from the person it authenticates.

    Credential rotation and lockout live here; names, tenant roles and
    memberships live on PlatformUser and TenantUser.

    Attributes:
        email: Unique, lower-cased login email
        password_hash: Bcrypt hash of the password
        platform_role: Platform-wide role name
        is_active: Whether the credential may log in
        failed_login_count: Consecutive failed password attempts
        locked_until: Login is refused until this time
    """

    __tablename__ = "identity_users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    platform_role: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        default=PlatformRole.PLATFORM_USER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    failed_login_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    locked_until: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<IdentityUser(id={self.id}, email={self.email})>"
