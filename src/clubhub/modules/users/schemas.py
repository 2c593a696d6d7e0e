"""Pydantic schemas for people and memberships."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from clubhub.core.constants import MAX_NAME_LENGTH, MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from clubhub.modules.users.models import TenantRole


# Character classes a password needs at least one of, in reporting order
PASSWORD_CHARACTER_CLASSES = {
    "uppercase letter": re.compile(r"[A-Z]"),
    "lowercase letter": re.compile(r"[a-z]"),
    "digit": re.compile(r"\d"),
    "special character": re.compile(r"[!@#$%^&*(),.?\":{}|<>\[\]\\;'`~_+\-=/]"),
}


def missing_character_classes(password: str) -> list[str]:
    return [
        label
        for label, pattern in PASSWORD_CHARACTER_CLASSES.items()
        if pattern.search(password) is None
    ]


def check_password_strength(password: str) -> str:
    """Return ``password`` unchanged, or raise naming every missing class."""
    missing = missing_character_classes(password)
    if len(missing) == 1:
        raise ValueError(f"Password must contain at least one {missing[0]}")
    if missing:
        raise ValueError(f"Password must contain at least one: {', '.join(missing)}")
    return password


class NewAccount(BaseModel):
    """Credential and person details for a new account."""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    last_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return check_password_strength(v)


# ============================================================
# Response Schemas
# ============================================================


class PlatformUserResponse(BaseModel):
    """A person."""

    id: UUID
    identity_user_id: UUID
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    default_tenant_id: UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    """A person's membership in one tenant."""

    tenant_id: UUID
    tenant_name: str
    tenant_subdomain: str
    tenant_status: str
    role: str
    status: str
    is_owner: bool

    @classmethod
    def from_membership(cls, membership) -> "MembershipResponse":
        return cls(
            tenant_id=membership.tenant_id,
            tenant_name=membership.tenant.name,
            tenant_subdomain=membership.tenant.subdomain,
            tenant_status=membership.tenant.status,
            role=TenantRole(membership.role).name.title(),
            status=membership.status,
            is_owner=membership.is_owner,
        )


class MemberResponse(BaseModel):
    """One member as seen by a tenant admin."""

    platform_user_id: UUID
    full_name: str
    role: str
    status: str
    is_owner: bool
    joined_at: datetime

    @classmethod
    def from_membership(cls, membership) -> "MemberResponse":
        return cls(
            platform_user_id=membership.platform_user_id,
            full_name=membership.platform_user.full_name,
            role=TenantRole(membership.role).name.title(),
            status=membership.status,
            is_owner=membership.is_owner,
            joined_at=membership.created_at,
        )
