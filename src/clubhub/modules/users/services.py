"""Membership queries: who belongs to which tenant, with which role.

All operations are read-only and take tenant ids explicitly.
"""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from clubhub.core.auth.dependencies import CurrentIdentity
from clubhub.core.errors import ForbiddenError, NotFoundError
from clubhub.modules.users.models import (
    PlatformUser,
    TenantRole,
    TenantUser,
    TenantUserStatus,
)
from clubhub.modules.users.repos import PlatformUserRepo, TenantUserRepo


logger = structlog.get_logger()


class MembershipService:
    """Service for person and membership queries."""

    def __init__(self, users: PlatformUserRepo, memberships: TenantUserRepo) -> None:
        self.users = users
        self.memberships = memberships

    async def get_platform_user_by_identity(self, identity_user_id: UUID) -> PlatformUser | None:
        """Get the person behind a credential."""
        return await self.users.get_by_identity(identity_user_id)

    async def list_memberships(
        self,
        platform_user_id: UUID,
        status: TenantUserStatus | None = None,
    ) -> list[TenantUser]:
        """List a person's memberships, owned tenants first, then by name."""
        return await self.memberships.list_for_user(platform_user_id, status)

    async def get_membership(self, platform_user_id: UUID, tenant_id: UUID) -> TenantUser | None:
        return await self.memberships.get(platform_user_id, tenant_id)

    async def has_role_in_tenant(
        self,
        platform_user_id: UUID,
        tenant_id: UUID,
        required_role: TenantRole,
    ) -> bool:
        """Check whether a person holds at least a role in a tenant.

        Roles are ordered Member < Coach < Admin. Only Active memberships
        count; Suspended, Inactive and PendingInvite grant nothing.

        Args:
            platform_user_id: The person
            tenant_id: The tenant
            required_role: Minimum role

        Returns:
            True if an Active membership with a sufficient role exists
        """
        membership = await self.memberships.get(platform_user_id, tenant_id)
        if membership is None or membership.status != TenantUserStatus.ACTIVE:
            return False
        return membership.role >= required_role

    async def is_owner(self, platform_user_id: UUID, tenant_id: UUID) -> bool:
        membership = await self.memberships.get(platform_user_id, tenant_id)
        return membership is not None and membership.is_owner

    async def list_members(
        self,
        tenant_id: UUID,
        status: TenantUserStatus | None = None,
    ) -> list[TenantUser]:
        """List the members of a tenant."""
        return await self.memberships.list_for_tenant(tenant_id, status)

    async def require_role(
        self,
        platform_user_id: UUID,
        tenant_id: UUID,
        required_role: TenantRole,
    ) -> None:
        """Raise unless the person holds at least a role in a tenant.

        Raises:
            ForbiddenError: If ``has_role_in_tenant`` is false
        """
        if not await self.has_role_in_tenant(platform_user_id, tenant_id, required_role):
            logger.warning(
                "tenant_role_denied",
                platform_user_id=str(platform_user_id),
                tenant_id=str(tenant_id),
                required_role=required_role.name,
            )
            raise ForbiddenError(
                "Insufficient tenant role",
                error_code="insufficient_role",
                details={"required_role": required_role.name.title()},
            )


# Type alias for dependency injection
MembershipSvc = Annotated[MembershipService, Depends(MembershipService)]


async def get_current_platform_user(
    identity: CurrentIdentity,
    service: MembershipSvc,
) -> PlatformUser:
    """Get the person behind the authenticated credential.

    Raises:
        NotFoundError: If the credential has no person yet
    """
    user = await service.get_platform_user_by_identity(identity.id)
    if not user:
        raise NotFoundError(
            "No platform user for this account",
            resource="platform_user",
            resource_id=str(identity.id),
        )
    return user


CurrentPlatformUser = Annotated[PlatformUser, Depends(get_current_platform_user)]


async def require_tenant_admin(
    tenant_id: UUID,
    user: CurrentPlatformUser,
    service: MembershipSvc,
) -> PlatformUser:
    """Route dependency: the caller must be an Admin of ``tenant_id``."""
    await service.require_role(user.id, tenant_id, TenantRole.ADMIN)
    return user


TenantAdmin = Annotated[PlatformUser, Depends(require_tenant_admin)]
