"""Person and membership repositories for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from clubhub.api.dependencies import DBSession
from clubhub.modules.tenants.models import Tenant
from clubhub.modules.users.models import PlatformUser, TenantUser, TenantUserStatus


class PlatformUserRepository:
    """Repository for PlatformUser database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: PlatformUser) -> PlatformUser:
        """Create a new person.

        Args:
            user: PlatformUser instance to create

        Returns:
            The created person with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, platform_user_id: UUID) -> PlatformUser | None:
        result = await self.session.execute(
            select(PlatformUser).where(PlatformUser.id == platform_user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_identity(self, identity_user_id: UUID) -> PlatformUser | None:
        """Get the person authenticated by a credential."""
        result = await self.session.execute(
            select(PlatformUser).where(PlatformUser.identity_user_id == identity_user_id)
        )
        return result.scalar_one_or_none()


class TenantUserRepository:
    """Repository for TenantUser (membership) database operations.

    Every query names its tenant or person explicitly; nothing is
    scoped implicitly by request context.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, membership: TenantUser) -> TenantUser:
        """Create a new membership."""
        self.session.add(membership)
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def get(self, platform_user_id: UUID, tenant_id: UUID) -> TenantUser | None:
        """Get the membership of one person in one tenant."""
        result = await self.session.execute(
            select(TenantUser)
            .where(TenantUser.platform_user_id == platform_user_id)
            .where(TenantUser.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        platform_user_id: UUID,
        status: TenantUserStatus | None = None,
    ) -> list[TenantUser]:
        """List a person's memberships, owned tenants first, then by tenant name.

        Args:
            platform_user_id: The person
            status: Optional status filter

        Returns:
            Memberships with their tenants loaded
        """
        stmt = (
            select(TenantUser)
            .join(Tenant, Tenant.id == TenantUser.tenant_id)
            .where(TenantUser.platform_user_id == platform_user_id)
            .order_by(TenantUser.is_owner.desc(), Tenant.name)
        )
        if status:
            stmt = stmt.where(TenantUser.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_tenant(
        self,
        tenant_id: UUID,
        status: TenantUserStatus | None = None,
    ) -> list[TenantUser]:
        """List the members of a tenant, highest role first."""
        stmt = (
            select(TenantUser)
            .where(TenantUser.tenant_id == tenant_id)
            .order_by(TenantUser.role.desc(), TenantUser.created_at)
        )
        if status:
            stmt = stmt.where(TenantUser.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# Type aliases for dependency injection
PlatformUserRepo = Annotated[PlatformUserRepository, Depends(PlatformUserRepository)]
TenantUserRepo = Annotated[TenantUserRepository, Depends(TenantUserRepository)]
