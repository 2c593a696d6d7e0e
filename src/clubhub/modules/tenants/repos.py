"""Tenant repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import exists, select

from clubhub.api.dependencies import DBSession
from clubhub.modules.tenants.models import Tenant


class TenantRepository:
    """Repository for Tenant database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, tenant: Tenant) -> Tenant:
        """Create a new tenant.

        Args:
            tenant: Tenant instance to create

        Returns:
            The created tenant with ID populated
        """
        self.session.add(tenant)
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID."""
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def get_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get a tenant by its (normalized) subdomain."""
        result = await self.session.execute(
            select(Tenant).where(Tenant.subdomain == subdomain)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_account(self, stripe_account_id: str) -> Tenant | None:
        """Get the tenant owning a merchant account."""
        result = await self.session.execute(
            select(Tenant).where(Tenant.stripe_account_id == stripe_account_id)
        )
        return result.scalar_one_or_none()

    async def subdomain_exists(self, subdomain: str) -> bool:
        """Check whether any tenant already holds a subdomain. Read only."""
        result = await self.session.execute(
            select(exists().where(Tenant.subdomain == subdomain))
        )
        return bool(result.scalar())

    async def list_ids(self) -> list[UUID]:
        """Ids of every tenant in the registry."""
        result = await self.session.execute(select(Tenant.id))
        return list(result.scalars().all())


# Type alias for dependency injection
TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]
