"""Tenant directory: the routing store mapping subdomains to tenant ids.

The directory lives in its own database, apart from the membership
registry, and is what request routing consults to turn a host name into
a tenant. There is no transaction spanning both stores. Tenant creation
writes here first, so a crash between the two writes leaves at worst an
orphaned directory entry (listed by ``find_orphans``), never a registry
tenant that cannot be routed to.
"""

from collections.abc import AsyncGenerator, Iterable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy import String, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from clubhub.config import settings
from clubhub.core.constants import MAX_NAME_LENGTH, MAX_SUBDOMAIN_LENGTH
from clubhub.core.database import (
    TimestampMixin,
    UUIDMixin,
    build_engine,
    build_session_factory,
)
from clubhub.core.errors import ConflictError
from clubhub.modules.tenants.exceptions import TenantDirectoryError


logger = structlog.get_logger()


class DirectoryBase(DeclarativeBase):
    """Declarative base for tables in the tenant directory database."""

    pass


class TenantDirectoryEntry(DirectoryBase, UUIDMixin, TimestampMixin):
    """Routable identifier of one tenant."""

    __tablename__ = "tenant_directory"

    identifier: Mapped[str] = mapped_column(
        String(MAX_SUBDOMAIN_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)

    def __repr__(self) -> str:
        return f"<TenantDirectoryEntry(identifier={self.identifier}, tenant_id={self.tenant_id})>"


directory_engine = build_engine(
    settings.async_tenant_directory_url,
    pool_size=settings.tenant_directory_pool_size,
)

directory_session_factory = build_session_factory(directory_engine)


async def get_directory_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a tenant directory session.

    Writes commit themselves inside TenantDirectory; anything left open
    is rolled back.
    """
    async with directory_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


DirectorySession = Annotated[AsyncSession, Depends(get_directory_db)]


class TenantDirectory:
    """Read and write access to the tenant directory store."""

    def __init__(self, session: DirectorySession) -> None:
        self.session = session

    async def add(self, tenant_id: UUID, identifier: str, name: str) -> TenantDirectoryEntry:
        """Insert and commit a directory entry.

        Args:
            tenant_id: Registry id the identifier routes to
            identifier: Normalized subdomain
            name: Tenant display name

        Returns:
            The committed entry

        Raises:
            ConflictError: If the identifier is already routed
            TenantDirectoryError: If the write failed for any other reason
        """
        entry = TenantDirectoryEntry(identifier=identifier, tenant_id=tenant_id, name=name)
        try:
            self.session.add(entry)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(
                f"Subdomain '{identifier}' is already taken",
                error_code="subdomain_taken",
                details={"subdomain": identifier},
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "tenant_directory_write_failed",
                identifier=identifier,
                tenant_id=str(tenant_id),
                error=str(e),
            )
            raise TenantDirectoryError(
                f"Failed to create tenant '{name}' in the tenant directory. "
                "Tenant was not created.",
                details={"subdomain": identifier},
            ) from e

        logger.info("tenant_directory_entry_added", identifier=identifier, tenant_id=str(tenant_id))
        return entry

    async def resolve(self, identifier: str) -> TenantDirectoryEntry | None:
        """Find the entry for an identifier, as request routing does."""
        result = await self.session.execute(
            select(TenantDirectoryEntry).where(TenantDirectoryEntry.identifier == identifier)
        )
        return result.scalar_one_or_none()

    async def remove(self, identifier: str) -> bool:
        """Delete an entry and commit.

        Returns:
            True if an entry was removed
        """
        result = await self.session.execute(
            delete(TenantDirectoryEntry).where(TenantDirectoryEntry.identifier == identifier)
        )
        await self.session.commit()
        removed = bool(result.rowcount)
        if removed:
            logger.info("tenant_directory_entry_removed", identifier=identifier)
        return removed

    async def find_orphans(self, known_tenant_ids: Iterable[UUID]) -> list[TenantDirectoryEntry]:
        """List entries whose tenant does not exist in the registry.

        Args:
            known_tenant_ids: Every tenant id present in the registry

        Returns:
            Entries that route to no registry tenant
        """
        known = set(known_tenant_ids)
        result = await self.session.execute(
            select(TenantDirectoryEntry).order_by(TenantDirectoryEntry.identifier)
        )
        return [entry for entry in result.scalars().all() if entry.tenant_id not in known]


TenantDirectoryDep = Annotated[TenantDirectory, Depends(TenantDirectory)]
