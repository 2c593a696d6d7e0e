"""Identity user repository for database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.auth.models import IdentityUser


class IdentityUserRepository:
    """Repository for IdentityUser database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: IdentityUser) -> IdentityUser:
        """Create a new identity user.

        Args:
            user: IdentityUser instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> IdentityUser | None:
        """Get an identity user by ID."""
        stmt = select(IdentityUser).where(IdentityUser.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> IdentityUser | None:
        """Get an identity user by (already normalized) email."""
        stmt = select(IdentityUser).where(IdentityUser.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
