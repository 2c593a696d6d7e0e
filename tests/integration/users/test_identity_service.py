"""Credential creation, platform roles and login lockout."""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.config import settings
from clubhub.core.auth.models import PlatformRole
from clubhub.core.auth.service import IdentityService
from clubhub.core.errors import ConflictError, NotFoundError, UnauthorizedError


PASSWORD = "SecurePass123!"


@pytest.fixture
def identity(db: AsyncSession) -> IdentityService:
    return IdentityService(db)


@pytest.mark.asyncio
class TestCreateUser:
    async def test_email_is_normalized_and_password_hashed(
        self, identity: IdentityService, db: AsyncSession
    ):
        user = await identity.create_user("  Ada@Example.COM ", PASSWORD)
        await db.commit()

        assert user.email == "ada@example.com"
        assert user.password_hash != PASSWORD
        assert user.platform_role == PlatformRole.PLATFORM_USER
        assert await identity.email_exists("ADA@example.com")

    async def test_email_taken(self, identity: IdentityService, db: AsyncSession):
        await identity.create_user("ada@example.com", PASSWORD)
        await db.commit()

        with pytest.raises(ConflictError) as exc_info:
            await identity.create_user("Ada@example.com", PASSWORD)

        assert exc_info.value.error_code == "email_taken"


@pytest.mark.asyncio
class TestAssignRole:
    async def test_replaces_platform_role(self, identity: IdentityService, db: AsyncSession):
        user = await identity.create_user("ada@example.com", PASSWORD)
        await db.commit()

        updated = await identity.assign_role(user.id, PlatformRole.PLATFORM_ADMIN)

        assert updated.platform_role == PlatformRole.PLATFORM_ADMIN

    async def test_unknown_identity(self, identity: IdentityService):
        with pytest.raises(NotFoundError):
            await identity.assign_role(uuid4(), PlatformRole.PLATFORM_ADMIN)


@pytest.mark.asyncio
class TestAuthenticate:
    async def test_success_resets_failed_attempts(
        self, identity: IdentityService, db: AsyncSession
    ):
        user = await identity.create_user("ada@example.com", PASSWORD)
        await db.commit()
        with pytest.raises(UnauthorizedError):
            await identity.authenticate("ada@example.com", "WrongPass123!")
        assert user.failed_login_count == 1

        authenticated = await identity.authenticate("ada@example.com", PASSWORD)

        assert authenticated.id == user.id
        assert authenticated.failed_login_count == 0

    async def test_locks_after_repeated_failures(
        self, identity: IdentityService, db: AsyncSession
    ):
        user = await identity.create_user("ada@example.com", PASSWORD)
        await db.commit()

        for _ in range(settings.max_failed_login_attempts):
            with pytest.raises(UnauthorizedError):
                await identity.authenticate("ada@example.com", "WrongPass123!")

        assert user.locked_until is not None
        with pytest.raises(UnauthorizedError) as exc_info:
            await identity.authenticate("ada@example.com", PASSWORD)
        assert exc_info.value.error_code == "account_locked"

    async def test_inactive_account_is_refused(
        self, identity: IdentityService, db: AsyncSession
    ):
        user = await identity.create_user("ada@example.com", PASSWORD)
        user.is_active = False
        await db.commit()

        with pytest.raises(UnauthorizedError) as exc_info:
            await identity.authenticate("ada@example.com", PASSWORD)

        assert exc_info.value.error_code == "account_inactive"
