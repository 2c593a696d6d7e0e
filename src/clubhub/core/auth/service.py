"""Identity provider service: credentials, login and platform roles."""

from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from clubhub.api.dependencies import DBSession
from clubhub.config import settings
from clubhub.core.auth.backend import hash_password, verify_password
from clubhub.core.auth.models import IdentityUser, PlatformRole
from clubhub.core.auth.repos import IdentityUserRepository
from clubhub.core.errors import ConflictError, NotFoundError, UnauthorizedError


logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    """Canonical form used for uniqueness checks and lookups."""
    return email.strip().lower()


class IdentityService:
    """Service for credential operations.

    Issues password hashes, authenticates logins with lockout, and
    assigns platform-wide roles. Knows nothing about tenants.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.repo = IdentityUserRepository(db)

    async def email_exists(self, email: str) -> bool:
        """Check whether a credential is registered for an email."""
        return await self.repo.get_by_email(normalize_email(email)) is not None

    async def create_user(
        self,
        email: str,
        password: str,
        platform_role: PlatformRole = PlatformRole.PLATFORM_USER,
    ) -> IdentityUser:
        """Create a credential with a hashed password.

        The caller owns the transaction; nothing is committed here.

        Args:
            email: Login email
            password: Plain text password
            platform_role: Initial platform-wide role

        Returns:
            The created identity user

        Raises:
            ConflictError: If the email is already registered
        """
        normalized = normalize_email(email)
        if await self.repo.get_by_email(normalized):
            raise ConflictError(
                f"User with email '{normalized}' already exists",
                error_code="email_taken",
                details={"email": normalized},
            )

        user = IdentityUser(
            email=normalized,
            password_hash=hash_password(password),
            platform_role=platform_role,
            is_active=True,
            failed_login_count=0,
        )
        return await self.repo.create(user)

    async def assign_role(self, identity_user_id: UUID, role: PlatformRole) -> IdentityUser:
        """Replace the platform-wide role of a credential.

        Raises:
            NotFoundError: If the credential does not exist
        """
        user = await self.repo.get_by_id(identity_user_id)
        if not user:
            raise NotFoundError(
                "Identity user not found",
                resource="identity_user",
                resource_id=str(identity_user_id),
            )
        user.platform_role = role
        await self.db.flush()
        logger.info(
            "platform_role_assigned",
            identity_user_id=str(identity_user_id),
            role=str(role),
        )
        return user

    async def authenticate(self, email: str, password: str) -> IdentityUser:
        """Check a login attempt.

        Failed attempts are counted; reaching the configured maximum locks
        the credential for the lockout window.

        Args:
            email: Login email
            password: Plain text password

        Returns:
            The authenticated identity user

        Raises:
            UnauthorizedError: If the credentials are wrong or the account
                is locked or inactive
        """
        user = await self.repo.get_by_email(normalize_email(email))
        if not user:
            raise UnauthorizedError(
                "Invalid email or password", error_code="invalid_credentials"
            )

        now = datetime.now(UTC)
        if user.locked_until and user.locked_until > now:
            raise UnauthorizedError(
                "Account is temporarily locked", error_code="account_locked"
            )

        if not verify_password(password, user.password_hash):
            user.failed_login_count += 1
            if user.failed_login_count >= settings.max_failed_login_attempts:
                user.locked_until = now + timedelta(minutes=settings.lockout_minutes)
                user.failed_login_count = 0
                logger.warning("identity_locked_out", identity_user_id=str(user.id))
            # Persist the attempt before the error rolls the request back
            await self.db.commit()
            raise UnauthorizedError(
                "Invalid email or password", error_code="invalid_credentials"
            )

        if not user.is_active:
            raise UnauthorizedError(
                "Account is deactivated", error_code="account_inactive"
            )

        user.failed_login_count = 0
        user.locked_until = None
        await self.db.flush()
        return user


# Type alias for dependency injection
IdentitySvc = Annotated[IdentityService, Depends(IdentityService)]
