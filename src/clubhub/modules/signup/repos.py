"""Signup session repository for database operations."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.modules.signup.models import TERMINAL_STATES, SignupSession, SignupState


class SignupSessionRepository:
    """Repository for SignupSession database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, signup: SignupSession) -> SignupSession:
        """Create a new signup session."""
        self.session.add(signup)
        await self.session.flush()
        await self.session.refresh(signup)
        return signup

    async def get_by_id(self, session_id: UUID) -> SignupSession | None:
        result = await self.session.execute(
            select(SignupSession).where(SignupSession.id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_by_checkout_session(self, checkout_session_id: str) -> SignupSession | None:
        """Get the signup session that started a checkout."""
        result = await self.session.execute(
            select(SignupSession).where(
                SignupSession.checkout_session_id == checkout_session_id
            )
        )
        return result.scalar_one_or_none()

    async def get_latest_open_for_email(self, email: str) -> SignupSession | None:
        """Newest session for an email that is neither Completed nor Expired."""
        result = await self.session.execute(
            select(SignupSession)
            .where(SignupSession.email == email)
            .where(SignupSession.state.not_in([str(s) for s in TERMINAL_STATES]))
            .order_by(SignupSession.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def mark_completed(self, session_id: UUID, now: datetime) -> bool:
        """Compare-and-set a session to Completed.

        Returns:
            True if this call made the transition, False if the session
            was already Completed
        """
        result = await self.session.execute(
            update(SignupSession)
            .where(SignupSession.id == session_id)
            .where(SignupSession.state != SignupState.COMPLETED)
            .values(
                state=SignupState.COMPLETED,
                completed_at=now,
                last_activity_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
