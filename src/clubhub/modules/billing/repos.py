"""Billing repositories for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.api.dependencies import DBSession
from clubhub.modules.billing.models import PlatformPlan, TenantSubscription


class PlanRepository:
    """Repository for the platform plan catalogue."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get(self, plan_id: UUID) -> PlatformPlan | None:
        """Get a plan by ID, active or not."""
        result = await self.session.execute(
            select(PlatformPlan).where(PlatformPlan.id == plan_id)
        )
        return result.scalar_one_or_none()

    async def get_active(self, plan_id: UUID) -> PlatformPlan | None:
        """Get a plan by ID if it is offered."""
        result = await self.session.execute(
            select(PlatformPlan)
            .where(PlatformPlan.id == plan_id)
            .where(PlatformPlan.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def list_active(self) -> list[PlatformPlan]:
        """List offered plans in display order, then by price."""
        result = await self.session.execute(
            select(PlatformPlan)
            .where(PlatformPlan.is_active.is_(True))
            .order_by(PlatformPlan.display_order, PlatformPlan.price_in_cents)
        )
        return list(result.scalars().all())

    async def known_price_ids(self) -> set[str]:
        """Every Stripe price id the catalogue references."""
        result = await self.session.execute(
            select(PlatformPlan.stripe_price_id).where(
                PlatformPlan.stripe_price_id.is_not(None)
            )
        )
        return set(result.scalars().all())

    async def create(self, plan: PlatformPlan) -> PlatformPlan:
        """Create a new plan."""
        self.session.add(plan)
        await self.session.flush()
        await self.session.refresh(plan)
        return plan


class SubscriptionRepository:
    """Repository for tenant platform subscriptions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_tenant(self, tenant_id: UUID) -> TenantSubscription | None:
        """Get the subscription of a tenant."""
        result = await self.session.execute(
            select(TenantSubscription).where(TenantSubscription.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_id(
        self, stripe_subscription_id: str
    ) -> TenantSubscription | None:
        """Get subscription by Stripe subscription ID."""
        result = await self.session.execute(
            select(TenantSubscription).where(
                TenantSubscription.stripe_subscription_id == stripe_subscription_id
            )
        )
        return result.scalar_one_or_none()

    def add(self, subscription: TenantSubscription) -> TenantSubscription:
        """Stage a subscription; the caller flushes inside its transaction."""
        self.session.add(subscription)
        return subscription


# Type alias for dependency injection
PlanRepo = Annotated[PlanRepository, Depends(PlanRepository)]
