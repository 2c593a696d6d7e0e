#!/usr/bin/env python
"""
Create the schemas and seed the plan catalogue for development.
"""

import argparse
import asyncio
import sys

from sqlalchemy import select


# Add src to path for imports
sys.path.insert(0, "src")

from clubhub.core.database import async_engine, async_session_factory
from clubhub.models import Base, DirectoryBase
from clubhub.modules.billing.models import BillingInterval, PlatformPlan
from clubhub.modules.tenants.directory import directory_engine


DEMO_PLANS = [
    {
        "name": "Starter",
        "description": "For small clubs getting started",
        "price_in_cents": 2900,
        "display_order": 1,
    },
    {
        "name": "Club",
        "description": "For established clubs with several squads",
        "price_in_cents": 4900,
        "display_order": 2,
        "is_featured": True,
    },
    {
        "name": "Federation",
        "description": "For multi-site clubs and associations",
        "price_in_cents": 9900,
        "display_order": 3,
    },
]


async def create_schema() -> None:
    """Create the registry and tenant directory tables."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Registry schema ready")

    async with directory_engine.begin() as conn:
        await conn.run_sync(DirectoryBase.metadata.create_all)
    print("Tenant directory schema ready")


async def seed_plans(price_ids: list[str]) -> None:
    """Create the demo plans, pairing them with Stripe price ids in order."""
    async with async_session_factory() as session:
        for index, data in enumerate(DEMO_PLANS):
            result = await session.execute(
                select(PlatformPlan).where(PlatformPlan.name == data["name"])
            )
            existing = result.scalar_one_or_none()
            price_id = price_ids[index] if index < len(price_ids) else None

            if existing:
                if price_id and existing.stripe_price_id != price_id:
                    existing.stripe_price_id = price_id
                    print(f"Updated price for plan: {existing.name}")
                else:
                    print(f"Plan already exists: {existing.name}")
                continue

            plan = PlatformPlan(
                currency="usd",
                billing_interval=BillingInterval.MONTH,
                stripe_price_id=price_id,
                is_active=True,
                **data,
            )
            session.add(plan)
            print(f"Created plan: {plan.name} ({price_id or 'no price'})")

        await session.commit()


async def main(scenario: str, price_ids: list[str]) -> None:
    """Run the seeding based on scenario."""
    if scenario == "schema":
        await create_schema()
    elif scenario == "plans":
        await seed_plans(price_ids)
    elif scenario == "demo":
        await create_schema()
        await seed_plans(price_ids)
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: schema, plans, demo")
        sys.exit(1)

    await async_engine.dispose()
    await directory_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create schemas and seed demo plans")
    parser.add_argument(
        "--scenario",
        "-s",
        default="demo",
        help="Seed scenario to run (schema, plans, demo)",
    )
    parser.add_argument(
        "--price",
        "-p",
        action="append",
        default=[],
        help="Stripe price id for the next plan, in catalogue order (repeatable)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario, args.price))
