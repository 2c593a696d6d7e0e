"""Plan catalogue endpoint."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import PlatformPlanFactory


@pytest.mark.asyncio
async def test_lists_active_plans_in_display_order(client: AsyncClient, db: AsyncSession):
    db.add_all(
        [
            PlatformPlanFactory.build(name="Federation", display_order=3, price_in_cents=9900),
            PlatformPlanFactory.build(name="Starter", display_order=1, price_in_cents=2900),
            PlatformPlanFactory.build(name="Club", display_order=2, price_in_cents=4900),
            PlatformPlanFactory.build(name="Legacy", display_order=0, is_active=False),
        ]
    )
    await db.commit()

    response = await client.get("/api/v1/billing/plans")

    assert response.status_code == 200
    plans = response.json()
    assert [plan["name"] for plan in plans] == ["Starter", "Club", "Federation"]
    assert plans[0]["price_in_cents"] == 2900
    assert plans[0]["billing_interval"] == "month"
    assert "stripe_price_id" not in plans[0]
