"""Billing API routes."""

from fastapi import APIRouter

from clubhub.modules.billing.repos import PlanRepo
from clubhub.modules.billing.schemas import PlanResponse
from clubhub.modules.billing.webhooks import webhook_router


router = APIRouter(prefix="/billing", tags=["billing"])

# Webhooks authenticate by signature, not by token
router.include_router(webhook_router)


@router.get(
    "/plans",
    response_model=list[PlanResponse],
    summary="List plans",
    description="List the platform plans a club can sign up for.",
)
async def list_plans(plans: PlanRepo) -> list[PlanResponse]:
    return [PlanResponse.model_validate(plan) for plan in await plans.list_active()]
