"""People and membership API routes."""

from uuid import UUID

from fastapi import APIRouter

from clubhub.core.errors import NotFoundError
from clubhub.modules.users.models import TenantUserStatus
from clubhub.modules.users.schemas import MembershipResponse, PlatformUserResponse
from clubhub.modules.users.services import CurrentPlatformUser, MembershipSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=PlatformUserResponse,
    summary="Get current person",
    description="Get the person behind the authenticated account.",
)
async def get_me(user: CurrentPlatformUser) -> PlatformUserResponse:
    return PlatformUserResponse.model_validate(user)


@router.get(
    "/me/memberships",
    response_model=list[MembershipResponse],
    summary="List my memberships",
    description="List the tenants the current person belongs to, owned tenants first.",
)
async def list_my_memberships(
    user: CurrentPlatformUser,
    service: MembershipSvc,
    status: TenantUserStatus | None = None,
) -> list[MembershipResponse]:
    memberships = await service.list_memberships(user.id, status)
    return [MembershipResponse.from_membership(m) for m in memberships]


@router.get(
    "/me/memberships/{tenant_id}",
    response_model=MembershipResponse,
    summary="Get my membership in a tenant",
)
async def get_my_membership(
    tenant_id: UUID,
    user: CurrentPlatformUser,
    service: MembershipSvc,
) -> MembershipResponse:
    """Get the current person's membership in one tenant."""
    membership = await service.get_membership(user.id, tenant_id)
    if not membership:
        raise NotFoundError(
            "Membership not found",
            resource="tenant_user",
            resource_id=str(tenant_id),
        )
    return MembershipResponse.from_membership(membership)
