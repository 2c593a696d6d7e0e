"""Tenant API routes."""

from uuid import UUID

from fastapi import APIRouter

from clubhub.config import settings
from clubhub.core.auth.dependencies import CurrentIdentity
from clubhub.core.errors import NotFoundError
from clubhub.modules.tenants.schemas import (
    DirectoryEntryResponse,
    MerchantOnboardingRequest,
    MerchantOnboardingResponse,
    SubdomainAvailability,
    TenantResponse,
)
from clubhub.modules.tenants.services import TenantSvc
from clubhub.modules.users.models import TenantRole, TenantUserStatus
from clubhub.modules.users.schemas import MemberResponse
from clubhub.modules.users.services import CurrentPlatformUser, MembershipSvc, TenantAdmin


router = APIRouter(prefix="/tenants", tags=["tenants"])

MERCHANT_SETTINGS_PATH = "/settings/payments"


def _merchant_urls(data: MerchantOnboardingRequest) -> tuple[str, str]:
    default = f"{settings.public_base_url.rstrip('/')}{MERCHANT_SETTINGS_PATH}"
    return data.refresh_url or default, data.return_url or default


@router.get(
    "/subdomains/{subdomain}",
    response_model=SubdomainAvailability,
    summary="Check subdomain availability",
)
async def check_subdomain(subdomain: str, service: TenantSvc) -> SubdomainAvailability:
    return await service.check_subdomain(subdomain)


@router.get(
    "/resolve/{identifier}",
    response_model=DirectoryEntryResponse,
    summary="Resolve a tenant identifier",
    description="Look up which tenant a subdomain routes to.",
)
async def resolve_identifier(identifier: str, service: TenantSvc) -> DirectoryEntryResponse:
    entry = await service.resolve_directory(identifier)
    if not entry:
        raise NotFoundError(
            "No tenant routes to this identifier",
            resource="tenant_directory_entry",
            resource_id=identifier,
        )
    return DirectoryEntryResponse.model_validate(entry)


@router.get(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Get tenant",
    description="Get a tenant the current person is an active member of.",
)
async def get_tenant(
    tenant_id: UUID,
    user: CurrentPlatformUser,
    service: TenantSvc,
    memberships: MembershipSvc,
) -> TenantResponse:
    await memberships.require_role(user.id, tenant_id, TenantRole.MEMBER)
    return TenantResponse.model_validate(await service.get_tenant(tenant_id))


@router.get(
    "/{tenant_id}/members",
    response_model=list[MemberResponse],
    summary="List tenant members",
    description="List the members of a tenant. Requires the Admin role.",
)
async def list_members(
    tenant_id: UUID,
    _admin: TenantAdmin,
    memberships: MembershipSvc,
    status: TenantUserStatus | None = None,
) -> list[MemberResponse]:
    members = await memberships.list_members(tenant_id, status)
    return [MemberResponse.from_membership(m) for m in members]


@router.post(
    "/{tenant_id}/merchant-onboarding",
    response_model=MerchantOnboardingResponse,
    summary="Start merchant onboarding",
    description="Create the tenant's Stripe Connect account if needed and return a hosted onboarding link.",
)
async def start_merchant_onboarding(
    tenant_id: UUID,
    data: MerchantOnboardingRequest,
    _admin: TenantAdmin,
    identity: CurrentIdentity,
    service: TenantSvc,
) -> MerchantOnboardingResponse:
    """Start hosted merchant onboarding for a tenant."""
    refresh_url, return_url = _merchant_urls(data)
    url = await service.start_merchant_onboarding(
        tenant_id=tenant_id,
        email=identity.email,
        refresh_url=refresh_url,
        return_url=return_url,
    )
    tenant = await service.get_tenant(tenant_id)
    return MerchantOnboardingResponse(url=url, onboarding_state=tenant.onboarding_state)


@router.post(
    "/{tenant_id}/merchant-account/update-link",
    response_model=MerchantOnboardingResponse,
    summary="Get merchant account update link",
)
async def get_account_update_link(
    tenant_id: UUID,
    data: MerchantOnboardingRequest,
    _admin: TenantAdmin,
    service: TenantSvc,
) -> MerchantOnboardingResponse:
    refresh_url, return_url = _merchant_urls(data)
    url = await service.get_account_update_link(tenant_id, refresh_url, return_url)
    tenant = await service.get_tenant(tenant_id)
    return MerchantOnboardingResponse(url=url, onboarding_state=tenant.onboarding_state)


@router.post(
    "/{tenant_id}/merchant-account/refresh",
    response_model=TenantResponse,
    summary="Refresh merchant account",
    description="Pull the merchant account's capabilities and requirements from Stripe.",
)
async def refresh_merchant_account(
    tenant_id: UUID,
    _admin: TenantAdmin,
    service: TenantSvc,
) -> TenantResponse:
    tenant = await service.refresh_merchant_account(tenant_id)
    return TenantResponse.model_validate(tenant)
