"""Tenant service: subdomains, directory lookups and merchant accounts."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from clubhub.core.errors import BadRequestError, ConflictError, NotFoundError
from clubhub.core.utils.text import generate_slug, normalize_subdomain
from clubhub.modules.billing.stripe_client import AccountRequirements, StripeClientDep
from clubhub.modules.tenants.directory import TenantDirectoryDep, TenantDirectoryEntry
from clubhub.modules.tenants.models import (
    MerchantOnboardingState,
    MerchantRequirementsStatus,
    Tenant,
)
from clubhub.modules.tenants.repos import TenantRepo
from clubhub.modules.tenants.schemas import SubdomainAvailability


logger = structlog.get_logger()

MAX_SUGGESTION_ATTEMPTS = 20


def requirements_status_for(requirements: AccountRequirements) -> MerchantRequirementsStatus:
    """Most urgent non-empty requirements bucket of a merchant account."""
    if requirements.pending_verification:
        return MerchantRequirementsStatus.PENDING_VERIFICATION
    if requirements.past_due:
        return MerchantRequirementsStatus.PAST_DUE
    if requirements.currently_due:
        return MerchantRequirementsStatus.CURRENTLY_DUE
    if requirements.eventually_due:
        return MerchantRequirementsStatus.EVENTUALLY_DUE
    return MerchantRequirementsStatus.NONE


class TenantService:
    """Service for tenant queries and merchant account management.

    Tenants themselves are created by the signup flow and activated by
    the activation reconciler; this service never changes tenant status.
    """

    def __init__(
        self,
        repo: TenantRepo,
        directory: TenantDirectoryDep,
        stripe: StripeClientDep,
    ) -> None:
        self.repo = repo
        self.directory = directory
        self.stripe = stripe

    async def get_tenant(self, tenant_id: UUID) -> Tenant:
        """Get a tenant by ID.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = await self.repo.get_by_id(tenant_id)
        if not tenant:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )
        return tenant

    async def is_subdomain_taken(self, subdomain: str) -> bool:
        """Check both the registry and the directory for a normalized subdomain."""
        if await self.repo.subdomain_exists(subdomain):
            return True
        return await self.directory.resolve(subdomain) is not None

    async def check_subdomain(self, subdomain: str) -> SubdomainAvailability:
        """Check whether a subdomain can be claimed.

        Args:
            subdomain: Subdomain as typed by the user

        Returns:
            Availability, with a reason and a suggestion when unavailable
        """
        try:
            normalized = normalize_subdomain(subdomain)
        except ValueError as e:
            return SubdomainAvailability(
                subdomain=subdomain.strip().lower(),
                available=False,
                reason=str(e),
            )

        if await self.is_subdomain_taken(normalized):
            return SubdomainAvailability(
                subdomain=normalized,
                available=False,
                reason="Subdomain is already taken",
                suggestion=await self.suggest_subdomain(normalized),
            )

        return SubdomainAvailability(subdomain=normalized, available=True)

    async def suggest_subdomain(self, name: str) -> str | None:
        """Suggest a free subdomain derived from a name.

        Tries the slug itself, then numbered variants.
        """
        base = generate_slug(name)
        candidates = [base] + [f"{base}-{n}" for n in range(2, MAX_SUGGESTION_ATTEMPTS + 2)]
        for candidate in candidates:
            try:
                normalized = normalize_subdomain(candidate)
            except ValueError:
                continue
            if not await self.is_subdomain_taken(normalized):
                return normalized
        return None

    async def resolve_directory(self, identifier: str) -> TenantDirectoryEntry | None:
        """Resolve a routable identifier the way request routing does."""
        return await self.directory.resolve(identifier.strip().lower())

    async def find_orphaned_directory_entries(self) -> list[TenantDirectoryEntry]:
        """Directory entries whose tenant never made it into the registry."""
        orphans = await self.directory.find_orphans(await self.repo.list_ids())
        if orphans:
            logger.warning(
                "tenant_directory_orphans_found",
                identifiers=[entry.identifier for entry in orphans],
            )
        return orphans

    # ============================================================
    # Merchant account (Stripe Connect)
    # ============================================================

    async def start_merchant_onboarding(
        self,
        tenant_id: UUID,
        email: str,
        refresh_url: str,
        return_url: str,
    ) -> str:
        """Start (or continue) hosted merchant onboarding for a tenant.

        Creates the Connect account on first use.

        Args:
            tenant_id: The tenant
            email: Contact email for the Connect account
            refresh_url: Where Stripe sends the admin when the link expires
            return_url: Where Stripe sends the admin after the form

        Returns:
            The hosted onboarding URL

        Raises:
            NotFoundError: If the tenant does not exist
            ConflictError: If onboarding already completed
            BillingProviderError: If Stripe fails
        """
        tenant = await self.get_tenant(tenant_id)
        if tenant.onboarding_state == MerchantOnboardingState.COMPLETED:
            raise ConflictError(
                "Merchant onboarding already completed",
                error_code="merchant_onboarding_completed",
                details={"tenant_id": str(tenant_id)},
            )

        if not tenant.stripe_account_id:
            tenant.stripe_account_id = await self.stripe.create_connect_account(
                tenant_id=tenant.id,
                name=tenant.name,
                email=email,
            )
            tenant.onboarding_state = MerchantOnboardingState.ACCOUNT_CREATED
            logger.info(
                "merchant_account_created",
                tenant_id=str(tenant.id),
                stripe_account_id=tenant.stripe_account_id,
            )

        url = await self.stripe.create_account_link(
            account_id=tenant.stripe_account_id,
            refresh_url=refresh_url,
            return_url=return_url,
        )
        tenant.onboarding_state = MerchantOnboardingState.ONBOARDING_STARTED
        await self.repo.session.flush()
        return url

    async def get_account_update_link(
        self,
        tenant_id: UUID,
        refresh_url: str,
        return_url: str,
    ) -> str:
        """Hosted link for updating an existing merchant account.

        Raises:
            BadRequestError: If the tenant has no merchant account yet
        """
        tenant = await self.get_tenant(tenant_id)
        if not tenant.stripe_account_id:
            raise BadRequestError(
                "Tenant has no merchant account",
                error_code="no_merchant_account",
            )
        return await self.stripe.create_account_link(
            account_id=tenant.stripe_account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            link_type="account_update",
        )

    async def refresh_merchant_account(self, tenant_id: UUID) -> Tenant:
        """Copy the merchant account's current capabilities onto the tenant.

        Raises:
            NotFoundError: If the tenant or its merchant account is missing
            BillingProviderError: If Stripe fails
        """
        tenant = await self.get_tenant(tenant_id)
        if not tenant.stripe_account_id:
            raise NotFoundError(
                "Tenant has no merchant account",
                resource="merchant_account",
                resource_id=str(tenant_id),
            )
        account = await self.stripe.get_connect_account(tenant.stripe_account_id)
        if account is None:
            raise NotFoundError(
                "Merchant account not found",
                resource="merchant_account",
                resource_id=tenant.stripe_account_id,
            )

        first_enabled = account.charges_enabled and not tenant.charges_enabled
        tenant.charges_enabled = account.charges_enabled
        tenant.payouts_enabled = account.payouts_enabled
        tenant.details_submitted = account.details_submitted
        tenant.requirements_status = requirements_status_for(account.requirements)

        if first_enabled and tenant.onboarding_state != MerchantOnboardingState.COMPLETED:
            tenant.onboarding_state = MerchantOnboardingState.COMPLETED
            tenant.onboarding_completed_at = datetime.now(UTC)
            logger.info("merchant_onboarding_completed", tenant_id=str(tenant.id))

        await self.repo.session.flush()
        logger.info(
            "merchant_account_refreshed",
            tenant_id=str(tenant.id),
            charges_enabled=tenant.charges_enabled,
            requirements_status=tenant.requirements_status,
        )
        return tenant

    async def refresh_merchant_account_by_stripe_id(self, stripe_account_id: str) -> Tenant | None:
        """Refresh the tenant owning a merchant account, if any."""
        tenant = await self.repo.get_by_stripe_account(stripe_account_id)
        if not tenant:
            logger.info("merchant_account_unknown", stripe_account_id=stripe_account_id)
            return None
        return await self.refresh_merchant_account(tenant.id)


# Type alias for dependency injection
TenantSvc = Annotated[TenantService, Depends(TenantService)]
