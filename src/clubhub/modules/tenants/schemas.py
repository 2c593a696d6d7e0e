"""Pydantic schemas for tenant operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SubdomainAvailability(BaseModel):
    """Result of a subdomain availability check."""

    subdomain: str
    available: bool
    reason: str | None = Field(None, description="Why the subdomain cannot be used")
    suggestion: str | None = Field(None, description="A free alternative, if one was found")


class TenantResponse(BaseModel):
    """Tenant summary."""

    id: UUID
    name: str
    subdomain: str
    status: str
    stripe_account_id: str | None
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool
    onboarding_state: str
    requirements_status: str
    onboarding_completed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DirectoryEntryResponse(BaseModel):
    """How a routable identifier resolves."""

    identifier: str
    tenant_id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class MerchantOnboardingRequest(BaseModel):
    """Where Stripe sends the admin back to after hosted onboarding."""

    refresh_url: str | None = Field(None, description="URL when the link expires")
    return_url: str | None = Field(None, description="URL after the form is submitted")


class MerchantOnboardingResponse(BaseModel):
    url: str
    onboarding_state: str
