"""Signup API routes.

The client drives a session step by step: start, create the admin,
create the tenant, initiate billing, then poll ``/refresh`` (or wait for
the webhook) until the session is Completed.
"""

from uuid import UUID

from fastapi import APIRouter, status

from clubhub.config import settings
from clubhub.core.errors import NotFoundError
from clubhub.modules.signup.schemas import (
    CheckoutResponse,
    CreateAdminRequest,
    CreateTenantRequest,
    InitiateBillingRequest,
    SignupSessionSummary,
    StartSignupRequest,
)
from clubhub.modules.signup.services import SignupSvc


router = APIRouter(prefix="/signup", tags=["signup"])


def _default_url(path: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}{path}"


@router.post(
    "/sessions",
    response_model=SignupSessionSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Start signup",
    description="Start a signup for a plan, or pick up the email's open signup session.",
)
async def start_signup(data: StartSignupRequest, service: SignupSvc) -> SignupSessionSummary:
    signup = await service.start(data.plan_id, data.email)
    return SignupSessionSummary.from_session(signup)


@router.get(
    "/sessions/{session_id}",
    response_model=SignupSessionSummary,
    summary="Resume signup",
    description="Resume a signup session and report the next step.",
)
async def resume_signup(session_id: UUID, service: SignupSvc) -> SignupSessionSummary:
    return await service.resume(session_id)


@router.post(
    "/sessions/{session_id}/admin",
    response_model=SignupSessionSummary,
    summary="Create admin account",
)
async def create_admin(
    session_id: UUID,
    data: CreateAdminRequest,
    service: SignupSvc,
) -> SignupSessionSummary:
    """Create the admin's login and person record."""
    signup = await service.create_admin(
        session_id,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        password=data.password,
    )
    return SignupSessionSummary.from_session(signup)


@router.post(
    "/sessions/{session_id}/tenant",
    response_model=SignupSessionSummary,
    summary="Create tenant",
    description="Claim a subdomain and create the tenant in PendingActivation.",
)
async def create_tenant(
    session_id: UUID,
    data: CreateTenantRequest,
    service: SignupSvc,
) -> SignupSessionSummary:
    signup = await service.create_tenant(session_id, data.organization_name, data.subdomain)
    return SignupSessionSummary.from_session(signup)


@router.post(
    "/sessions/{session_id}/billing",
    response_model=CheckoutResponse,
    summary="Initiate billing",
    description="Create (or reuse) a Stripe Checkout session for the plan.",
)
async def initiate_billing(
    session_id: UUID,
    data: InitiateBillingRequest,
    service: SignupSvc,
) -> CheckoutResponse:
    """Return the checkout URL the client should be redirected to."""
    checkout = await service.initiate_billing(
        session_id,
        success_url=data.success_url or _default_url(settings.signup_success_path),
        cancel_url=data.cancel_url or _default_url(settings.signup_cancel_path),
    )
    signup = await service.get(session_id)
    return CheckoutResponse(
        checkout_session_id=checkout.id,
        url=checkout.url or "",
        session=SignupSessionSummary.from_session(signup),
    )


@router.post(
    "/sessions/{session_id}/refresh",
    response_model=SignupSessionSummary,
    summary="Refresh from Stripe",
    description=(
        "Polling fallback for a missed webhook: re-check the checkout at Stripe "
        "and activate if payment went through. Provider failures are not reported "
        "as errors; the current state is returned."
    ),
)
async def refresh_signup(session_id: UUID, service: SignupSvc) -> SignupSessionSummary:
    state = await service.refresh_from_provider(session_id)
    if state is None:
        raise NotFoundError(
            "Signup session not found",
            resource="signup_session",
            resource_id=str(session_id),
        )
    signup = await service.get(session_id)
    return SignupSessionSummary.from_session(signup)
