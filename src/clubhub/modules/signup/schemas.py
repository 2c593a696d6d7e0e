"""Pydantic schemas for the signup flow."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clubhub.core.constants import MAX_NAME_LENGTH, MAX_SUBDOMAIN_LENGTH
from clubhub.modules.signup.models import SignupSession, SignupState
from clubhub.modules.users.schemas import NewAccount


class NextStep(StrEnum):
    """What the client should do next with a session."""

    CREATE_ADMIN = "create_admin"
    CREATE_TENANT = "create_tenant"
    INITIATE_BILLING = "initiate_billing"
    AWAIT_PAYMENT = "await_payment"
    DONE = "done"
    RESTART = "restart"


NEXT_STEPS: dict[str, NextStep] = {
    SignupState.STARTED: NextStep.CREATE_ADMIN,
    SignupState.USER_CREATED: NextStep.CREATE_TENANT,
    SignupState.TENANT_CREATED: NextStep.INITIATE_BILLING,
    SignupState.BILLING_STARTED: NextStep.AWAIT_PAYMENT,
    SignupState.BILLING_COMPLETE: NextStep.AWAIT_PAYMENT,
    SignupState.COMPLETED: NextStep.DONE,
    SignupState.EXPIRED: NextStep.RESTART,
}


def next_step_for(signup: SignupSession) -> NextStep:
    """Derive the client's next step from a session's state."""
    # A recorded billing failure means checkout must be retried
    if signup.state == SignupState.BILLING_STARTED and signup.error_message:
        return NextStep.INITIATE_BILLING
    return NEXT_STEPS.get(signup.state, NextStep.RESTART)


# ============================================================
# Requests
# ============================================================


class StartSignupRequest(BaseModel):
    plan_id: UUID
    email: EmailStr


class CreateAdminRequest(NewAccount):
    """Admin account for the new tenant."""


class CreateTenantRequest(BaseModel):
    organization_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    subdomain: str = Field(..., min_length=1, max_length=MAX_SUBDOMAIN_LENGTH)


class InitiateBillingRequest(BaseModel):
    """Checkout redirect targets; configured defaults apply when omitted."""

    success_url: str | None = None
    cancel_url: str | None = None


# ============================================================
# Responses
# ============================================================


class SignupSessionSummary(BaseModel):
    """Client view of a signup session, including what to do next."""

    id: UUID
    state: SignupState
    next_step: NextStep
    email: str
    plan_id: UUID
    tenant_id: UUID | None
    subdomain: str | None
    organization_name: str | None
    first_name: str | None
    last_name: str | None
    checkout_session_id: str | None
    expires_at: datetime
    completed_at: datetime | None
    error_message: str | None

    @classmethod
    def from_session(cls, signup: SignupSession) -> "SignupSessionSummary":
        return cls(
            id=signup.id,
            state=SignupState(signup.state),
            next_step=next_step_for(signup),
            email=signup.email,
            plan_id=signup.plan_id,
            tenant_id=signup.tenant_id,
            subdomain=signup.subdomain,
            organization_name=signup.organization_name,
            first_name=signup.first_name,
            last_name=signup.last_name,
            checkout_session_id=signup.checkout_session_id,
            expires_at=signup.expires_at,
            completed_at=signup.completed_at,
            error_message=signup.error_message,
        )


class CheckoutResponse(BaseModel):
    """Where to send the client to pay."""

    checkout_session_id: str
    url: str
    session: SignupSessionSummary
