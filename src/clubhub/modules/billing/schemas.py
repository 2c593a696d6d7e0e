"""Billing Pydantic schemas for request/response validation."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PlanResponse(BaseModel):
    """A plan in the platform catalogue."""

    id: UUID
    name: str
    description: str | None
    price_in_cents: int
    currency: str
    billing_interval: str
    is_featured: bool
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class WebhookAck(BaseModel):
    """Acknowledgement returned to Stripe for every verified event."""

    status: str = "received"
