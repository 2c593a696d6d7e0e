"""Stripe webhook handlers.

Both endpoints verify the signature and reject bad payloads with 400.
Once an event is verified, processing errors are logged and the event is
still acknowledged, so Stripe does not retry a delivery that will keep
failing; the polling fallback covers missed activations.
"""

from typing import Annotated

import stripe
import structlog
from fastapi import APIRouter, Header, Request, status

from clubhub.config import settings
from clubhub.core.errors import BadRequestError
from clubhub.modules.billing.schemas import WebhookAck
from clubhub.modules.billing.stripe_client import StripeClient, StripeClientDep, get_field
from clubhub.modules.signup.events import apply_billing_event, translate_stripe_event
from clubhub.modules.signup.services import SignupSvc
from clubhub.modules.tenants.services import TenantSvc


logger = structlog.get_logger()

webhook_router = APIRouter(prefix="/webhooks")

ACCOUNT_UPDATED = "account.updated"


async def _verify(request: Request, signature: str | None, secret: str | None) -> stripe.Event:
    """Verify a delivery's signature and parse it.

    Raises:
        BadRequestError: If the payload or signature is invalid
    """
    payload = await request.body()
    if not signature:
        raise BadRequestError("Missing Stripe signature", error_code="invalid_signature")
    try:
        return StripeClient.construct_webhook_event(
            payload=payload,
            sig_header=signature,
            webhook_secret=secret or "",
        )
    except ValueError as e:
        logger.warning("stripe_webhook_invalid_payload", error=str(e))
        raise BadRequestError("Invalid payload", error_code="invalid_payload") from e
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe_webhook_invalid_signature", error=str(e))
        raise BadRequestError("Invalid signature", error_code="invalid_signature") from e


@webhook_router.post(
    "/stripe",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Stripe platform webhook",
    include_in_schema=False,
)
async def stripe_webhook(
    request: Request,
    service: SignupSvc,
    stripe_client: StripeClientDep,
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> WebhookAck:
    """Handle checkout and invoice events for platform subscriptions."""
    event = await _verify(request, stripe_signature, settings.stripe_webhook_secret)
    event_id = get_field(event, "id")
    event_type = get_field(event, "type")
    logger.info("stripe_webhook_received", stripe_event_id=event_id, event_type=event_type)

    try:
        billing_event = await translate_stripe_event(
            event, stripe_client, settings, await service.plans.known_price_ids()
        )
        if billing_event is not None:
            await apply_billing_event(service, billing_event)
    except Exception:
        logger.exception(
            "stripe_webhook_processing_failed",
            stripe_event_id=event_id,
            event_type=event_type,
        )
        await service.db.rollback()

    return WebhookAck()


@webhook_router.post(
    "/stripe/connect",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Stripe Connect webhook",
    include_in_schema=False,
)
async def stripe_connect_webhook(
    request: Request,
    service: TenantSvc,
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> WebhookAck:
    """Refresh a tenant's merchant account when Stripe reports a change."""
    event = await _verify(request, stripe_signature, settings.stripe_connect_webhook_secret)
    event_id = get_field(event, "id")
    event_type = get_field(event, "type")

    if event_type != ACCOUNT_UPDATED:
        logger.info("stripe_connect_event_ignored", stripe_event_id=event_id, event_type=event_type)
        return WebhookAck()

    account_id = get_field(get_field(get_field(event, "data"), "object"), "id")
    try:
        await service.refresh_merchant_account_by_stripe_id(account_id)
    except Exception:
        logger.exception(
            "stripe_connect_webhook_processing_failed",
            stripe_event_id=event_id,
            stripe_account_id=account_id,
        )
        await service.repo.session.rollback()

    return WebhookAck()
