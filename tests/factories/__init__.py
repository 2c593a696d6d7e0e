"""Test data factories."""

from tests.factories.billing import PlatformPlanFactory
from tests.factories.people import add_membership, auth_headers_for, create_person
from tests.factories.signup import AdminAccountFactory, OrganizationFactory
from tests.factories.stripe import (
    PLAN_PRICE_ID,
    make_checkout,
    make_subscription,
    sign_webhook,
)
from tests.factories.tenant import TenantFactory


__all__ = [
    "PLAN_PRICE_ID",
    "AdminAccountFactory",
    "OrganizationFactory",
    "PlatformPlanFactory",
    "TenantFactory",
    "add_membership",
    "auth_headers_for",
    "create_person",
    "make_checkout",
    "make_subscription",
    "sign_webhook",
]
