"""Unit tests for tenant rules that need no database."""

import pytest

from clubhub.modules.billing.stripe_client import AccountRequirements
from clubhub.modules.tenants.models import MerchantRequirementsStatus
from clubhub.modules.tenants.services import requirements_status_for


@pytest.mark.parametrize(
    ("requirements", "expected"),
    [
        (AccountRequirements(), MerchantRequirementsStatus.NONE),
        (
            AccountRequirements(eventually_due=["tos"]),
            MerchantRequirementsStatus.EVENTUALLY_DUE,
        ),
        (
            AccountRequirements(currently_due=["bank"], eventually_due=["tos"]),
            MerchantRequirementsStatus.CURRENTLY_DUE,
        ),
        (
            AccountRequirements(past_due=["id"], currently_due=["bank"]),
            MerchantRequirementsStatus.PAST_DUE,
        ),
        (
            AccountRequirements(pending_verification=["id"], past_due=["id"]),
            MerchantRequirementsStatus.PENDING_VERIFICATION,
        ),
    ],
)
def test_most_urgent_requirement_wins(requirements, expected):
    assert requirements_status_for(requirements) == expected
