"""Integration tests for tenant endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from clubhub.modules.billing.exceptions import BillingProviderError
from clubhub.modules.billing.stripe_client import AccountRequirements, MerchantAccountInfo
from clubhub.modules.tenants.models import MerchantOnboardingState
from clubhub.modules.users.models import TenantRole, TenantUserStatus
from tests.factories import TenantFactory, add_membership, auth_headers_for, create_person


pytestmark = pytest.mark.integration

TENANTS = "/api/v1/tenants"


@pytest.fixture
async def admin(db):
    """An owner-admin of a fresh tenant, with headers."""
    person = await create_person(db, "admin@example.com")
    tenant = TenantFactory.build(subdomain="harbour")
    await add_membership(db, person, tenant, role=TenantRole.ADMIN, is_owner=True)
    return person, tenant, auth_headers_for(person)


class TestSubdomains:
    """Tests for subdomain availability."""

    async def test_free_subdomain(self, client: AsyncClient):
        response = await client.get(f"{TENANTS}/subdomains/Riverside")

        assert response.status_code == 200
        assert response.json() == {
            "subdomain": "riverside",
            "available": True,
            "reason": None,
            "suggestion": None,
        }

    async def test_taken_subdomain_suggests_alternative(self, client: AsyncClient, admin):
        response = await client.get(f"{TENANTS}/subdomains/harbour")

        data = response.json()
        assert data["available"] is False
        assert data["suggestion"] == "harbour-2"

    async def test_subdomain_in_directory_only_is_taken(self, client: AsyncClient, directory):
        await directory.add(uuid4(), "orphan", "Orphaned Club")

        response = await client.get(f"{TENANTS}/subdomains/orphan")

        assert response.json()["available"] is False

    async def test_malformed_subdomain(self, client: AsyncClient):
        response = await client.get(f"{TENANTS}/subdomains/-harbour")

        data = response.json()
        assert data["available"] is False
        assert data["reason"]


class TestTenantAccess:
    """Tenant reads require an active membership."""

    async def test_member_can_read_tenant(self, client: AsyncClient, admin):
        _, tenant, headers = admin

        response = await client.get(f"{TENANTS}/{tenant.id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["subdomain"] == "harbour"

    async def test_outsider_is_forbidden(self, client: AsyncClient, admin, db):
        _, tenant, _ = admin
        outsider = await create_person(db, "outsider@example.com")

        response = await client.get(f"{TENANTS}/{tenant.id}", headers=auth_headers_for(outsider))

        assert response.status_code == 403
        assert response.json()["type"].endswith("/insufficient_role")

    async def test_members_list_requires_admin(self, client: AsyncClient, admin, db):
        _, tenant, _ = admin
        coach = await create_person(db, "coach@example.com")
        await add_membership(db, coach, tenant, role=TenantRole.COACH)

        response = await client.get(
            f"{TENANTS}/{tenant.id}/members", headers=auth_headers_for(coach)
        )

        assert response.status_code == 403

    async def test_members_listed_highest_role_first(self, client: AsyncClient, admin, db):
        _, tenant, headers = admin
        member = await create_person(db, "member@example.com", first_name="Mia")
        coach = await create_person(db, "coach@example.com", first_name="Cal")
        await add_membership(db, member, tenant, role=TenantRole.MEMBER)
        await add_membership(db, coach, tenant, role=TenantRole.COACH)

        response = await client.get(f"{TENANTS}/{tenant.id}/members", headers=headers)

        assert response.status_code == 200
        assert [m["role"] for m in response.json()] == ["Admin", "Coach", "Member"]

    async def test_suspended_admin_is_forbidden(self, client: AsyncClient, db):
        person = await create_person(db, "suspended@example.com")
        tenant = TenantFactory.build()
        await add_membership(
            db, person, tenant, role=TenantRole.ADMIN, status=TenantUserStatus.SUSPENDED
        )

        response = await client.get(
            f"{TENANTS}/{tenant.id}/members", headers=auth_headers_for(person)
        )

        assert response.status_code == 403


class TestMerchantAccount:
    """Tests for merchant (Connect) onboarding."""

    async def test_start_onboarding_creates_account(
        self, client: AsyncClient, admin, stripe_mock
    ):
        _, tenant, headers = admin

        response = await client.post(
            f"{TENANTS}/{tenant.id}/merchant-onboarding", json={}, headers=headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://connect.stripe.test/link",
            "onboarding_state": MerchantOnboardingState.ONBOARDING_STARTED,
        }
        stripe_mock.create_connect_account.assert_awaited_once()
        assert stripe_mock.create_connect_account.await_args.kwargs["email"] == "admin@example.com"

    async def test_restart_onboarding_reuses_account(
        self, client: AsyncClient, admin, stripe_mock
    ):
        _, tenant, headers = admin
        url = f"{TENANTS}/{tenant.id}/merchant-onboarding"

        await client.post(url, json={}, headers=headers)
        await client.post(url, json={}, headers=headers)

        assert stripe_mock.create_connect_account.await_count == 1
        assert stripe_mock.create_account_link.await_count == 2

    async def test_update_link_without_account(self, client: AsyncClient, admin):
        _, tenant, headers = admin

        response = await client.post(
            f"{TENANTS}/{tenant.id}/merchant-account/update-link", json={}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["type"].endswith("/no_merchant_account")

    async def test_refresh_copies_capabilities(
        self, client: AsyncClient, admin, db, stripe_mock
    ):
        _, tenant, headers = admin
        tenant.stripe_account_id = "acct_club"
        await db.commit()
        stripe_mock.get_connect_account.return_value = MerchantAccountInfo(
            id="acct_club",
            charges_enabled=True,
            payouts_enabled=False,
            details_submitted=True,
            requirements=AccountRequirements(
                currently_due=["external_account"], past_due=["external_account"]
            ),
        )

        response = await client.post(
            f"{TENANTS}/{tenant.id}/merchant-account/refresh", headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["charges_enabled"] is True
        assert data["payouts_enabled"] is False
        assert data["requirements_status"] == "PastDue"
        assert data["onboarding_state"] == "Completed"
        assert data["onboarding_completed_at"] is not None

    async def test_refresh_provider_failure(self, client: AsyncClient, admin, db, stripe_mock):
        _, tenant, headers = admin
        tenant.stripe_account_id = "acct_club"
        await db.commit()
        stripe_mock.get_connect_account.side_effect = BillingProviderError("down")

        response = await client.post(
            f"{TENANTS}/{tenant.id}/merchant-account/refresh", headers=headers
        )

        assert response.status_code == 502


async def test_resolve_unknown_identifier(client: AsyncClient):
    response = await client.get(f"{TENANTS}/resolve/nowhere")

    assert response.status_code == 404
