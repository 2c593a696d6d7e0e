"""Integration tests for tenant role checks."""

import pytest

from clubhub.core.errors import ForbiddenError
from clubhub.modules.users.models import TenantRole, TenantUserStatus
from clubhub.modules.users.repos import PlatformUserRepository, TenantUserRepository
from clubhub.modules.users.services import MembershipService
from tests.factories import TenantFactory, add_membership, create_person


pytestmark = pytest.mark.integration


@pytest.fixture
def service(db) -> MembershipService:
    return MembershipService(PlatformUserRepository(db), TenantUserRepository(db))


@pytest.mark.parametrize(
    ("held", "required", "allowed"),
    [
        (TenantRole.ADMIN, TenantRole.MEMBER, True),
        (TenantRole.ADMIN, TenantRole.COACH, True),
        (TenantRole.COACH, TenantRole.COACH, True),
        (TenantRole.COACH, TenantRole.ADMIN, False),
        (TenantRole.MEMBER, TenantRole.COACH, False),
    ],
)
async def test_higher_roles_include_lower(service, db, held, required, allowed):
    person = await create_person(db, "role@example.com")
    tenant = TenantFactory.build()
    await add_membership(db, person, tenant, role=held)

    assert await service.has_role_in_tenant(person.id, tenant.id, required) is allowed


@pytest.mark.parametrize(
    "status",
    [TenantUserStatus.SUSPENDED, TenantUserStatus.INACTIVE, TenantUserStatus.PENDING_INVITE],
)
async def test_only_active_memberships_count(service, db, status):
    person = await create_person(db, "inactive@example.com")
    tenant = TenantFactory.build()
    await add_membership(db, person, tenant, role=TenantRole.ADMIN, status=status)

    assert await service.has_role_in_tenant(person.id, tenant.id, TenantRole.MEMBER) is False


async def test_roles_do_not_leak_across_tenants(service, db):
    person = await create_person(db, "two@example.com")
    admin_of = TenantFactory.build()
    member_of = TenantFactory.build()
    await add_membership(db, person, admin_of, role=TenantRole.ADMIN, is_owner=True)
    await add_membership(db, person, member_of, role=TenantRole.MEMBER)

    assert await service.has_role_in_tenant(person.id, admin_of.id, TenantRole.ADMIN)
    assert not await service.has_role_in_tenant(person.id, member_of.id, TenantRole.ADMIN)
    assert await service.is_owner(person.id, admin_of.id)
    assert not await service.is_owner(person.id, member_of.id)


async def test_require_role_raises(service, db):
    person = await create_person(db, "nope@example.com")
    tenant = TenantFactory.build()
    await add_membership(db, person, tenant, role=TenantRole.MEMBER)

    with pytest.raises(ForbiddenError) as exc_info:
        await service.require_role(person.id, tenant.id, TenantRole.ADMIN)

    assert exc_info.value.error_code == "insufficient_role"
    assert exc_info.value.details == {"required_role": "Admin"}
