"""Import every registry model so Base.metadata and mapper configuration see them."""

from clubhub.core.auth.models import IdentityUser
from clubhub.core.database.base import Base
from clubhub.modules.billing.models import PlatformPlan, TenantSubscription
from clubhub.modules.signup.models import SignupSession
from clubhub.modules.tenants.directory import DirectoryBase, TenantDirectoryEntry
from clubhub.modules.tenants.models import Tenant
from clubhub.modules.users.models import PlatformUser, TenantUser


__all__ = [
    "Base",
    "DirectoryBase",
    "IdentityUser",
    "PlatformPlan",
    "PlatformUser",
    "SignupSession",
    "Tenant",
    "TenantDirectoryEntry",
    "TenantSubscription",
    "TenantUser",
]
