"""Registry engine, declarative base and column mixins."""

from clubhub.core.database.base import (
    Base,
    TenantMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDMixin,
    utc_now,
)
from clubhub.core.database.session import (
    async_engine,
    async_session_factory,
    build_engine,
    build_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TenantMixin",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "get_db",
    "utc_now",
]
