"""Pytest configuration and shared fixtures.

Both stores run on SQLite files through aiosqlite: one file for the
membership registry and one for the tenant directory, fresh per test.
Settings are read at import time, so the environment is prepared before
anything from ``clubhub`` is imported.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock

_BOOT_DIR = Path(tempfile.mkdtemp(prefix="clubhub-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_BOOT_DIR / 'registry.db'}")
os.environ.setdefault(
    "TENANT_DIRECTORY_URL", f"sqlite+aiosqlite:///{_BOOT_DIR / 'directory.db'}"
)
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-jwt")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_platform")
os.environ.setdefault("STRIPE_CONNECT_WEBHOOK_SECRET", "whsec_test_connect")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from clubhub.core.database import get_db  # noqa: E402
from clubhub.main import create_app  # noqa: E402
from clubhub.models import Base, DirectoryBase  # noqa: E402
from clubhub.modules.billing.models import PlatformPlan  # noqa: E402
from clubhub.modules.billing.stripe_client import StripeClient, get_stripe_client  # noqa: E402
from clubhub.modules.signup.services import SignupService  # noqa: E402
from clubhub.modules.tenants.directory import TenantDirectory, get_directory_db  # noqa: E402
from tests.factories import (  # noqa: E402
    PLAN_PRICE_ID,
    PlatformPlanFactory,
    make_checkout,
    make_subscription,
)


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def _make_engine(path: Path, metadata) -> AsyncEngine:
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    _enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine


# ============================================================
# Databases
# ============================================================


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Membership registry engine on a per-test SQLite file."""
    engine = await _make_engine(tmp_path / "registry.db", Base.metadata)
    yield engine
    await engine.dispose()


@pytest.fixture
async def directory_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Tenant directory engine on its own SQLite file."""
    engine = await _make_engine(tmp_path / "directory.db", DirectoryBase.metadata)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def directory_session_factory(
    directory_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=directory_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Registry session for arranging and asserting."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def directory_db(directory_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with directory_session_factory() as session:
        yield session


@pytest.fixture
def directory(directory_db: AsyncSession) -> TenantDirectory:
    return TenantDirectory(directory_db)


# ============================================================
# Stripe
# ============================================================


@pytest.fixture
def stripe_mock() -> AsyncMock:
    """Stripe client double; async methods are AsyncMocks."""
    client = AsyncMock(spec=StripeClient)
    client.create_checkout_session.return_value = make_checkout()
    client.get_checkout_session.return_value = None
    client.get_subscription.return_value = make_subscription()
    client.create_connect_account.return_value = "acct_new"
    client.create_account_link.return_value = "https://connect.stripe.test/link"
    client.get_connect_account.return_value = None
    return client


# ============================================================
# Domain fixtures
# ============================================================


@pytest.fixture
async def plan(db: AsyncSession) -> PlatformPlan:
    """An active plan with a Stripe price."""
    plan = PlatformPlanFactory.build(stripe_price_id=PLAN_PRICE_ID, is_active=True)
    db.add(plan)
    await db.commit()
    return plan


@pytest.fixture
def signup_service(
    db: AsyncSession, stripe_mock: AsyncMock, directory: TenantDirectory
) -> SignupService:
    return SignupService(db, stripe_mock, directory)


@pytest.fixture
async def make_signup_service(session_factory, directory_session_factory, stripe_mock):
    """Build extra services on their own sessions, as concurrent requests would."""
    sessions: list[AsyncSession] = []

    def _make() -> SignupService:
        session = session_factory()
        directory_session = directory_session_factory()
        sessions.extend([session, directory_session])
        return SignupService(session, stripe_mock, TenantDirectory(directory_session))

    yield _make

    for session in sessions:
        await session.close()


# ============================================================
# Application
# ============================================================


@pytest.fixture
async def app(session_factory, directory_session_factory, stripe_mock):
    """Create test application instance bound to the per-test databases."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_directory_db() -> AsyncGenerator[AsyncSession, None]:
        async with directory_session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_directory_db] = override_get_directory_db
    application.dependency_overrides[get_stripe_client] = lambda: stripe_mock

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
