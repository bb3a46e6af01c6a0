# Shared pytest configuration and fixtures for all test types
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from slowapi import Limiter
from slowapi.util import get_remote_address
from unittest.mock import AsyncMock, patch
from datetime import datetime, timezone, timedelta

# Create test limiter with no limits and in-memory storage
test_limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri="memory://",
)

# Patch the limiter before importing the app so decorators use test limiter
with patch("common.providers.rate_limiter.limiter.limiter", test_limiter):
    from api.main import app

from common.core.config import settings
from common.db.session import get_db
from common.db.base import Base
from packages.auth.dependencies import get_current_active_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.models.database import (  # noqa: F401
    BillingCustomerEntity,
    BillingEventEntity,
    SubscriptionMirrorEntity,
)
from packages.billing.models.domain.enums import SubscriptionStatus
from tests.factories.billing_factory import (
    TEST_PRICE_MONTHLY,
    TEST_PRICE_ONEOFF,
    TEST_PRICE_YEARLY,
    TEST_WEBHOOK_SECRET,
)
from packages.billing.providers.payment import factory as payment_factory

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"



@pytest_asyncio.fixture(scope="function", autouse=True)
async def billing_settings(monkeypatch):
    """Known Stripe configuration for every test."""
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_123")
    monkeypatch.setattr(settings, "stripe_webhook_secret", TEST_WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "stripe_price_monthly", TEST_PRICE_MONTHLY)
    monkeypatch.setattr(settings, "stripe_price_yearly", TEST_PRICE_YEARLY)
    monkeypatch.setattr(settings, "stripe_price_cusp_oneoff", TEST_PRICE_ONEOFF)
    monkeypatch.setattr(settings, "supabase_url", "https://project.supabase.co")
    monkeypatch.setattr(settings, "supabase_anon_key", "anon-test-key")
    monkeypatch.setattr(settings, "billing_override_emails", [])
    monkeypatch.setattr(settings, "stripe_retry_base_seconds", 0.0)
    monkeypatch.setattr(settings, "stripe_retry_max_seconds", 0.0)
    return settings


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so each repository
    operation commits a savepoint instead of the outer test transaction.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch the session factory to use the test database.

    Repositories run real get_session() commit/rollback against it.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)


@pytest_asyncio.fixture(scope="function")
async def mock_payment_provider():
    """Mocked Stripe provider; every service picks it up through the factory."""
    provider = AsyncMock()
    provider.create_customer = AsyncMock(return_value="cus_new123")
    provider.retrieve_subscription = AsyncMock()
    provider.list_subscriptions = AsyncMock(return_value=[])
    provider.create_checkout_session = AsyncMock(
        return_value="https://checkout.stripe.com/c/pay/cs_test_123"
    )
    provider.create_customer_portal_session = AsyncMock(
        return_value="https://billing.stripe.com/p/session/test_123"
    )
    provider.health_check = AsyncMock(return_value=True)
    return provider


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_payment_provider(mock_payment_provider, monkeypatch):
    """Never construct the real Stripe provider in tests."""
    monkeypatch.setattr(payment_factory, "_payment_provider", mock_payment_provider)


@pytest_asyncio.fixture(scope="function")
async def test_user():
    """Create a test authenticated user."""
    return AuthenticatedUser(account_id="acct_test_1", email="member@example.com")


@pytest_asyncio.fixture(scope="function")
async def client(test_db: AsyncSession, test_user):
    """Create a test client."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    def override_get_current_active_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_active_user] = override_get_current_active_user

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(test_db: AsyncSession):
    """Test client with real authentication dependencies."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def sample_customer(test_db: AsyncSession, test_user):
    """Map the test user's account to a Stripe customer."""
    customer = BillingCustomerEntity(
        account_id=test_user.account_id,
        provider_customer_id="cus_test_1",
        email=test_user.email,
    )
    test_db.add(customer)
    await test_db.commit()
    await test_db.refresh(customer)
    return customer


@pytest_asyncio.fixture(scope="function")
async def sample_mirror(test_db: AsyncSession, sample_customer):
    """A fresh, active monthly subscription for the sample customer."""
    now = datetime.now(timezone.utc)
    mirror = SubscriptionMirrorEntity(
        provider_customer_id=sample_customer.provider_customer_id,
        provider_subscription_id="sub_test_1",
        status=SubscriptionStatus.ACTIVE.value,
        plan_id=TEST_PRICE_MONTHLY,
        current_period_start=now - timedelta(days=3),
        current_period_end=now + timedelta(days=27),
        cancel_at_period_end=False,
        last_synced_at=now,
    )
    test_db.add(mirror)
    await test_db.commit()
    await test_db.refresh(mirror)
    return mirror


