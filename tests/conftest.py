"""Test configuration and fixtures"""

from decimal import Decimal

import pytest
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.main import app
from storefront.database import Base, get_db
from storefront.api.deps import get_notifier, get_redis
from storefront.models import Category, Customer, Product, User, UserRole
from storefront.security import create_access_token, get_password_hash


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def notifications():
    """Notifications dispatched during a test, as (kind, reservation_id)"""
    return []


@pytest.fixture
def notifier(notifications):
    def notify(kind, reservation_id):
        notifications.append((kind, reservation_id))
    return notify


@pytest.fixture
async def fake_redis():
    redis = FakeAsyncRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture
async def test_category(test_db):
    """Create a test category"""
    category = Category(code="01", name="Disposables-Nic", slug="disposables-nic", sort_order=1)
    test_db.add(category)
    await test_db.commit()
    return category


@pytest.fixture
async def test_products(test_db, test_category):
    """Create test products keyed by a short name"""
    products = {
        "pod": Product(
            sku="01001", name="Pod Kit", price=Decimal("15.00"),
            is_taxable=True, track_inventory=True, stock=10, category_id=test_category.id,
        ),
        "juice": Product(
            sku="01002", name="Mango Juice", price=Decimal("10.00"),
            is_taxable=True, track_inventory=True, stock=20, category_id=test_category.id,
            is_featured=True,
        ),
        "papers": Product(
            sku="01003", name="Rolling Papers", price=Decimal("25.00"),
            is_taxable=False, track_inventory=True, stock=5, category_id=test_category.id,
        ),
        "limited": Product(
            sku="01004", name="Limited Edition", price=Decimal("5.00"),
            is_taxable=True, track_inventory=True, stock=5, category_id=test_category.id,
        ),
        "lighter": Product(
            sku="01005", name="Lighter", price=Decimal("2.50"),
            is_taxable=True, track_inventory=False, stock=0, category_id=test_category.id,
        ),
        "retired": Product(
            sku="01006", name="Retired Flavor", price=Decimal("12.00"),
            is_taxable=True, track_inventory=True, stock=8, category_id=test_category.id,
            is_active=False,
        ),
    }

    for product in products.values():
        test_db.add(product)

    await test_db.commit()
    return products


@pytest.fixture
async def test_customer(test_db):
    """Create a guest customer"""
    customer = Customer(
        email="jane@example.com",
        name="Jane Doe",
        phone="555-0100",
        total_reservations=0,
        total_spent=Decimal("0.00"),
    )
    test_db.add(customer)
    await test_db.commit()
    return customer


@pytest.fixture
async def test_admin_user(test_db):
    """Create a back office user"""
    user = User(
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def client(test_db, fake_redis, notifier):
    """Create test client with overridden database, Redis and notifier"""
    async def override_get_db():
        yield test_db

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def shop_client(client):
    """Client whose session has passed the age gate"""
    response = await client.post("/age-verification", json={"confirmed": True})
    assert response.status_code == 200
    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    token = create_access_token(test_admin_user)
    client.headers["Authorization"] = f"Bearer {token}"
    return client
