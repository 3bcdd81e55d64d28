"""Pytest configuration and shared fixtures."""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import timedelta
from decimal import Decimal
from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload
from sqlalchemy.pool import StaticPool

from instantfork.dependencies import get_db
from instantfork.main import app
from instantfork.models import Base, Deal, Restaurant, User
from instantfork.models.base import utcnow
from instantfork.services.auth_service import create_access_token, hash_password
from instantfork.services.cache_service import get_cache


class FakeCache:
    """In-memory stand-in for CacheService."""

    def __init__(self):
        self.store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str, ttl: int = 300) -> bool:
        self.store[key] = value
        return True

    async def delete(self, key: str) -> bool:
        return self.store.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        prefix = pattern.rstrip("*")
        keys = [k for k in self.store if k.startswith(prefix)]
        for key in keys:
            del self.store[key]
        return len(keys)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared by the service session and the API."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncSession:
    """Create an in-memory SQLite database session for testing."""
    SessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session


# ============================================================================
# SAMPLE DATA
# ============================================================================

async def make_user(db: AsyncSession, email: str, full_name: str = "Test Diner") -> User:
    user = User(
        email=email,
        full_name=full_name,
        hashed_password=hash_password("password123"),
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_deal(db: AsyncSession, restaurant: Restaurant, **overrides) -> Deal:
    now = utcnow()
    values = dict(
        restaurant_id=restaurant.id,
        title="Half-price Margherita",
        description="Wood-fired margherita pizza",
        tags=["pizza", "vegetarian", "dinner"],
        original_price=Decimal("18.00"),
        deal_price=Decimal("9.00"),
        latitude=restaurant.latitude,
        longitude=restaurant.longitude,
        start_time=now - timedelta(hours=1),
        end_time=now + timedelta(hours=5),
        is_active=True,
        quantity_available=10,
    )
    values.update(overrides)
    deal = Deal(**values)
    db.add(deal)
    await db.commit()

    # Reload with the restaurant attached for code that reads deal.restaurant
    result = await db.execute(
        select(Deal).options(selectinload(Deal.restaurant)).where(Deal.id == deal.id)
    )
    return result.scalar_one()


@pytest_asyncio.fixture
async def sample_user(test_db: AsyncSession) -> User:
    """A diner."""
    return await make_user(test_db, "diner@example.com")


@pytest_asyncio.fixture
async def owner_user(test_db: AsyncSession) -> User:
    """A restaurant owner."""
    return await make_user(test_db, "owner@example.com", full_name="Rosa Owner")


@pytest_asyncio.fixture
async def sample_restaurant(test_db: AsyncSession, owner_user: User) -> Restaurant:
    """A Dupont Circle pizzeria."""
    restaurant = Restaurant(
        owner_id=owner_user.id,
        name="Dupont Pizzeria",
        description="Neapolitan pizza",
        category="Italian",
        address="1500 Connecticut Ave NW, Washington, DC 20036",
        latitude=38.9097,
        longitude=-77.0434,
        opening_hours={},
        is_active=True,
    )
    test_db.add(restaurant)
    await test_db.commit()
    await test_db.refresh(restaurant)
    return restaurant


@pytest_asyncio.fixture
async def sample_deal(test_db: AsyncSession, sample_restaurant: Restaurant) -> Deal:
    """A live deal with ten units."""
    return await make_deal(test_db, sample_restaurant)


# ============================================================================
# API CLIENT
# ============================================================================

@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest_asyncio.fixture
async def client(test_engine, fake_cache: FakeCache):
    """httpx client against the app, backed by the test database and a fake cache."""
    SessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_cache():
        return fake_cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = override_get_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
