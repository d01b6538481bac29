"""Pytest fixtures for Royal Bid Boutique backend tests."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from royalbid.auth import create_access_token
from royalbid.database import Base, get_db
from royalbid.main import app
from royalbid.models import Product, User, UserRole


# Use SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return lambda: NOW


async def _user(db: AsyncSession, email: str, role: UserRole, first_name: str) -> User:
    user = User(id=uuid.uuid4(), email=email, first_name=first_name, last_name="Test", role=role.value)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def seller(db: AsyncSession) -> User:
    return await _user(db, "seller@example.com", UserRole.SELLER, "Sam")


@pytest_asyncio.fixture
async def other_seller(db: AsyncSession) -> User:
    return await _user(db, "other@example.com", UserRole.SELLER, "Olive")


@pytest_asyncio.fixture
async def buyer(db: AsyncSession) -> User:
    return await _user(db, "buyer@example.com", UserRole.BUYER, "Bea")


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> User:
    return await _user(db, "admin@example.com", UserRole.ADMIN, "Ada")


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}

    return _headers


@pytest_asyncio.fixture
async def make_product(db: AsyncSession, seller: User):
    """Factory inserting an active product; keyword arguments override defaults."""
    counter = {"n": 0}

    async def _make(auction_type: str = "Retail", **overrides) -> Product:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "seller_id": seller.id,
            "title": f"Test item {n}",
            "description": "A product used in tests",
            "category": "Watches",
            "condition": "New",
            "brand": "Omega",
            "sku": f"PRD-TEST-{n:05d}",
            "tags": ["test"],
            "images": [],
            "auction_type": auction_type,
            "status": "active",
            "is_active": True,
            # Strictly increasing so "newest" ordering is deterministic.
            "created_at": NOW - timedelta(days=30) + timedelta(minutes=n),
        }
        if auction_type == "Auction":
            fields["starting_bid"] = Decimal("100.00")
            fields["auction_end_date"] = NOW + timedelta(days=1)
        else:
            fields["price"] = Decimal("100.00")
            fields["stocks"] = 5
            fields["discount"] = Decimal("0")
        fields.update(overrides)
        fields.setdefault("updated_at", fields["created_at"])

        product = Product(**fields)
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    return _make
