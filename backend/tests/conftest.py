"""
Test Configuration — Fixtures for async DB, repository, test client, and seed data.

Each test gets its own SQLite file database so per-row commits and rollbacks
inside the reconciliation engine behave exactly as they do in production.
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api.deps import get_db
from api.main import app
from db.models import Seller, Supplier
from db.session import Base
from inventory.repository import InventoryRepository

SELLER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_SELLER_ID = "00000000-0000-0000-0000-000000000002"


@pytest.fixture
async def test_engine(tmp_path):
    """Create a per-test database engine and build all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'flowstock.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def repo(test_db):
    return InventoryRepository(test_db)


@pytest.fixture
async def seller(test_db):
    """The tenant most tests act as."""
    seller = Seller(
        seller_id=uuid.UUID(SELLER_ID),
        email="owner@acmegoods.com",
        name="Dana Owner",
        company_name="Acme Goods",
    )
    test_db.add(seller)
    await test_db.commit()
    return seller


@pytest.fixture
async def supplier(test_db, seller):
    supplier = Supplier(
        seller_id=seller.seller_id,
        name="Northwind Wholesale",
        email="orders@northwind.example",
        contact_person="Sam Buyer",
    )
    test_db.add(supplier)
    await test_db.commit()
    return supplier


@pytest.fixture
def sent_emails():
    return []


@pytest.fixture
def fake_sender(sent_emails):
    """Email sender that records payloads and reports delivery."""

    async def _send(alert, html_content):
        sent_emails.append(alert)
        return True

    return _send


@pytest.fixture
async def client(session_factory, seller):
    """Create an async test client with dependency overrides."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Seller-ID": SELLER_ID},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
