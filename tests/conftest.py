"""
Shared fixtures: an in-memory database per test, seeded reference data and
an API client bound to the same database.
"""
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lrdesk.db.database import Base, get_db
from lrdesk.main import app
from lrdesk.models import branch, article, booking, ogpl, audit  # noqa: F401
from lrdesk.schemas import (
    ArticleCreate, BookingCreate, BranchCreate, CustomerCreate, OrgContext,
)
from lrdesk.tools import article_tools, booking_tools, directory_tools

ORG_ID = "test-org"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def ctx():
    return OrgContext(organization_id=ORG_ID)


@pytest.fixture
async def seed(db, ctx):
    """Two branches, a sender and receiver with mobiles, and one article."""
    mumbai = await directory_tools.create_branch(db, ctx, BranchCreate(name="Mumbai HQ", code="MU", city="Mumbai"))
    delhi = await directory_tools.create_branch(db, ctx, BranchCreate(name="Delhi Branch", code="DL", city="New Delhi"))
    sender = await directory_tools.create_customer(
        db, ctx, CustomerCreate(name="Sharma Textiles", mobile="9876543210", branch_id=mumbai.id),
    )
    receiver = await directory_tools.create_customer(
        db, ctx, CustomerCreate(name="Rekha Iyer", mobile="9876543212", branch_id=delhi.id),
    )
    garments = await article_tools.create_article(
        db, ctx, ArticleCreate(name="Garments", description="Ready-made garments", base_rate=200, branch_id=mumbai.id),
    )
    await db.commit()
    return SimpleNamespace(mumbai=mumbai, delhi=delhi, sender=sender, receiver=receiver, garments=garments)


@pytest.fixture
def make_booking(db, ctx, seed):
    """Factory creating a booked LR from Mumbai to Delhi."""

    async def _make(**overrides):
        fields = {
            "from_branch": seed.mumbai.id,
            "to_branch": seed.delhi.id,
            "sender_id": seed.sender.id,
            "receiver_id": seed.receiver.id,
            "article_id": seed.garments.id,
            "quantity": 2,
        }
        fields.update(overrides)
        return await booking_tools.create_booking(db, ctx, BookingCreate(**fields))

    return _make


@pytest.fixture
async def client(session_maker, seed):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-Organization-Id": ORG_ID}) as ac:
        yield ac
    app.dependency_overrides.clear()
