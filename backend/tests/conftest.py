"""Pytest configuration and fixtures for DesiCargo tests.

Tests run against in-memory SQLite (foreign keys enforced) and an
in-process fake Redis, so no services are needed. Every request gets its
own session with the same commit/rollback behaviour as production.
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from desicargo.auth.jwt import create_access_token
from desicargo.auth.password import hash_password
from desicargo.auth.permissions import resolve_permissions
from desicargo.config import settings
from desicargo.database import Base, get_db
from desicargo.main import app
from desicargo.models.article import Article
from desicargo.models.booking import Booking
from desicargo.models.branch import Branch
from desicargo.models.customer import Customer
from desicargo.models.user import User, UserRole
from desicargo.models.vehicle import Vehicle
from desicargo.utils import cache

PASSWORD = "secret123"


# ── Database ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                cache.discard_invalidations(session)
                raise
            await cache.flush_invalidations(session)

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Redis / settings ─────────────────────────────────────────────

@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    """Point the cache, revocation list and rate limiter at a fake Redis."""
    redis_client = FakeAsyncRedis(decode_responses=True)
    cache._redis_client = redis_client
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()
    cache._redis_client = None


@pytest.fixture(autouse=True)
def no_rate_limit():
    previous = settings.rate_limit_enabled
    settings.rate_limit_enabled = False
    yield
    settings.rate_limit_enabled = previous


# ── Helpers ──────────────────────────────────────────────────────

async def persist(session_factory, *rows):
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()
    return rows


def token_for(user: User) -> str:
    return create_access_token(
        user_id=user.id,
        role=user.role.value,
        permissions=resolve_permissions(user.role.value),
        branch_id=user.branch_id,
    )


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


# ── Reference data ───────────────────────────────────────────────

@pytest_asyncio.fixture
async def mumbai(session_factory) -> Branch:
    branch = Branch(
        name="Mumbai Central", code="BOM", city="Mumbai", state="Maharashtra",
        is_head_office=True,
    )
    await persist(session_factory, branch)
    return branch


@pytest_asyncio.fixture
async def delhi(session_factory) -> Branch:
    branch = Branch(name="Delhi Hub", code="DEL", city="Delhi", state="Delhi")
    await persist(session_factory, branch)
    return branch


@pytest_asyncio.fixture
async def pune(session_factory) -> Branch:
    branch = Branch(name="Pune Depot", code="PNQ", city="Pune", state="Maharashtra")
    await persist(session_factory, branch)
    return branch


def _user(email: str, name: str, role: UserRole, branch: Branch | None) -> User:
    return User(
        email=email,
        name=name,
        hashed_password=hash_password(PASSWORD),
        role=role,
        branch_id=branch.id if branch else None,
        is_active=True,
        email_verified=True,
    )


@pytest_asyncio.fixture
async def admin_user(session_factory) -> User:
    user = _user("admin@desicargo.example.com", "Asha Admin", UserRole.ADMIN, None)
    await persist(session_factory, user)
    return user


@pytest_asyncio.fixture
async def staff_user(session_factory, mumbai) -> User:
    user = _user("staff@desicargo.example.com", "Sunil Staff", UserRole.STAFF, mumbai)
    await persist(session_factory, user)
    return user


@pytest_asyncio.fixture
async def manager_user(session_factory, delhi) -> User:
    user = _user("manager@desicargo.example.com", "Deepa Manager", UserRole.BRANCH_MANAGER, delhi)
    await persist(session_factory, user)
    return user


@pytest_asyncio.fixture
async def accountant_user(session_factory) -> User:
    user = _user("accounts@desicargo.example.com", "Arun Accounts", UserRole.ACCOUNTANT, None)
    await persist(session_factory, user)
    return user


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def staff_headers(staff_user) -> dict:
    return headers_for(staff_user)


@pytest.fixture
def manager_headers(manager_user) -> dict:
    return headers_for(manager_user)


@pytest.fixture
def accountant_headers(accountant_user) -> dict:
    return headers_for(accountant_user)


@pytest_asyncio.fixture
async def parties(session_factory, mumbai) -> dict:
    sender = Customer(name="Ravi Traders", mobile="9876543210", type="company", branch_id=mumbai.id)
    receiver = Customer(name="Meena Stores", mobile="9123456780", branch_id=mumbai.id)
    article = Article(name="Cartons", base_rate=50.0, branch_id=mumbai.id)
    await persist(session_factory, sender, receiver, article)
    return {"sender": sender, "receiver": receiver, "article": article}


@pytest_asyncio.fixture
async def truck(session_factory, mumbai) -> Vehicle:
    vehicle = Vehicle(
        branch_id=mumbai.id, vehicle_number="MH01AB1234", type="own",
        make="Tata", model="LPT 1613", year=2020,
    )
    await persist(session_factory, vehicle)
    return vehicle


@pytest.fixture
def draft(mumbai, delhi, parties) -> dict:
    """A valid booking draft from Mumbai to Delhi."""
    return {
        "from_branch": mumbai.id,
        "to_branch": delhi.id,
        "sender_id": parties["sender"].id,
        "receiver_id": parties["receiver"].id,
        "article_id": parties["article"].id,
        "quantity": 3,
        "freight_per_qty": 100,
        "loading_charges": 20,
        "unloading_charges": 10,
        "payment_type": "Paid",
    }


@pytest.fixture
def make_booking(client, draft, staff_headers):
    """Create a booking over the API; keyword overrides patch the draft."""

    async def _make(headers: dict | None = None, **overrides) -> dict:
        response = await client.post(
            "/api/bookings/", json={**draft, **overrides}, headers=headers or staff_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest_asyncio.fixture
async def seeded_bookings(session_factory, mumbai, delhi, parties) -> list[Booking]:
    """Bookings at fixed ages for date-window tests, written directly."""
    now = datetime.utcnow()
    rows = []
    for i, (age, status) in enumerate([
        (timedelta(hours=1), "booked"),
        (timedelta(days=1), "in_transit"),
        (timedelta(days=8), "delivered"),
        (timedelta(days=40), "cancelled"),
    ], start=1):
        created = now - age
        rows.append(Booking(
            branch_id=mumbai.id,
            lr_number=f"LR-SEED-{i:04d}",
            from_branch=mumbai.id,
            to_branch=delhi.id,
            sender_id=parties["sender"].id,
            receiver_id=parties["receiver"].id,
            article_id=parties["article"].id,
            quantity=1,
            freight_per_qty=100.0 * i,
            total_amount=100.0 * i,
            payment_type="Paid" if i % 2 else "To Pay",
            status=status,
            created_at=created,
            updated_at=created + timedelta(hours=24) if status == "delivered" else created,
        ))
    await persist(session_factory, *rows)
    return rows
