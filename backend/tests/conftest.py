"""Test fixtures for the marketplace backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("REPORT_TIMEZONE", "UTC")

from marketplace.core.config import get_settings
from marketplace.core.security import create_access_token
from marketplace.db.base import Base
from marketplace.db.session import dispose_engine, get_sessionmaker
from marketplace.main import app
from marketplace.models import (
    Attraction,
    CommissionSettings,
    User,
    UserRole,
    UserStatus,
    Vehicle,
    VehicleType,
)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def db_session(reset_database: None, db_url: str) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the freshly created schema."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        yield session


def auth_headers(user_id: object) -> dict[str, str]:
    """Bearer headers for a user, as issued by the identity service."""
    return {"Authorization": f"Bearer {create_access_token(str(user_id))}"}


@pytest_asyncio.fixture()
async def seeded(db_session: AsyncSession) -> dict[str, object]:
    """Seed users, a vehicle and an attraction; return the ORM rows."""
    admin = User(
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        role=UserRole.ADMIN,
        status=UserStatus.ACTIVE,
    )
    host = User(
        email="host@example.com",
        first_name="Hana",
        last_name="Host",
        role=UserRole.HOST,
        status=UserStatus.ACTIVE,
    )
    other_host = User(
        email="other.host@example.com",
        first_name="Omar",
        last_name="Other",
        role=UserRole.HOST,
        status=UserStatus.ACTIVE,
    )
    guest = User(
        email="guest@example.com",
        first_name="Gil",
        last_name="Guest",
        phone_number="+250780000000",
        role=UserRole.GUEST,
        status=UserStatus.ACTIVE,
    )
    second_guest = User(
        email="guest2@example.com",
        first_name="Gina",
        last_name="Guest",
        role=UserRole.GUEST,
        status=UserStatus.ACTIVE,
    )
    db_session.add_all([admin, host, other_host, guest, second_guest])
    db_session.add(CommissionSettings(id=1))
    await db_session.flush()

    vehicle = Vehicle(
        owner_id=host.id,
        name="Toyota RAV4",
        vehicle_type=VehicleType.SUV,
        price_per_day=Decimal("10000"),
        price_per_week=Decimal("60000"),
    )
    attraction = Attraction(
        owner_id=host.id,
        name="Canopy Walk",
        price_per_ticket=Decimal("5000"),
        capacity=50,
        commission_rate=Decimal("15"),
    )
    db_session.add_all([vehicle, attraction])
    await db_session.commit()

    return {
        "admin": admin,
        "host": host,
        "other_host": other_host,
        "guest": guest,
        "second_guest": second_guest,
        "vehicle": vehicle,
        "attraction": attraction,
    }


@pytest_asyncio.fixture()
async def app_context(seeded: dict[str, object]) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus seeded ids and bearer headers."""
    context: dict[str, object] = {
        "vehicle_id": seeded["vehicle"].id,  # type: ignore[attr-defined]
        "attraction_id": seeded["attraction"].id,  # type: ignore[attr-defined]
    }
    for role in ("admin", "host", "other_host", "guest", "second_guest"):
        user = seeded[role]
        context[f"{role}_id"] = user.id  # type: ignore[attr-defined]
        context[f"{role}_headers"] = auth_headers(user.id)  # type: ignore[attr-defined]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
