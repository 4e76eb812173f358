"""
tests/conftest.py
Shared fixtures: in-memory SQLite database, HTTP client against the app,
users with roles, and parking locations.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config.database import Base, get_db
from main import app
from shared.models.models import ParkingLocation, Role, User, UserRole
from shared.utils.security import create_access_token


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), user.email)
    return {"Authorization": f"Bearer {token}"}


async def make_user(db: AsyncSession, name: str, *roles: Role) -> User:
    user = User(id=uuid.uuid4(), name=name, email=f"{name.lower().replace(' ', '.')}@test.com")
    db.add(user)
    await db.flush()
    for role in roles:
        db.add(UserRole(user_id=user.id, role=role.value))
    await db.commit()
    return user


async def make_location(db: AsyncSession, owner: User, **overrides) -> ParkingLocation:
    created = datetime.now(timezone.utc) - timedelta(days=1)
    values = dict(
        owner_user_id=owner.id,
        title="MG Road Parking",
        address="12 MG Road",
        city="Bengaluru",
        state="KA",
        pincode="560001",
        latitude=12.9756,
        longitude=77.6050,
        total_slots=10,
        available_slots=4,
        pricing_mode="hourly",
        base_price_per_hour_paise=2000,
        approved=False,
        created_at=created,
        updated_at=created,
    )
    values.update(overrides)
    location = ParkingLocation(**values)
    db.add(location)
    await db.commit()
    await db.refresh(location)
    return location


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> User:
    return await make_user(db, "Customer", Role.CUSTOMER)


@pytest_asyncio.fixture
async def owner_user(db: AsyncSession) -> User:
    return await make_user(db, "Owner", Role.OWNER)


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await make_user(db, "Admin", Role.ADMIN)


@pytest_asyncio.fixture
async def location(db: AsyncSession, owner_user: User) -> ParkingLocation:
    """Unapproved listing."""
    return await make_location(db, owner_user)


@pytest_asyncio.fixture
async def approved_location(db: AsyncSession, owner_user: User, admin_user: User) -> ParkingLocation:
    return await make_location(
        db,
        owner_user,
        title="Brigade Road Lot",
        address="40 Brigade Road",
        approved=True,
        approved_by=admin_user.id,
        approved_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )
