"""
Centralized Test Configuration.
"""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.security import get_password_hash
from backend.app.models.driver import Driver
from backend.app.models.enums import UserRole
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.services.notifier import Notifier, get_notifier

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class RecordingNotifier(Notifier):
    """Keeps published events in memory instead of broadcasting them."""

    def __init__(self):
        self.events = []

    async def publish(self, event, payload=None):
        self.events.append((event, payload))

    def names(self):
        return [event for event, _ in self.events]

    def clear(self):
        self.events = []


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def apply_overrides(notifier):
    """Route the app to the test database and the recording notifier."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield

    app.dependency_overrides = {}

@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


# Fleet data factories

@pytest.fixture
def make_user(db_session):
    async def _make_user(role: UserRole, email: str = None, password: str = "password123", is_active: bool = True):
        user = User(
            name=role.value.title(),
            email=email or f"{role.value.lower()}@test.com",
            hashed_password=get_password_hash(password),
            role=role,
            is_active=is_active
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
async def manager(make_user):
    return await make_user(UserRole.FLEET_MANAGER)


@pytest.fixture
async def dispatcher(make_user):
    return await make_user(UserRole.DISPATCHER)


@pytest.fixture
async def safety_officer(make_user):
    return await make_user(UserRole.SAFETY_OFFICER)


@pytest.fixture
async def analyst(make_user):
    return await make_user(UserRole.FINANCIAL_ANALYST)


@pytest.fixture
def make_vehicle(db_session):
    async def _make_vehicle(
        license_plate: str = "VAN-001",
        type: str = "Van",
        max_capacity: float = 1000.0,
        odometer: int = 500,
        status: VehicleStatus = VehicleStatus.AVAILABLE,
        is_active: bool = True
    ):
        vehicle = Vehicle(
            model="Ford Transit",
            license_plate=license_plate,
            type=type,
            region="North",
            max_capacity=max_capacity,
            odometer=odometer,
            acquisition_cost=35000.0,
            status=status,
            is_active=is_active
        )
        db_session.add(vehicle)
        await db_session.commit()
        await db_session.refresh(vehicle)
        return vehicle
    return _make_vehicle


@pytest.fixture
def make_driver(db_session):
    async def _make_driver(
        name: str = "Dana Driver",
        allowed_vehicle_type: list = None,
        status: DriverStatus = DriverStatus.OFF_DUTY,
        license_valid_days: int = 365,
        safety_score: int = 100,
        user_id: int = None
    ):
        driver = Driver(
            name=name,
            license_expiry_date=datetime.utcnow() + timedelta(days=license_valid_days),
            allowed_vehicle_type=allowed_vehicle_type or ["Van"],
            status=status,
            safety_score=safety_score,
            user_id=user_id
        )
        db_session.add(driver)
        await db_session.commit()
        await db_session.refresh(driver)
        return driver
    return _make_driver


@pytest.fixture
async def vehicle(make_vehicle):
    return await make_vehicle()


@pytest.fixture
async def driver(make_driver):
    return await make_driver()
