"""Shared pytest fixtures for unit and integration tests."""

import os

# Configure before the app is imported: in-memory database, no rate limiting
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CRON_SECRET"] = ""
os.environ["LOG_FORMAT"] = "text"

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 - register all tables on Base.metadata
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.models.enums import NotificationChannelType, MeterType, BillItemCategory
from app.schemas.billing import BillCreate, BillItemCreate
from app.schemas.dormitory import DormitoryCreate, RoomCreate, TenantCreate, MeterReadingCreate
from app.schemas.notification import NotificationConfigUpdate
from app.services.bill_service import BillService
from app.services.dormitory_service import DormitoryService
from app.services.notification_service import NotificationSender, get_notification_sender
from app.services.settings_service import SettingsService

# Fixed clock for lifecycle tests
NOW = datetime(2026, 10, 17, 9, 0, 0)


class FakeNotifier(NotificationSender):
    """Records messages instead of calling a channel"""

    def __init__(self, succeed: bool = True):
        super().__init__(max_retries=1, backoff_seconds=0)
        self.succeed = succeed
        self.messages = []

    async def send(self, config, message: str) -> bool:
        self.messages.append(message)
        return self.succeed


@pytest.fixture
async def db_session():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(succeed=False)


@pytest.fixture
def api_base() -> str:
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(db_session: AsyncSession, notifier: FakeNotifier, api_base: str):
    """Async HTTP client bound to the test database and the recording notifier."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=api_base, timeout=30.0) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def dormitory(db_session: AsyncSession):
    return await DormitoryService.create_dormitory(
        db_session,
        DormitoryCreate(
            name="Baan Suk Dormitory",
            default_rent=Decimal("3000"),
            water_rate=Decimal("18"),
            electric_rate=Decimal("7"),
            late_fee_per_day=Decimal("20"),
        ),
    )


@pytest.fixture
async def room(db_session: AsyncSession, dormitory):
    return await DormitoryService.create_room(
        db_session, dormitory.id, RoomCreate(number="101", floor=1, monthly_rent=Decimal("3500"))
    )


@pytest.fixture
async def tenant(db_session: AsyncSession, dormitory, room):
    return await DormitoryService.create_tenant(
        db_session,
        dormitory.id,
        TenantCreate(full_name="Somchai Jaidee", room_id=room.id, phone="0812345678"),
    )


@pytest.fixture
async def notification_config(db_session: AsyncSession, dormitory):
    """Webhook channel with every event switched on."""
    return await SettingsService.upsert_notification_config(
        db_session,
        dormitory.id,
        NotificationConfigUpdate(
            channel_type=NotificationChannelType.WEBHOOK,
            webhook_url="https://hooks.example.com/billing",
            utility_reading=True,
        ),
    )


@pytest.fixture
def make_bill(db_session: AsyncSession, dormitory, room, tenant, notifier):
    """Factory: create a bill for room 101 with the given item amounts."""

    async def _make_bill(*amounts, due_date=None, month=10, year=2026):
        amounts = amounts or (Decimal("3000"),)
        draft = BillCreate(
            room_id=room.id,
            tenant_id=tenant.id,
            month=month,
            year=year,
            due_date=due_date or NOW + timedelta(days=10),
            items=[
                BillItemCreate(name=f"Item {i}", category=BillItemCategory.OTHER, amount=Decimal(str(a)))
                for i, a in enumerate(amounts)
            ],
        )
        return await BillService.create_bill(db_session, dormitory.id, draft, notifier)

    return _make_bill


@pytest.fixture
def record_reading(db_session: AsyncSession, dormitory, room, notifier):
    async def _record(meter_type: MeterType, current, previous=None, reading_date=None):
        return await DormitoryService.record_meter_reading(
            db_session,
            dormitory.id,
            MeterReadingCreate(
                room_id=room.id,
                meter_type=meter_type,
                current_reading=Decimal(str(current)),
                previous_reading=None if previous is None else Decimal(str(previous)),
                reading_date=reading_date or NOW,
            ),
            notifier,
        )

    return _record

