"""Dormitory Service - dormitories, rooms, tenants and meter readings"""

from typing import Optional, List
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.database import commit_or_raise
from app.models.dormitory import Dormitory, Room, Tenant, MeterReading
from app.models.enums import RoomStatus, TenantStatus, MeterType, NotificationEvent
from app.schemas.dormitory import (
    DormitoryCreate, RoomCreate, TenantCreate, TenantUpdate, MeterReadingCreate,
)
from app.services import notification_messages as messages
from app.services.notification_service import NotificationSender
from app.services.settings_service import SettingsService
from app.utils.time import get_utc_now

logger = get_logger(__name__)


class DormitoryService:
    """Service layer for dormitory records"""

    @staticmethod
    async def get_dormitory_by_id(db: AsyncSession, dormitory_id: UUID) -> Optional[Dormitory]:
        result = await db.execute(
            select(Dormitory).where(Dormitory.id == dormitory_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def require_dormitory(db: AsyncSession, dormitory_id: UUID) -> Dormitory:
        dormitory = await DormitoryService.get_dormitory_by_id(db, dormitory_id)
        if not dormitory:
            raise NotFoundError(f"Dormitory {dormitory_id} not found")
        return dormitory

    @staticmethod
    async def create_dormitory(db: AsyncSession, data: DormitoryCreate) -> Dormitory:
        late_fee = data.late_fee_per_day
        dormitory = Dormitory(
            name=data.name,
            address=data.address,
            default_rent=data.default_rent,
            water_rate=data.water_rate,
            electric_rate=data.electric_rate,
            late_fee_per_day=settings.DEFAULT_LATE_FEE_PER_DAY if late_fee is None else late_fee,
            is_active=True,
        )
        db.add(dormitory)
        await commit_or_raise(db)
        await db.refresh(dormitory)
        return dormitory

    @staticmethod
    async def list_dormitories(db: AsyncSession) -> List[Dormitory]:
        result = await db.execute(select(Dormitory).order_by(Dormitory.name))
        return list(result.scalars().all())

    # Rooms

    @staticmethod
    async def get_room(db: AsyncSession, dormitory_id: UUID, room_id: UUID) -> Optional[Room]:
        result = await db.execute(
            select(Room).where(Room.id == room_id, Room.dormitory_id == dormitory_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def require_room(db: AsyncSession, dormitory_id: UUID, room_id: UUID) -> Room:
        room = await DormitoryService.get_room(db, dormitory_id, room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    @staticmethod
    async def create_room(db: AsyncSession, dormitory_id: UUID, data: RoomCreate) -> Room:
        await DormitoryService.require_dormitory(db, dormitory_id)
        room = Room(
            dormitory_id=dormitory_id,
            number=data.number,
            floor=data.floor,
            monthly_rent=data.monthly_rent,
            status=data.status,
        )
        db.add(room)
        await commit_or_raise(db, f"Room {data.number} already exists")
        await db.refresh(room)
        return room

    @staticmethod
    async def list_rooms(
        db: AsyncSession,
        dormitory_id: UUID,
        status: Optional[RoomStatus] = None,
    ) -> List[Room]:
        stmt = select(Room).where(Room.dormitory_id == dormitory_id)
        if status is not None:
            stmt = stmt.where(Room.status == status)
        result = await db.execute(stmt.order_by(Room.number))
        return list(result.scalars().all())

    # Tenants

    @staticmethod
    async def get_tenant(db: AsyncSession, dormitory_id: UUID, tenant_id: UUID) -> Optional[Tenant]:
        result = await db.execute(
            select(Tenant)
            .where(Tenant.id == tenant_id, Tenant.dormitory_id == dormitory_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def require_tenant(db: AsyncSession, dormitory_id: UUID, tenant_id: UUID) -> Tenant:
        tenant = await DormitoryService.get_tenant(db, dormitory_id, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    @staticmethod
    async def create_tenant(db: AsyncSession, dormitory_id: UUID, data: TenantCreate) -> Tenant:
        await DormitoryService.require_dormitory(db, dormitory_id)
        room = None
        if data.room_id is not None:
            room = await DormitoryService.require_room(db, dormitory_id, data.room_id)

        tenant = Tenant(
            dormitory_id=dormitory_id,
            room_id=data.room_id,
            full_name=data.full_name,
            phone=data.phone,
            line_user_id=data.line_user_id,
            status=data.status,
        )
        db.add(tenant)
        if room is not None and data.status != TenantStatus.INACTIVE:
            room.status = RoomStatus.OCCUPIED
        await commit_or_raise(db)
        return await DormitoryService.require_tenant(db, dormitory_id, tenant.id)

    @staticmethod
    async def update_tenant(
        db: AsyncSession,
        dormitory_id: UUID,
        tenant_id: UUID,
        data: TenantUpdate,
    ) -> Tenant:
        tenant = await DormitoryService.require_tenant(db, dormitory_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("room_id") is not None:
            await DormitoryService.require_room(db, dormitory_id, update_data["room_id"])

        for field, value in update_data.items():
            setattr(tenant, field, value)

        await commit_or_raise(db)
        return await DormitoryService.require_tenant(db, dormitory_id, tenant_id)

    @staticmethod
    async def list_tenants(
        db: AsyncSession,
        dormitory_id: UUID,
        status: Optional[TenantStatus] = None,
    ) -> List[Tenant]:
        stmt = select(Tenant).where(Tenant.dormitory_id == dormitory_id)
        if status is not None:
            stmt = stmt.where(Tenant.status == status)
        result = await db.execute(stmt.order_by(Tenant.full_name))
        return list(result.scalars().all())

    @staticmethod
    async def get_active_tenant_for_room(db: AsyncSession, room_id: UUID) -> Optional[Tenant]:
        """Current occupant; a tenant who announced move-out still counts."""
        result = await db.execute(
            select(Tenant)
            .where(
                Tenant.room_id == room_id,
                Tenant.status.in_([TenantStatus.ACTIVE, TenantStatus.MOVING_OUT]),
            )
            .order_by(desc(Tenant.created_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    # Meter readings

    @staticmethod
    async def get_latest_reading(
        db: AsyncSession,
        room_id: UUID,
        meter_type: MeterType,
    ) -> Optional[MeterReading]:
        result = await db.execute(
            select(MeterReading)
            .where(MeterReading.room_id == room_id, MeterReading.meter_type == meter_type)
            .order_by(desc(MeterReading.reading_date), desc(MeterReading.created_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def record_meter_reading(
        db: AsyncSession,
        dormitory_id: UUID,
        data: MeterReadingCreate,
        notifier: NotificationSender,
    ) -> MeterReading:
        """
        Save a reading. The previous value defaults to the last reading for the same
        room and meter; a utility-reading notification goes out when enabled.
        """
        room = await DormitoryService.require_room(db, dormitory_id, data.room_id)

        previous = data.previous_reading
        if previous is None:
            latest = await DormitoryService.get_latest_reading(db, room.id, data.meter_type)
            previous = latest.current_reading if latest else 0
        if data.current_reading < previous:
            raise ValidationError(
                f"Current reading {data.current_reading} is lower than previous reading {previous}"
            )

        reading = MeterReading(
            dormitory_id=dormitory_id,
            room_id=room.id,
            meter_type=data.meter_type,
            previous_reading=previous,
            current_reading=data.current_reading,
            units_used=data.current_reading - previous,
            reading_date=data.reading_date or get_utc_now(),
        )
        db.add(reading)
        await commit_or_raise(db)
        await db.refresh(reading)

        config = await SettingsService.get_notification_config(db, dormitory_id)
        if config is not None and config.is_enabled(NotificationEvent.UTILITY_READING):
            await notifier.send(
                config,
                messages.utility_reading(
                    room.number,
                    data.meter_type,
                    reading.previous_reading,
                    reading.current_reading,
                    reading.units_used,
                ),
            )

        return reading

    @staticmethod
    async def list_meter_readings(
        db: AsyncSession,
        dormitory_id: UUID,
        room_id: Optional[UUID] = None,
        meter_type: Optional[MeterType] = None,
    ) -> List[MeterReading]:
        stmt = select(MeterReading).where(MeterReading.dormitory_id == dormitory_id)
        if room_id is not None:
            stmt = stmt.where(MeterReading.room_id == room_id)
        if meter_type is not None:
            stmt = stmt.where(MeterReading.meter_type == meter_type)
        result = await db.execute(stmt.order_by(desc(MeterReading.reading_date)))
        return list(result.scalars().all())
