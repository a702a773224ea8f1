"""Meter Reading Endpoints"""

from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.enums import MeterType
from app.schemas.dormitory import MeterReadingCreate, MeterReadingResponse
from app.schemas.responses import SuccessResponse
from app.services.dormitory_service import DormitoryService
from app.services.notification_service import NotificationSender

router = APIRouter()


@router.post("", response_model=SuccessResponse[MeterReadingResponse], status_code=status.HTTP_201_CREATED)
async def record_meter_reading(
    dormitory_id: UUID,
    reading_in: MeterReadingCreate,
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    """
    Record a water or electricity reading. previous_reading defaults to the last
    reading for the same room and meter.
    """
    reading = await DormitoryService.record_meter_reading(db, dormitory_id, reading_in, notifier)
    return SuccessResponse(data=reading, message="Meter reading recorded")


@router.get("", response_model=SuccessResponse[List[MeterReadingResponse]])
async def list_meter_readings(
    dormitory_id: UUID,
    room_id: Optional[UUID] = None,
    meter_type: Optional[MeterType] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    readings = await DormitoryService.list_meter_readings(db, dormitory_id, room_id, meter_type)
    return SuccessResponse(data=readings)
