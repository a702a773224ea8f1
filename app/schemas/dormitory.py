from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.models.enums import RoomStatus, TenantStatus, MeterType
from app.utils.time import to_naive_utc


class DormitoryBase(BaseModel):
    name: str = Field(..., min_length=1, description="Dormitory name cannot be empty")
    address: Optional[str] = None
    default_rent: Decimal = Field(Decimal("0"), ge=0)
    water_rate: Decimal = Field(Decimal("0"), ge=0)
    electric_rate: Decimal = Field(Decimal("0"), ge=0)
    late_fee_per_day: Optional[Decimal] = Field(None, ge=0)


class DormitoryCreate(DormitoryBase):
    pass


class DormitoryResponse(DormitoryBase):
    id: UUID
    late_fee_per_day: Decimal
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoomCreate(BaseModel):
    number: str = Field(..., min_length=1)
    floor: Optional[int] = None
    monthly_rent: Optional[Decimal] = Field(None, ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE


class RoomResponse(BaseModel):
    id: UUID
    dormitory_id: UUID
    number: str
    floor: Optional[int] = None
    monthly_rent: Optional[Decimal] = None
    status: RoomStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TenantCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    room_id: Optional[UUID] = None
    phone: Optional[str] = None
    line_user_id: Optional[str] = None
    status: TenantStatus = TenantStatus.ACTIVE


class TenantUpdate(BaseModel):
    full_name: Optional[str] = None
    room_id: Optional[UUID] = None
    phone: Optional[str] = None
    line_user_id: Optional[str] = None
    status: Optional[TenantStatus] = None


class TenantResponse(BaseModel):
    id: UUID
    dormitory_id: UUID
    room_id: Optional[UUID] = None
    room_number: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    line_user_id: Optional[str] = None
    status: TenantStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MeterReadingCreate(BaseModel):
    room_id: UUID
    meter_type: MeterType
    current_reading: Decimal = Field(..., ge=0)
    previous_reading: Optional[Decimal] = Field(None, ge=0)
    reading_date: Optional[datetime] = None

    @field_validator("reading_date")
    @classmethod
    def normalize_reading_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None


class MeterReadingResponse(BaseModel):
    id: UUID
    room_id: UUID
    meter_type: MeterType
    previous_reading: Decimal
    current_reading: Decimal
    units_used: Decimal
    reading_date: datetime
    bill_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)
