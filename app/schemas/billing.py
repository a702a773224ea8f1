from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.models.enums import BillStatus, BillItemCategory, PaymentMethod, TenantStatus
from app.utils.time import to_naive_utc


class UtilityReading(BaseModel):
    """Meter reading a utility line item was priced from"""
    previous_reading: Decimal = Field(..., ge=0)
    current_reading: Decimal = Field(..., ge=0)
    units_used: Optional[Decimal] = None

    @model_validator(mode="after")
    def derive_units(self) -> "UtilityReading":
        if self.current_reading < self.previous_reading:
            raise ValueError("current_reading must not be lower than previous_reading")
        if self.units_used is None:
            self.units_used = self.current_reading - self.previous_reading
        return self


class BillItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: BillItemCategory = BillItemCategory.OTHER
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    description: Optional[str] = None
    units: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    reading: Optional[UtilityReading] = None


class BillCreate(BaseModel):
    room_id: UUID
    tenant_id: UUID
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    due_date: datetime
    items: List[BillItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class BatchBillCreate(BaseModel):
    """Generate the month's bills for occupied rooms"""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    due_date: datetime
    room_ids: Optional[List[UUID]] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class PaymentCreate(BaseModel):
    # Upper bound is the bill balance, checked when the payment is applied
    amount: Decimal = Field(..., decimal_places=2)
    method: PaymentMethod
    paid_at: Optional[datetime] = None
    reference: Optional[str] = None
    evidence_url: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None

    @field_validator("paid_at")
    @classmethod
    def normalize_paid_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None


class BillItemResponse(BaseModel):
    id: UUID
    name: str
    category: BillItemCategory
    amount: Decimal
    description: Optional[str] = None
    units: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    previous_reading: Optional[Decimal] = None
    current_reading: Optional[Decimal] = None
    units_used: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: UUID
    amount: Decimal
    method: PaymentMethod
    paid_at: datetime
    reference: Optional[str] = None
    evidence_url: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BillResponse(BaseModel):
    id: UUID
    dormitory_id: UUID
    room_id: UUID
    room_number: str
    tenant_id: UUID
    tenant_name: Optional[str] = None
    month: int
    year: int
    status: BillStatus
    items: List[BillItemResponse]
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    late_fee: Decimal
    due_date: datetime
    paid_at: Optional[datetime] = None
    payments: List[PaymentResponse]
    notified_created: bool
    notified_reminder: bool
    notified_overdue: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SkippedRoom(BaseModel):
    room_id: UUID
    room_number: str
    reason: str


class BatchBillResult(BaseModel):
    created: List[BillResponse]
    skipped: List[SkippedRoom]


class BillingSummary(BaseModel):
    total_bills: int = 0
    total_amount: Decimal = Decimal("0")
    paid_bills: int = 0
    paid_amount: Decimal = Decimal("0")
    pending_bills: int = 0
    pending_amount: Decimal = Decimal("0")
    overdue_bills: int = 0
    overdue_amount: Decimal = Decimal("0")


class LateFeeResponse(BaseModel):
    bill_id: UUID
    late_fee: Decimal
    days_overdue: int


class ReminderResponse(BaseModel):
    bill_id: UUID
    sent: bool


class PromptPayPayloadResponse(BaseModel):
    bill_id: UUID
    account_name: str
    amount: Decimal
    payload: str


class BillEligibilityResponse(BaseModel):
    tenant_id: UUID
    room_number: Optional[str] = None
    has_meter_reading: bool
    status: TenantStatus
    can_create_bill: bool
    reason: str
