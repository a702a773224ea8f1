"""Bill eligibility: decides whether a tenant's room can be billed this cycle"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.dormitory import Tenant, MeterReading
from app.models.enums import TenantStatus
from app.utils.time import month_bounds

REASON_NO_ROOM = "no room record"
REASON_NO_METER_READING = "meter not yet read this cycle"
REASON_MOVING_OUT = "room flagged for move-out"
REASON_READY = "ready to bill"


@dataclass(frozen=True)
class TenantBillingSnapshot:
    """Derived view of a tenant used only for the eligibility check"""
    room_number: Optional[str]
    has_meter_reading: bool
    status: TenantStatus


@dataclass(frozen=True)
class BillEligibility:
    can_create_bill: bool
    reason: str


def evaluate_bill_eligibility(snapshot: TenantBillingSnapshot) -> BillEligibility:
    """Rules are checked in order; the first failing rule decides."""
    if not snapshot.room_number:
        return BillEligibility(False, REASON_NO_ROOM)
    if not snapshot.has_meter_reading:
        return BillEligibility(False, REASON_NO_METER_READING)
    if snapshot.status == TenantStatus.MOVING_OUT:
        return BillEligibility(False, REASON_MOVING_OUT)
    return BillEligibility(True, REASON_READY)


class BillEligibilityService:
    """Builds eligibility snapshots from the store"""

    @staticmethod
    async def has_meter_reading(
        db: AsyncSession,
        dormitory_id: UUID,
        room_id: UUID,
        month: int,
        year: int,
    ) -> bool:
        start, end = month_bounds(month, year)
        count = await db.scalar(
            select(func.count(MeterReading.id)).where(
                MeterReading.dormitory_id == dormitory_id,
                MeterReading.room_id == room_id,
                MeterReading.reading_date >= start,
                MeterReading.reading_date <= end,
            )
        )
        return bool(count)

    @staticmethod
    async def build_snapshot(
        db: AsyncSession,
        tenant: Tenant,
        month: int,
        year: int,
    ) -> TenantBillingSnapshot:
        has_reading = False
        if tenant.room_id is not None:
            has_reading = await BillEligibilityService.has_meter_reading(
                db, tenant.dormitory_id, tenant.room_id, month, year
            )
        return TenantBillingSnapshot(
            room_number=tenant.room_number,
            has_meter_reading=has_reading,
            status=TenantStatus(tenant.status),
        )

    @staticmethod
    async def evaluate_tenant(
        db: AsyncSession,
        dormitory_id: UUID,
        tenant_id: UUID,
        month: int,
        year: int,
    ) -> tuple[Tenant, TenantBillingSnapshot, BillEligibility]:
        result = await db.execute(
            select(Tenant).where(Tenant.id == tenant_id, Tenant.dormitory_id == dormitory_id)
        )
        tenant = result.scalar_one_or_none()
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        snapshot = await BillEligibilityService.build_snapshot(db, tenant, month, year)
        return tenant, snapshot, evaluate_bill_eligibility(snapshot)
