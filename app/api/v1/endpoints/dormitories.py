"""Dormitory, Room and Tenant Endpoints"""

from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.enums import RoomStatus, TenantStatus
from app.schemas.billing import BillResponse, BillEligibilityResponse
from app.schemas.dormitory import (
    DormitoryCreate,
    DormitoryResponse,
    RoomCreate,
    RoomResponse,
    TenantCreate,
    TenantUpdate,
    TenantResponse,
)
from app.schemas.responses import SuccessResponse
from app.services.bill_eligibility_service import BillEligibilityService
from app.services.bill_service import BillService
from app.services.dormitory_service import DormitoryService
from app.utils.time import get_utc_now

router = APIRouter()


@router.post("", response_model=SuccessResponse[DormitoryResponse], status_code=status.HTTP_201_CREATED)
async def create_dormitory(
    dormitory_in: DormitoryCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    dormitory = await DormitoryService.create_dormitory(db, dormitory_in)
    return SuccessResponse(data=dormitory, message="Dormitory created successfully")


@router.get("", response_model=SuccessResponse[List[DormitoryResponse]])
async def list_dormitories(db: AsyncSession = Depends(deps.get_db)) -> Any:
    dormitories = await DormitoryService.list_dormitories(db)
    return SuccessResponse(data=dormitories)


@router.get("/{dormitory_id}", response_model=SuccessResponse[DormitoryResponse])
async def get_dormitory(
    dormitory_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    dormitory = await DormitoryService.require_dormitory(db, dormitory_id)
    return SuccessResponse(data=dormitory)


# Rooms

@router.post(
    "/{dormitory_id}/rooms",
    response_model=SuccessResponse[RoomResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    dormitory_id: UUID,
    room_in: RoomCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    room = await DormitoryService.create_room(db, dormitory_id, room_in)
    return SuccessResponse(data=room, message="Room created successfully")


@router.get("/{dormitory_id}/rooms", response_model=SuccessResponse[List[RoomResponse]])
async def list_rooms(
    dormitory_id: UUID,
    room_status: Optional[RoomStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    rooms = await DormitoryService.list_rooms(db, dormitory_id, status=room_status)
    return SuccessResponse(data=rooms)


@router.get(
    "/{dormitory_id}/rooms/{room_id}/payment-history",
    response_model=SuccessResponse[List[BillResponse]],
)
async def get_room_payment_history(
    dormitory_id: UUID,
    room_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Last 12 bills for a room, newest period first, with their payments.
    """
    bills = await BillService.get_room_payment_history(db, dormitory_id, room_id)
    return SuccessResponse(data=bills)


# Tenants

@router.post(
    "/{dormitory_id}/tenants",
    response_model=SuccessResponse[TenantResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_tenant(
    dormitory_id: UUID,
    tenant_in: TenantCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    tenant = await DormitoryService.create_tenant(db, dormitory_id, tenant_in)
    return SuccessResponse(data=tenant, message="Tenant created successfully")


@router.get("/{dormitory_id}/tenants", response_model=SuccessResponse[List[TenantResponse]])
async def list_tenants(
    dormitory_id: UUID,
    tenant_status: Optional[TenantStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    tenants = await DormitoryService.list_tenants(db, dormitory_id, status=tenant_status)
    return SuccessResponse(data=tenants)


@router.patch("/{dormitory_id}/tenants/{tenant_id}", response_model=SuccessResponse[TenantResponse])
async def update_tenant(
    dormitory_id: UUID,
    tenant_id: UUID,
    tenant_in: TenantUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Update tenant details. Setting status to moving_out blocks the next bill.
    """
    tenant = await DormitoryService.update_tenant(db, dormitory_id, tenant_id, tenant_in)
    return SuccessResponse(data=tenant, message="Tenant updated successfully")


@router.get(
    "/{dormitory_id}/tenants/{tenant_id}/bill-eligibility",
    response_model=SuccessResponse[BillEligibilityResponse],
)
async def get_bill_eligibility(
    dormitory_id: UUID,
    tenant_id: UUID,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Check whether a tenant can be billed for a cycle (defaults to the current month).
    """
    today = get_utc_now()
    tenant, snapshot, eligibility = await BillEligibilityService.evaluate_tenant(
        db, dormitory_id, tenant_id, month or today.month, year or today.year
    )
    return SuccessResponse(
        data=BillEligibilityResponse(
            tenant_id=tenant.id,
            room_number=snapshot.room_number,
            has_meter_reading=snapshot.has_meter_reading,
            status=snapshot.status,
            can_create_bill=eligibility.can_create_bill,
            reason=eligibility.reason,
        )
    )
