"""Bill Endpoints"""

import math
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.enums import BillStatus
from app.schemas.billing import (
    BillCreate,
    BatchBillCreate,
    PaymentCreate,
    BillResponse,
    BatchBillResult,
    BillingSummary,
    LateFeeResponse,
    ReminderResponse,
    PromptPayPayloadResponse,
)
from app.schemas.responses import SuccessResponse, PaginatedResponse
from app.services.bill_service import BillService
from app.services.dormitory_service import DormitoryService
from app.services.notification_service import NotificationSender
from app.utils.time import get_utc_now

router = APIRouter()


@router.post("", response_model=SuccessResponse[BillResponse], status_code=status.HTTP_201_CREATED)
async def create_bill(
    dormitory_id: UUID,
    bill_in: BillCreate,
    check_eligibility: bool = Query(False, description="Reject the bill if the tenant is not ready to bill"),
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    """
    Create a bill. The total is the sum of the item amounts; the "new bill"
    notification is sent when the dormitory has it enabled.
    """
    bill = await BillService.create_bill(db, dormitory_id, bill_in, notifier, check_eligibility)
    return SuccessResponse(data=bill, message="Bill created successfully")


@router.get("", response_model=PaginatedResponse[BillResponse])
async def list_bills(
    dormitory_id: UUID,
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    skip = (page - 1) * page_size
    bills, total = await BillService.list_bills(
        db, dormitory_id, status=bill_status, month=month, year=year, skip=skip, limit=page_size
    )
    return PaginatedResponse(
        data=bills,
        meta={
            "page": page,
            "page_size": page_size,
            "total": total,
            "total_pages": math.ceil(total / page_size),
        },
    )


@router.get("/summary", response_model=SuccessResponse[BillingSummary])
async def get_billing_summary(
    dormitory_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    summary = await BillService.get_billing_summary(db, dormitory_id)
    return SuccessResponse(data=summary)


@router.post("/batch", response_model=SuccessResponse[BatchBillResult], status_code=status.HTTP_201_CREATED)
async def create_monthly_bills(
    dormitory_id: UUID,
    batch_in: BatchBillCreate,
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    """
    Generate the month's bills for occupied rooms. Rooms that cannot be billed are
    reported in `skipped` with the reason.
    """
    created, skipped = await BillService.create_monthly_bills(db, dormitory_id, batch_in, notifier)
    return SuccessResponse(
        data={"created": created, "skipped": skipped},
        message=f"{len(created)} bills created, {len(skipped)} skipped",
    )


@router.get("/{bill_id}", response_model=SuccessResponse[BillResponse])
async def get_bill(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.require_bill(db, dormitory_id, bill_id)
    return SuccessResponse(data=bill)


@router.post("/{bill_id}/payments", response_model=SuccessResponse[BillResponse])
async def record_payment(
    dormitory_id: UUID,
    bill_id: UUID,
    payment_in: PaymentCreate,
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    bill = await BillService.record_payment(db, dormitory_id, bill_id, payment_in, notifier)
    return SuccessResponse(data=bill, message="Payment recorded")


@router.post("/{bill_id}/cancel", response_model=SuccessResponse[BillResponse])
async def cancel_bill(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.cancel_bill(db, dormitory_id, bill_id)
    return SuccessResponse(data=bill, message="Bill cancelled")


@router.post("/{bill_id}/overdue", response_model=SuccessResponse[BillResponse])
async def mark_bill_overdue(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    bill = await BillService.transition_to_overdue(db, dormitory_id, bill_id, get_utc_now(), notifier)
    return SuccessResponse(data=bill, message="Bill marked overdue")


@router.post("/{bill_id}/reminder", response_model=SuccessResponse[ReminderResponse])
async def send_due_reminder(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    """
    Send the due reminder now. A reminder already sent for this bill is not repeated.
    """
    sent = await BillService.send_due_reminder(db, dormitory_id, bill_id, notifier)
    return SuccessResponse(
        data=ReminderResponse(bill_id=bill_id, sent=sent),
        message="Reminder sent" if sent else "Reminder not sent",
    )


@router.post("/{bill_id}/late-fee", response_model=SuccessResponse[LateFeeResponse])
async def calculate_late_fee(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill, fee, days = await BillService.calculate_late_fee(db, dormitory_id, bill_id, get_utc_now())
    return SuccessResponse(data=LateFeeResponse(bill_id=bill.id, late_fee=fee, days_overdue=days))


@router.get("/{bill_id}/promptpay", response_model=SuccessResponse[PromptPayPayloadResponse])
async def get_promptpay_payload(
    dormitory_id: UUID,
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    PromptPay QR payload for the bill's remaining balance.
    """
    bill, config, payload = await BillService.build_promptpay_payload(db, dormitory_id, bill_id)
    return SuccessResponse(
        data=PromptPayPayloadResponse(
            bill_id=bill.id,
            account_name=config.account_name,
            amount=bill.remaining_amount,
            payload=payload,
        )
    )
