"""Scheduler-triggered Endpoints"""

from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.schemas.notification import ScanResult, OverdueCheckResult
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService
from app.services.notification_service import NotificationSender
from app.services.scan_service import BillScanService
from app.utils.time import get_utc_now

router = APIRouter(dependencies=[Depends(deps.verify_cron_secret)])


@router.get("/check-notifications", response_model=SuccessResponse[ScanResult])
async def check_notifications(
    db: AsyncSession = Depends(deps.get_db),
    notifier: NotificationSender = Depends(deps.get_notifier),
) -> Any:
    """
    Run the due/overdue sweep: reminders for bills due within the lookahead window,
    overdue escalation for bills past due.
    """
    result = await BillScanService.run_scan(db, get_utc_now(), notifier)
    return SuccessResponse(data=result, message="Bill scan completed")


@router.get("/check-overdue", response_model=SuccessResponse[List[OverdueCheckResult]])
async def check_overdue(db: AsyncSession = Depends(deps.get_db)) -> Any:
    """
    Mark every past-due open bill as overdue, without notifications.
    """
    counts = await BillService.check_all_overdue_bills(db, get_utc_now())
    return SuccessResponse(
        data=[OverdueCheckResult(dormitory_id=d_id, updated_count=count) for d_id, count in counts],
        message="Overdue check completed",
    )
