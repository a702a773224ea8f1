"""Due/overdue sweep run by the scheduler through the cron routes"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import AppError
from app.core.logging import get_logger
from app.database import commit_or_raise
from app.models.billing import Bill, OPEN_BILL_STATUSES
from app.models.dormitory import Dormitory
from app.models.enums import BillStatus
from app.models.notification import ScanCheckpoint
from app.schemas.notification import ScanResult
from app.services.bill_service import BillService
from app.services.notification_service import NotificationSender

logger = get_logger(__name__)

SCAN_JOB_NAME = "bill-notification-scan"


class BillScanService:
    """
    Sends due reminders and escalates past-due bills, one dormitory at a time.

    Progress is checkpointed after every dormitory so an interrupted sweep resumes
    where it stopped. Each bill is handled in its own error boundary.
    """

    @staticmethod
    async def _start_checkpoint(db: AsyncSession, now: datetime) -> Optional[UUID]:
        """Open (or reopen) the checkpoint; returns the cursor to resume after, if any."""
        result = await db.execute(
            select(ScanCheckpoint)
            .where(ScanCheckpoint.job_name == SCAN_JOB_NAME)
            .execution_options(populate_existing=True)
        )
        checkpoint = result.scalar_one_or_none()

        if checkpoint is None:
            db.add(ScanCheckpoint(job_name=SCAN_JOB_NAME, started_at=now))
            await commit_or_raise(db, "Scan is already being started")
            return None

        # A sweep left over from an earlier day starts again from the first dormitory
        if (
            checkpoint.is_running
            and checkpoint.last_dormitory_id is not None
            and checkpoint.started_at.date() == now.date()
        ):
            return checkpoint.last_dormitory_id

        checkpoint.started_at = now
        checkpoint.completed_at = None
        checkpoint.last_dormitory_id = None
        await commit_or_raise(db)
        return None

    @staticmethod
    async def _advance_checkpoint(db: AsyncSession, **values) -> None:
        await db.execute(
            update(ScanCheckpoint)
            .where(ScanCheckpoint.job_name == SCAN_JOB_NAME)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(db)

    @staticmethod
    async def _bill_ids(db: AsyncSession, dormitory_id: UUID, *criteria) -> List[UUID]:
        result = await db.execute(
            select(Bill.id)
            .where(Bill.dormitory_id == dormitory_id, *criteria)
            .order_by(Bill.due_date)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _scan_dormitory(
        db: AsyncSession,
        dormitory_id: UUID,
        now: datetime,
        notifier: NotificationSender,
        scan: ScanResult,
    ) -> None:
        horizon = now + timedelta(days=settings.DUE_REMINDER_LOOKAHEAD_DAYS)

        due_soon = await BillScanService._bill_ids(
            db, dormitory_id,
            Bill.status.in_(OPEN_BILL_STATUSES),
            Bill.due_date > now,
            Bill.due_date <= horizon,
        )
        past_due = await BillScanService._bill_ids(
            db, dormitory_id,
            Bill.status.in_(OPEN_BILL_STATUSES),
            Bill.due_date < now,
        )
        # Overdue bills whose notice failed on an earlier run
        unannounced = await BillScanService._bill_ids(
            db, dormitory_id,
            Bill.status == BillStatus.OVERDUE,
            Bill.notified_overdue.is_(False),
        )

        for bill_id in due_soon:
            try:
                bill = await BillService.get_bill(db, dormitory_id, bill_id)
                if bill is None or BillStatus(bill.status) not in OPEN_BILL_STATUSES:
                    continue
                scan.due_soon_count += 1
                if await BillService.remind(db, bill, notifier):
                    scan.notifications_sent += 1
            except (AppError, SQLAlchemyError):
                await db.rollback()
                scan.failed_count += 1
                logger.exception("Due reminder failed", extra={"bill_id": str(bill_id)})

        for bill_id in past_due:
            try:
                bill = await BillService.get_bill(db, dormitory_id, bill_id)
                if bill is None or BillStatus(bill.status) not in OPEN_BILL_STATUSES:
                    continue
                sent = await BillService.mark_overdue(db, bill, now, notifier)
                scan.overdue_count += 1
                if sent:
                    scan.notifications_sent += 1
            except (AppError, SQLAlchemyError):
                await db.rollback()
                scan.failed_count += 1
                logger.exception("Overdue escalation failed", extra={"bill_id": str(bill_id)})

        for bill_id in unannounced:
            try:
                bill = await BillService.get_bill(db, dormitory_id, bill_id)
                if bill is None:
                    continue
                if await BillService.notify_overdue(db, bill, notifier):
                    scan.notifications_sent += 1
            except (AppError, SQLAlchemyError):
                await db.rollback()
                scan.failed_count += 1
                logger.exception("Overdue notice failed", extra={"bill_id": str(bill_id)})

    @staticmethod
    async def run_scan(db: AsyncSession, now: datetime, notifier: NotificationSender) -> ScanResult:
        cursor = await BillScanService._start_checkpoint(db, now)
        scan = ScanResult(resumed=cursor is not None)

        stmt = select(Dormitory.id).where(Dormitory.is_active.is_(True)).order_by(Dormitory.id)
        if cursor is not None:
            stmt = stmt.where(Dormitory.id > cursor)
        dormitory_ids = list((await db.execute(stmt)).scalars().all())

        logger.info(
            "Bill scan started",
            extra={"dormitories": len(dormitory_ids), "resumed": scan.resumed},
        )

        for dormitory_id in dormitory_ids:
            await BillScanService._scan_dormitory(db, dormitory_id, now, notifier, scan)
            await BillScanService._advance_checkpoint(db, last_dormitory_id=dormitory_id)
            scan.dormitories_processed += 1

        await BillScanService._advance_checkpoint(db, completed_at=now)

        logger.info("Bill scan finished", extra=scan.model_dump())
        return scan
