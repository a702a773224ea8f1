"""Bill Service - bill lifecycle, payments, batch generation and reporting"""

import math
from decimal import Decimal
from typing import Optional, List, Tuple
from uuid import UUID
from datetime import datetime

from sqlalchemy import select, update, func, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.exceptions import InvalidStateError, NotFoundError, ValidationError, ConflictError
from app.core.logging import get_logger
from app.database import commit_or_raise
from app.models.billing import Bill, BillItem, Payment, PromptPayConfig, OPEN_BILL_STATUSES
from app.models.dormitory import Dormitory, MeterReading
from app.models.enums import (
    BillStatus, BillItemCategory, MeterType, NotificationEvent, RoomStatus,
)
from app.schemas.billing import (
    BillCreate, BillItemCreate, BatchBillCreate, PaymentCreate, UtilityReading,
    BillingSummary, SkippedRoom,
)
from app.services import notification_messages as messages
from app.services.bill_eligibility_service import BillEligibilityService, evaluate_bill_eligibility
from app.services.dormitory_service import DormitoryService
from app.services.notification_service import NotificationSender
from app.services.settings_service import SettingsService
from app.utils.promptpay import build_payload
from app.utils.time import get_utc_now, month_bounds

logger = get_logger(__name__)

CONCURRENT_UPDATE_MESSAGE = "Bill was modified by another request; reload and retry"
PAYMENT_HISTORY_LIMIT = 12
SKIP_NO_TENANT = "no active tenant"
SKIP_BILL_EXISTS = "bill already exists for this period"

_CENT = Decimal("0.01")


class BillService:
    """
    Bill lifecycle manager.

    Every state change is committed before any notification goes out; delivery
    failures are logged by the sender and never undo the write.
    """

    # Lookups

    @staticmethod
    async def get_bill(db: AsyncSession, dormitory_id: UUID, bill_id: UUID) -> Optional[Bill]:
        result = await db.execute(
            select(Bill)
            .where(Bill.id == bill_id, Bill.dormitory_id == dormitory_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def require_bill(db: AsyncSession, dormitory_id: UUID, bill_id: UUID) -> Bill:
        bill = await BillService.get_bill(db, dormitory_id, bill_id)
        if not bill:
            raise NotFoundError(f"Bill {bill_id} not found")
        return bill

    @staticmethod
    async def list_bills(
        db: AsyncSession,
        dormitory_id: UUID,
        status: Optional[BillStatus] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Bill], int]:
        """Get paginated bills for a dormitory, newest first."""
        query = select(Bill).where(Bill.dormitory_id == dormitory_id)

        if status:
            query = query.where(Bill.status == status)
        if month:
            query = query.where(Bill.month == month)
        if year:
            query = query.where(Bill.year == year)

        count_stmt = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_stmt)).scalar_one()

        result = await db.execute(
            query.order_by(Bill.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def find_active_bill(
        db: AsyncSession,
        dormitory_id: UUID,
        room_id: UUID,
        month: int,
        year: int,
    ) -> Optional[Bill]:
        result = await db.execute(
            select(Bill).where(
                Bill.dormitory_id == dormitory_id,
                Bill.room_id == room_id,
                Bill.month == month,
                Bill.year == year,
                Bill.status != BillStatus.CANCELLED,
            )
        )
        return result.scalars().first()

    # Notification flags

    @staticmethod
    async def _claim_flag(db: AsyncSession, bill: Bill, flag: str) -> bool:
        """Set a notification flag only if it is still false; True when this caller won."""
        column = getattr(Bill, flag)
        result = await db.execute(
            update(Bill)
            .where(Bill.id == bill.id, column.is_(False))
            .values({flag: True})
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(db)
        claimed = result.rowcount == 1
        if claimed:
            set_committed_value(bill, flag, True)
        return claimed

    @staticmethod
    async def _release_flag(db: AsyncSession, bill: Bill, flag: str) -> None:
        await db.execute(
            update(Bill)
            .where(Bill.id == bill.id)
            .values({flag: False})
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(db)
        set_committed_value(bill, flag, False)

    @staticmethod
    async def _notify(
        db: AsyncSession,
        bill: Bill,
        event: NotificationEvent,
        message: str,
        notifier: NotificationSender,
        flag: Optional[str] = None,
    ) -> bool:
        """
        Send one event for a bill if the dormitory has it enabled.

        With a flag, the flag is claimed first so the event goes out at most once;
        a delivery that fails or raises releases the claim for a later retry.
        """
        config = await SettingsService.get_notification_config(db, bill.dormitory_id)
        if config is None or not config.is_enabled(event):
            return False

        if flag is not None and not await BillService._claim_flag(db, bill, flag):
            logger.debug("Notification already sent", extra={"bill_id": str(bill.id), "event": event.value})
            return False

        sent = False
        try:
            sent = await notifier.send(config, message)
        finally:
            if not sent and flag is not None:
                await BillService._release_flag(db, bill, flag)
        return sent

    # Lifecycle

    @staticmethod
    async def create_bill(
        db: AsyncSession,
        dormitory_id: UUID,
        data: BillCreate,
        notifier: NotificationSender,
        check_eligibility: bool = False,
    ) -> Bill:
        """
        Create a pending bill whose total is the sum of its items.

        Raises:
            NotFoundError: room or tenant does not belong to the dormitory
            ValidationError: tenant not in the room, a zero total, or ineligible when
                check_eligibility is set
            ConflictError: a non-cancelled bill already exists for the room and period
        """
        room = await DormitoryService.require_room(db, dormitory_id, data.room_id)
        tenant = await DormitoryService.require_tenant(db, dormitory_id, data.tenant_id)
        if tenant.room_id != room.id:
            raise ValidationError(f"Tenant {tenant.full_name} is not assigned to room {room.number}")

        if await BillService.find_active_bill(db, dormitory_id, room.id, data.month, data.year):
            raise ConflictError(f"Room {room.number} already has a bill for {data.month}/{data.year}")

        if check_eligibility:
            snapshot = await BillEligibilityService.build_snapshot(db, tenant, data.month, data.year)
            eligibility = evaluate_bill_eligibility(snapshot)
            if not eligibility.can_create_bill:
                raise ValidationError(eligibility.reason, code="BILL_NOT_ELIGIBLE")

        items = []
        for position, item in enumerate(data.items):
            reading = item.reading
            items.append(BillItem(
                position=position,
                name=item.name,
                category=item.category,
                description=item.description,
                amount=item.amount,
                units=item.units,
                unit_price=item.unit_price,
                previous_reading=reading.previous_reading if reading else None,
                current_reading=reading.current_reading if reading else None,
                units_used=reading.units_used if reading else None,
            ))
        total = sum((item.amount for item in data.items), Decimal("0"))
        if total <= 0:
            raise ValidationError("Bill total must be greater than 0", code="INVALID_AMOUNT")

        bill = Bill(
            dormitory_id=dormitory_id,
            room_id=room.id,
            tenant_id=tenant.id,
            room_number=room.number,
            tenant_name=tenant.full_name,
            month=data.month,
            year=data.year,
            total_amount=total,
            paid_amount=Decimal("0"),
            late_fee=Decimal("0"),
            status=BillStatus.PENDING,
            due_date=data.due_date,
            notes=data.notes,
            notified_created=False,
            notified_reminder=False,
            notified_overdue=False,
            items=items,
        )
        db.add(bill)
        await commit_or_raise(
            db, f"Room {room.number} already has a bill for {data.month}/{data.year}"
        )
        bill = await BillService.require_bill(db, dormitory_id, bill.id)

        logger.info(
            "Bill created",
            extra={"bill_id": str(bill.id), "room": bill.room_number, "total": str(bill.total_amount)},
        )

        await BillService._notify(
            db, bill, NotificationEvent.BILL_CREATED, messages.bill_created(bill), notifier,
            flag="notified_created",
        )
        return bill

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        dormitory_id: UUID,
        bill_id: UUID,
        data: PaymentCreate,
        notifier: NotificationSender,
    ) -> Bill:
        """
        Apply a payment to a bill.

        A payment that clears the balance marks the bill paid; a partial payment moves a
        pending bill to partially_paid and leaves an overdue bill overdue.
        """
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        status = BillStatus(bill.status)
        if not bill.can_transition_to(BillStatus.PAID):
            raise InvalidStateError(f"Cannot record a payment on a {status.value} bill")

        amount = Decimal(data.amount)
        remaining = bill.remaining_amount
        if amount <= 0 or amount > remaining or amount != amount.quantize(_CENT):
            raise ValidationError(
                f"Payment amount must be in whole cents, greater than 0 and at most {remaining}",
                code="INVALID_AMOUNT",
            )

        paid_at = data.paid_at or get_utc_now()
        bill.payments.append(Payment(
            amount=amount,
            method=data.method,
            paid_at=paid_at,
            reference=data.reference,
            evidence_url=data.evidence_url,
            notes=data.notes,
            recorded_by=data.recorded_by,
        ))
        bill.paid_amount = bill.paid_amount + amount

        if bill.remaining_amount == 0:
            bill.status = BillStatus.PAID
            bill.paid_at = paid_at
        elif bill.can_transition_to(BillStatus.PARTIALLY_PAID):
            bill.status = BillStatus.PARTIALLY_PAID

        await commit_or_raise(db, CONCURRENT_UPDATE_MESSAGE)
        bill = await BillService.require_bill(db, dormitory_id, bill_id)

        logger.info(
            "Payment recorded",
            extra={
                "bill_id": str(bill.id),
                "amount": str(amount),
                "remaining": str(bill.remaining_amount),
                "status": BillStatus(bill.status).value,
            },
        )

        await BillService._notify(
            db, bill, NotificationEvent.PAYMENT_RECEIVED,
            messages.payment_received(bill, amount), notifier,
        )
        return bill

    @staticmethod
    async def mark_overdue(db: AsyncSession, bill: Bill, now: datetime, notifier: NotificationSender) -> bool:
        """Escalate a loaded bill to overdue; returns whether the overdue notice was sent."""
        status = BillStatus(bill.status)
        if not bill.can_transition_to(BillStatus.OVERDUE):
            raise InvalidStateError(f"Cannot mark a {status.value} bill as overdue")
        if now <= bill.due_date:
            raise InvalidStateError("Bill is not past its due date yet")

        bill.status = BillStatus.OVERDUE
        await commit_or_raise(db, CONCURRENT_UPDATE_MESSAGE)
        logger.info("Bill overdue", extra={"bill_id": str(bill.id), "room": bill.room_number})

        return await BillService.notify_overdue(db, bill, notifier)

    @staticmethod
    async def notify_overdue(db: AsyncSession, bill: Bill, notifier: NotificationSender) -> bool:
        return await BillService._notify(
            db, bill, NotificationEvent.BILL_OVERDUE, messages.bill_overdue(bill), notifier,
            flag="notified_overdue",
        )

    @staticmethod
    async def transition_to_overdue(
        db: AsyncSession,
        dormitory_id: UUID,
        bill_id: UUID,
        now: datetime,
        notifier: NotificationSender,
    ) -> Bill:
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        await BillService.mark_overdue(db, bill, now, notifier)
        return await BillService.require_bill(db, dormitory_id, bill_id)

    @staticmethod
    async def remind(db: AsyncSession, bill: Bill, notifier: NotificationSender) -> bool:
        """Send the due reminder for a loaded bill at most once."""
        status = BillStatus(bill.status)
        if status not in OPEN_BILL_STATUSES:
            raise InvalidStateError(f"Cannot send a due reminder for a {status.value} bill")

        return await BillService._notify(
            db, bill, NotificationEvent.BILL_DUE_REMINDER, messages.bill_due_reminder(bill), notifier,
            flag="notified_reminder",
        )

    @staticmethod
    async def send_due_reminder(
        db: AsyncSession,
        dormitory_id: UUID,
        bill_id: UUID,
        notifier: NotificationSender,
    ) -> bool:
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        return await BillService.remind(db, bill, notifier)

    @staticmethod
    async def cancel_bill(db: AsyncSession, dormitory_id: UUID, bill_id: UUID) -> Bill:
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        status = BillStatus(bill.status)
        if not bill.can_transition_to(BillStatus.CANCELLED):
            raise InvalidStateError(f"Cannot cancel a {status.value} bill")

        bill.status = BillStatus.CANCELLED
        await commit_or_raise(db, CONCURRENT_UPDATE_MESSAGE)
        logger.info("Bill cancelled", extra={"bill_id": str(bill.id)})
        return await BillService.require_bill(db, dormitory_id, bill_id)

    # Batch generation

    @staticmethod
    async def _cycle_reading(
        db: AsyncSession,
        room_id: UUID,
        meter_type: MeterType,
        month: int,
        year: int,
    ) -> Optional[MeterReading]:
        start, end = month_bounds(month, year)
        result = await db.execute(
            select(MeterReading)
            .where(
                MeterReading.room_id == room_id,
                MeterReading.meter_type == meter_type,
                MeterReading.reading_date >= start,
                MeterReading.reading_date <= end,
            )
            .order_by(desc(MeterReading.reading_date))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _utility_item(reading: MeterReading, rate: Decimal) -> BillItemCreate:
        water = reading.meter_type == MeterType.WATER
        return BillItemCreate(
            name="Water" if water else "Electricity",
            category=BillItemCategory.WATER if water else BillItemCategory.ELECTRIC,
            amount=(reading.units_used * rate).quantize(_CENT),
            units=reading.units_used,
            unit_price=rate,
            reading=UtilityReading(
                previous_reading=reading.previous_reading,
                current_reading=reading.current_reading,
                units_used=reading.units_used,
            ),
        )

    @staticmethod
    async def create_monthly_bills(
        db: AsyncSession,
        dormitory_id: UUID,
        data: BatchBillCreate,
        notifier: NotificationSender,
    ) -> Tuple[List[Bill], List[SkippedRoom]]:
        """
        Bill every occupied room (or the given rooms) for one month.

        Rent comes from the room, falling back to the dormitory default; water and
        electricity are priced from that month's readings. Ineligible rooms are skipped
        with the reason instead of failing the batch.
        """
        await DormitoryService.require_dormitory(db, dormitory_id)
        if data.room_ids:
            room_ids = [
                (await DormitoryService.require_room(db, dormitory_id, room_id)).id
                for room_id in data.room_ids
            ]
        else:
            room_ids = [
                room.id
                for room in await DormitoryService.list_rooms(db, dormitory_id, status=RoomStatus.OCCUPIED)
            ]

        created: List[Bill] = []
        skipped: List[SkippedRoom] = []

        # Rows are reloaded per room: a failed commit expires everything in the session
        for room_id in room_ids:
            dormitory = await DormitoryService.require_dormitory(db, dormitory_id)
            room = await DormitoryService.require_room(db, dormitory_id, room_id)

            tenant = await DormitoryService.get_active_tenant_for_room(db, room.id)
            if tenant is None:
                skipped.append(SkippedRoom(room_id=room.id, room_number=room.number, reason=SKIP_NO_TENANT))
                continue
            if await BillService.find_active_bill(db, dormitory_id, room.id, data.month, data.year):
                skipped.append(SkippedRoom(room_id=room.id, room_number=room.number, reason=SKIP_BILL_EXISTS))
                continue

            snapshot = await BillEligibilityService.build_snapshot(db, tenant, data.month, data.year)
            eligibility = evaluate_bill_eligibility(snapshot)
            if not eligibility.can_create_bill:
                skipped.append(SkippedRoom(room_id=room.id, room_number=room.number, reason=eligibility.reason))
                continue

            rent = room.monthly_rent if room.monthly_rent is not None else dormitory.default_rent
            items = [BillItemCreate(name="Room rent", category=BillItemCategory.RENT, amount=rent)]
            readings = []
            for meter_type, rate in (
                (MeterType.WATER, dormitory.water_rate),
                (MeterType.ELECTRIC, dormitory.electric_rate),
            ):
                reading = await BillService._cycle_reading(db, room.id, meter_type, data.month, data.year)
                if reading is not None:
                    readings.append(reading)
                    items.append(BillService._utility_item(reading, rate))

            draft = BillCreate(
                room_id=room.id,
                tenant_id=tenant.id,
                month=data.month,
                year=data.year,
                due_date=data.due_date,
                items=items,
            )
            room_number = room.number
            try:
                bill = await BillService.create_bill(db, dormitory_id, draft, notifier)
            except ConflictError:
                skipped.append(SkippedRoom(room_id=room_id, room_number=room_number, reason=SKIP_BILL_EXISTS))
                continue
            except ValidationError as e:
                skipped.append(SkippedRoom(room_id=room_id, room_number=room_number, reason=e.message))
                continue

            for reading in readings:
                reading.bill_id = bill.id
            await commit_or_raise(db)
            created.append(bill)

        logger.info(
            "Monthly bills generated",
            extra={
                "dormitory_id": str(dormitory_id),
                "period": f"{data.month}/{data.year}",
                "created_count": len(created),
                "skipped_count": len(skipped),
            },
        )
        return created, skipped

    # Reporting

    @staticmethod
    async def get_billing_summary(db: AsyncSession, dormitory_id: UUID) -> BillingSummary:
        """Counts and amounts per status; cancelled bills are left out."""
        result = await db.execute(
            select(
                Bill.status,
                func.count(Bill.id),
                func.sum(Bill.total_amount),
                func.sum(Bill.paid_amount),
            )
            .where(Bill.dormitory_id == dormitory_id, Bill.status != BillStatus.CANCELLED)
            .group_by(Bill.status)
        )

        summary = BillingSummary()
        for status, count, total, paid in result.all():
            total = Decimal(str(total or 0)).quantize(_CENT)
            remaining = total - Decimal(str(paid or 0)).quantize(_CENT)
            summary.total_bills += count
            summary.total_amount += total
            status = BillStatus(status)
            if status == BillStatus.PAID:
                summary.paid_bills += count
                summary.paid_amount += total
            elif status == BillStatus.OVERDUE:
                summary.overdue_bills += count
                summary.overdue_amount += remaining
            else:
                summary.pending_bills += count
                summary.pending_amount += remaining
        return summary

    @staticmethod
    async def calculate_late_fee(
        db: AsyncSession,
        dormitory_id: UUID,
        bill_id: UUID,
        now: datetime,
    ) -> Tuple[Bill, Decimal, int]:
        """Late fee is charged per started day past due, only for overdue bills."""
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        if BillStatus(bill.status) != BillStatus.OVERDUE or now <= bill.due_date:
            return bill, Decimal("0"), 0

        dormitory = await DormitoryService.require_dormitory(db, dormitory_id)
        days = math.ceil((now - bill.due_date).total_seconds() / 86400)
        fee = (Decimal(days) * dormitory.late_fee_per_day).quantize(_CENT)

        bill.late_fee = fee
        await commit_or_raise(db, CONCURRENT_UPDATE_MESSAGE)
        return bill, fee, days

    @staticmethod
    async def get_room_payment_history(db: AsyncSession, dormitory_id: UUID, room_id: UUID) -> List[Bill]:
        await DormitoryService.require_room(db, dormitory_id, room_id)
        result = await db.execute(
            select(Bill)
            .where(Bill.dormitory_id == dormitory_id, Bill.room_id == room_id)
            .order_by(Bill.year.desc(), Bill.month.desc())
            .limit(PAYMENT_HISTORY_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def check_overdue_bills(db: AsyncSession, dormitory_id: UUID, now: datetime) -> int:
        """Escalate every past-due open bill of a dormitory without notifying."""
        result = await db.execute(
            update(Bill)
            .where(
                Bill.dormitory_id == dormitory_id,
                Bill.status.in_(OPEN_BILL_STATUSES),
                Bill.due_date < now,
            )
            .values(status=BillStatus.OVERDUE, version=Bill.version + 1)
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(db)
        return result.rowcount

    @staticmethod
    async def check_all_overdue_bills(db: AsyncSession, now: datetime) -> List[Tuple[UUID, int]]:
        result = await db.execute(
            select(Dormitory.id).where(Dormitory.is_active.is_(True)).order_by(Dormitory.id)
        )
        counts = []
        for dormitory_id in result.scalars().all():
            counts.append((dormitory_id, await BillService.check_overdue_bills(db, dormitory_id, now)))
        return counts

    # Payment QR

    @staticmethod
    async def build_promptpay_payload(
        db: AsyncSession,
        dormitory_id: UUID,
        bill_id: UUID,
    ) -> Tuple[Bill, PromptPayConfig, str]:
        bill = await BillService.require_bill(db, dormitory_id, bill_id)
        status = BillStatus(bill.status)
        if not bill.can_transition_to(BillStatus.PAID):
            raise InvalidStateError(f"No payment is due on a {status.value} bill")

        config = await SettingsService.get_promptpay_config(db, dormitory_id)
        if config is None or not config.is_active:
            raise NotFoundError("PromptPay is not configured for this dormitory")

        try:
            payload = build_payload(config.account_number, bill.remaining_amount)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return bill, config, payload
