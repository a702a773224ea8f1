"""Integration tests: BillService against an in-memory database."""

import uuid
from datetime import timedelta
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import update

from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.database import commit_or_raise
from app.models.billing import Bill, BILL_TRANSITIONS
from app.models.enums import BillStatus, BillItemCategory, MeterType, PaymentMethod, TenantStatus
from app.schemas.billing import BillCreate, BillItemCreate, BatchBillCreate, PaymentCreate
from app.schemas.dormitory import RoomCreate, TenantCreate
from app.schemas.notification import PromptPayConfigUpdate
from app.services.bill_service import BillService
from app.services.dormitory_service import DormitoryService
from app.services.notification_service import NotificationSender
from app.services.settings_service import SettingsService


def _payment(amount, method=PaymentMethod.CASH) -> PaymentCreate:
    return PaymentCreate(amount=Decimal(str(amount)), method=method, recorded_by="owner")


# ---------------------------------------------------------------------------
# createBill
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_bill_totals_items(make_bill):
    bill = await make_bill(1000, "2500.50")

    assert bill.total_amount == Decimal("3500.50")
    assert bill.paid_amount == 0
    assert bill.remaining_amount == Decimal("3500.50")
    assert bill.status == BillStatus.PENDING
    assert [item.name for item in bill.items] == ["Item 0", "Item 1"]
    assert not (bill.notified_created or bill.notified_reminder or bill.notified_overdue)
    assert bill.room_number == "101"
    assert bill.tenant_name == "Somchai Jaidee"


@pytest.mark.asyncio
async def test_create_bill_without_channel_sends_nothing(make_bill, notifier):
    bill = await make_bill(3000)
    assert notifier.messages == []
    assert bill.notified_created is False


@pytest.mark.asyncio
async def test_create_bill_notifies_once(make_bill, notifier, notification_config):
    bill = await make_bill(3000)

    assert len(notifier.messages) == 1
    assert "New bill issued" in notifier.messages[0]
    assert "฿3,000.00" in notifier.messages[0]
    assert bill.notified_created is True


@pytest.mark.asyncio
async def test_failed_creation_notice_keeps_bill_and_releases_flag(
    db_session, dormitory, room, tenant, notification_config, failing_notifier, now
):
    draft = BillCreate(
        room_id=room.id,
        tenant_id=tenant.id,
        month=10,
        year=2026,
        due_date=now + timedelta(days=5),
        items=[BillItemCreate(name="Room rent", category=BillItemCategory.RENT, amount=Decimal("3500"))],
    )
    bill = await BillService.create_bill(db_session, dormitory.id, draft, failing_notifier)

    assert len(failing_notifier.messages) == 1
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.status == BillStatus.PENDING
    assert stored.notified_created is False


@pytest.mark.asyncio
async def test_duplicate_bill_for_period_conflicts(make_bill):
    await make_bill(3000)
    with pytest.raises(ConflictError):
        await make_bill(3000)


@pytest.mark.asyncio
async def test_zero_total_bill_is_rejected(db_session, dormitory, room, make_bill):
    with pytest.raises(ValidationError) as exc_info:
        await make_bill(0, "0.00")
    assert exc_info.value.code == "INVALID_AMOUNT"
    assert await BillService.find_active_bill(db_session, dormitory.id, room.id, 10, 2026) is None


@pytest.mark.asyncio
async def test_total_equals_sum_of_stored_items(db_session, dormitory, make_bill):
    bill = await make_bill("0.01", "0.01", "1999.98")
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)

    assert stored.total_amount == sum(item.amount for item in stored.items)
    assert stored.total_amount == Decimal("2000")


@pytest.mark.asyncio
async def test_cancelled_bill_can_be_reissued(db_session, dormitory, make_bill):
    first = await make_bill(3000)
    await BillService.cancel_bill(db_session, dormitory.id, first.id)

    second = await make_bill(3200)
    assert second.id != first.id
    assert second.total_amount == Decimal("3200")


@pytest.mark.asyncio
async def test_create_bill_rejects_tenant_from_another_room(db_session, dormitory, tenant, notifier, now):
    other_room = await DormitoryService.create_room(db_session, dormitory.id, RoomCreate(number="102"))
    draft = BillCreate(
        room_id=other_room.id,
        tenant_id=tenant.id,
        month=10,
        year=2026,
        due_date=now,
        items=[BillItemCreate(name="Rent", amount=Decimal("3000"))],
    )
    with pytest.raises(ValidationError):
        await BillService.create_bill(db_session, dormitory.id, draft, notifier)


@pytest.mark.asyncio
async def test_create_bill_checks_eligibility_when_asked(
    db_session, dormitory, room, tenant, notifier, record_reading, now
):
    draft = BillCreate(
        room_id=room.id,
        tenant_id=tenant.id,
        month=10,
        year=2026,
        due_date=now + timedelta(days=5),
        items=[BillItemCreate(name="Rent", amount=Decimal("3500"))],
    )
    with pytest.raises(ValidationError) as exc_info:
        await BillService.create_bill(db_session, dormitory.id, draft, notifier, check_eligibility=True)
    assert exc_info.value.code == "BILL_NOT_ELIGIBLE"
    assert exc_info.value.message == "meter not yet read this cycle"

    await record_reading(MeterType.WATER, 130, previous=100)
    bill = await BillService.create_bill(db_session, dormitory.id, draft, notifier, check_eligibility=True)
    assert bill.status == BillStatus.PENDING


@pytest.mark.asyncio
async def test_unknown_bill_is_not_found(db_session, dormitory):
    with pytest.raises(NotFoundError):
        await BillService.require_bill(db_session, dormitory.id, uuid.uuid4())


# ---------------------------------------------------------------------------
# recordPayment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_full_payment_marks_paid(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    bill = await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(3000), notifier)

    assert bill.status == BillStatus.PAID
    assert bill.remaining_amount == 0
    assert bill.paid_at is not None
    assert len(bill.payments) == 1
    assert bill.payments[0].recorded_by == "owner"


@pytest.mark.asyncio
async def test_partial_payment(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    bill = await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1200), notifier)

    assert bill.status == BillStatus.PARTIALLY_PAID
    assert bill.remaining_amount == Decimal("1800")
    assert bill.paid_at is None


@pytest.mark.asyncio
async def test_two_payments_settle_bill(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1000), notifier)
    bill = await BillService.record_payment(
        db_session, dormitory.id, bill.id, _payment(2000, PaymentMethod.PROMPTPAY), notifier
    )

    assert bill.paid_amount == Decimal("3000")
    assert bill.remaining_amount == 0
    assert bill.status == BillStatus.PAID
    assert [p.amount for p in bill.payments] == [Decimal("1000"), Decimal("2000")]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-50", "3000.01"])
async def test_invalid_payment_amounts(db_session, dormitory, make_bill, notifier, amount):
    bill = await make_bill(3000)
    with pytest.raises(ValidationError) as exc_info:
        await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(amount), notifier)
    assert exc_info.value.code == "INVALID_AMOUNT"

    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.paid_amount == 0
    assert stored.payments == []


@pytest.mark.asyncio
async def test_sub_cent_payment_is_rejected(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(100)
    # Bypasses schema validation, as a direct service caller could
    data = PaymentCreate.model_construct(amount=Decimal("99.999"), method=PaymentMethod.CASH)

    with pytest.raises(ValidationError) as exc_info:
        await BillService.record_payment(db_session, dormitory.id, bill.id, data, notifier)
    assert exc_info.value.code == "INVALID_AMOUNT"

    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.status == BillStatus.PENDING
    assert stored.remaining_amount == Decimal("100")

    bill = await BillService.record_payment(db_session, dormitory.id, bill.id, _payment("100.00"), notifier)
    assert bill.status == BillStatus.PAID


@pytest.mark.asyncio
async def test_payment_on_paid_bill_is_rejected_and_bill_unchanged(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(3000), notifier)

    with pytest.raises(InvalidStateError):
        await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1), notifier)

    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.status == BillStatus.PAID
    assert stored.paid_amount == Decimal("3000")
    assert len(stored.payments) == 1


@pytest.mark.asyncio
async def test_payment_on_cancelled_bill_is_rejected(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    await BillService.cancel_bill(db_session, dormitory.id, bill.id)

    with pytest.raises(InvalidStateError):
        await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(100), notifier)


@pytest.mark.asyncio
async def test_payment_notification(db_session, dormitory, make_bill, notifier, notification_config):
    bill = await make_bill(3000)
    notifier.messages.clear()

    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1000), notifier)

    assert len(notifier.messages) == 1
    assert "Amount: ฿1,000.00" in notifier.messages[0]
    assert "Remaining: ฿2,000.00" in notifier.messages[0]


@pytest.mark.asyncio
async def test_payments_on_overdue_bill(db_session, dormitory, make_bill, notifier, now):
    bill = await make_bill(3000, due_date=now - timedelta(days=2))
    await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)

    bill = await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1000), notifier)
    assert bill.status == BillStatus.OVERDUE
    assert bill.remaining_amount == Decimal("2000")

    bill = await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(2000), notifier)
    assert bill.status == BillStatus.PAID


@pytest.mark.asyncio
async def test_stale_write_is_a_conflict(db_session, dormitory, make_bill):
    bill = await make_bill(3000)

    # Another writer bumps the row version behind this session's back
    await db_session.execute(
        update(Bill)
        .where(Bill.id == bill.id)
        .values(version=Bill.version + 1)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    bill.notes = "edited from a stale read"
    with pytest.raises(ConflictError):
        await commit_or_raise(db_session)


# ---------------------------------------------------------------------------
# transitionToOverdue / sendDueReminder / cancelBill
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_overdue_requires_due_date_passed(db_session, dormitory, make_bill, notifier, now):
    bill = await make_bill(3000, due_date=now + timedelta(days=1))
    with pytest.raises(InvalidStateError):
        await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)

    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.status == BillStatus.PENDING


@pytest.mark.asyncio
async def test_overdue_transition_notifies_once(
    db_session, dormitory, make_bill, notifier, notification_config, now
):
    bill = await make_bill(3000, due_date=now - timedelta(hours=1))
    notifier.messages.clear()

    bill = await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)
    assert bill.status == BillStatus.OVERDUE
    assert bill.notified_overdue is True
    assert len(notifier.messages) == 1
    assert "Payment overdue" in notifier.messages[0]

    with pytest.raises(InvalidStateError):
        await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)
    assert len(notifier.messages) == 1


@pytest.mark.asyncio
async def test_paid_bill_cannot_become_overdue(db_session, dormitory, make_bill, notifier, now):
    bill = await make_bill(3000, due_date=now - timedelta(days=1))
    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(3000), notifier)

    with pytest.raises(InvalidStateError):
        await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)


@pytest.mark.asyncio
async def test_due_reminder_is_sent_at_most_once(
    db_session, dormitory, make_bill, notifier, notification_config
):
    bill = await make_bill(3000)
    notifier.messages.clear()

    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier) is True
    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier) is False

    assert len(notifier.messages) == 1
    assert "Payment reminder" in notifier.messages[0]
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.notified_reminder is True


@pytest.mark.asyncio
async def test_failed_reminder_can_be_retried(
    db_session, dormitory, make_bill, notifier, failing_notifier, notification_config
):
    bill = await make_bill(3000)

    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, failing_notifier) is False
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.notified_reminder is False

    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier) is True


@pytest.mark.asyncio
async def test_reminder_disabled_event(db_session, dormitory, make_bill, notifier, notification_config):
    notification_config.bill_due_reminder = False
    await db_session.commit()
    bill = await make_bill(3000)
    notifier.messages.clear()

    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier) is False
    assert notifier.messages == []


@pytest.mark.asyncio
async def test_reminder_for_paid_bill_is_invalid(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(3000), notifier)

    with pytest.raises(InvalidStateError):
        await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier)


@pytest.mark.asyncio
async def test_cancel_bill(db_session, dormitory, make_bill, notifier):
    bill = await make_bill(3000)
    notifier.messages.clear()

    bill = await BillService.cancel_bill(db_session, dormitory.id, bill.id)
    assert bill.status == BillStatus.CANCELLED
    assert notifier.messages == []

    with pytest.raises(InvalidStateError):
        await BillService.cancel_bill(db_session, dormitory.id, bill.id)


@pytest.mark.asyncio
async def test_overdue_bill_can_be_cancelled(db_session, dormitory, make_bill, notifier, now):
    bill = await make_bill(3000, due_date=now - timedelta(days=1))
    await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)

    bill = await BillService.cancel_bill(db_session, dormitory.id, bill.id)
    assert bill.status == BillStatus.CANCELLED


@pytest.mark.asyncio
async def test_status_changes_follow_transition_table(db_session, dormitory, make_bill, notifier, now, monkeypatch):
    monkeypatch.setitem(BILL_TRANSITIONS, BillStatus.OVERDUE, {BillStatus.PAID})
    monkeypatch.setitem(BILL_TRANSITIONS, BillStatus.PENDING, {BillStatus.PAID, BillStatus.CANCELLED})
    overdue = await make_bill(3000, month=9, due_date=now - timedelta(days=1))
    pending = await make_bill(3000, month=10, due_date=now - timedelta(days=1))

    with pytest.raises(InvalidStateError):
        await BillService.transition_to_overdue(db_session, dormitory.id, pending.id, now, notifier)

    # Force the row into overdue, then the narrowed table forbids cancelling it
    overdue.status = BillStatus.OVERDUE
    await db_session.commit()
    with pytest.raises(InvalidStateError):
        await BillService.cancel_bill(db_session, dormitory.id, overdue.id)

    # Without a partially_paid edge, a partial payment keeps the bill pending
    bill = await BillService.record_payment(db_session, dormitory.id, pending.id, _payment(1000), notifier)
    assert bill.status == BillStatus.PENDING
    assert bill.remaining_amount == Decimal("2000")


class RaisingNotifier(NotificationSender):
    """Fails the way a malformed stored webhook URL does"""

    def __init__(self):
        super().__init__(max_retries=1, backoff_seconds=0)

    async def send(self, config, message: str) -> bool:
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")


@pytest.mark.asyncio
async def test_raising_notifier_releases_reminder_flag(
    db_session, dormitory, make_bill, notifier, notification_config
):
    bill = await make_bill(3000)

    with pytest.raises(httpx.InvalidURL):
        await BillService.send_due_reminder(db_session, dormitory.id, bill.id, RaisingNotifier())
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.notified_reminder is False

    assert await BillService.send_due_reminder(db_session, dormitory.id, bill.id, notifier) is True


# ---------------------------------------------------------------------------
# Late fee, reporting, overdue check
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_late_fee_per_started_day(db_session, dormitory, make_bill, notifier, now):
    bill = await make_bill(3000, due_date=now - timedelta(days=3, hours=1))
    await BillService.transition_to_overdue(db_session, dormitory.id, bill.id, now, notifier)

    bill, fee, days = await BillService.calculate_late_fee(db_session, dormitory.id, bill.id, now)
    assert days == 4
    assert fee == Decimal("80.00")
    stored = await BillService.require_bill(db_session, dormitory.id, bill.id)
    assert stored.late_fee == Decimal("80.00")


@pytest.mark.asyncio
async def test_no_late_fee_unless_overdue(db_session, dormitory, make_bill, now):
    bill = await make_bill(3000, due_date=now - timedelta(days=3))
    _, fee, days = await BillService.calculate_late_fee(db_session, dormitory.id, bill.id, now)
    assert fee == 0
    assert days == 0


@pytest.mark.asyncio
async def test_billing_summary(db_session, dormitory, make_bill, notifier, now):
    cancelled = await make_bill(3000, month=7)
    await BillService.cancel_bill(db_session, dormitory.id, cancelled.id)

    paid = await make_bill(3000, month=8)
    await BillService.record_payment(db_session, dormitory.id, paid.id, _payment(3000), notifier)

    partial = await make_bill(3000, month=9)
    await BillService.record_payment(db_session, dormitory.id, partial.id, _payment(1000), notifier)

    late = await make_bill(3000, month=10, due_date=now - timedelta(days=1))
    await BillService.transition_to_overdue(db_session, dormitory.id, late.id, now, notifier)

    summary = await BillService.get_billing_summary(db_session, dormitory.id)
    assert summary.total_bills == 3
    assert summary.total_amount == Decimal("9000")
    assert summary.paid_bills == 1
    assert summary.paid_amount == Decimal("3000")
    assert summary.pending_bills == 1
    assert summary.pending_amount == Decimal("2000")
    assert summary.overdue_bills == 1
    assert summary.overdue_amount == Decimal("3000")


@pytest.mark.asyncio
async def test_list_bills_filters_and_pages(db_session, dormitory, make_bill, notifier):
    for month in (7, 8, 9):
        await make_bill(3000, month=month)
    august = (await BillService.list_bills(db_session, dormitory.id, month=8))[0][0]
    await BillService.record_payment(db_session, dormitory.id, august.id, _payment(3000), notifier)

    bills, total = await BillService.list_bills(db_session, dormitory.id, status=BillStatus.PENDING)
    assert total == 2
    assert {b.month for b in bills} == {7, 9}

    page, total = await BillService.list_bills(db_session, dormitory.id, skip=0, limit=2)
    assert total == 3
    assert len(page) == 2


@pytest.mark.asyncio
async def test_room_payment_history(db_session, dormitory, room, make_bill):
    for month in range(1, 13):
        await make_bill(1000, month=month, year=2025)
    await make_bill(1000, month=1, year=2026)

    history = await BillService.get_room_payment_history(db_session, dormitory.id, room.id)
    assert len(history) == 12
    assert (history[0].year, history[0].month) == (2026, 1)
    assert (history[-1].year, history[-1].month) == (2025, 2)


@pytest.mark.asyncio
async def test_check_overdue_bills_escalates_without_notifying(
    db_session, dormitory, make_bill, notifier, notification_config, now
):
    await make_bill(3000, month=9, due_date=now - timedelta(days=20))
    await make_bill(3000, month=10, due_date=now + timedelta(days=3))
    notifier.messages.clear()

    assert await BillService.check_overdue_bills(db_session, dormitory.id, now) == 1
    assert notifier.messages == []

    bills, _ = await BillService.list_bills(db_session, dormitory.id, status=BillStatus.OVERDUE)
    assert [b.month for b in bills] == [9]


# ---------------------------------------------------------------------------
# PromptPay
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_promptpay_payload_for_remaining_balance(db_session, dormitory, make_bill, notifier):
    await SettingsService.upsert_promptpay_config(
        db_session, dormitory.id, PromptPayConfigUpdate(account_name="Baan Suk", account_number="0812345678")
    )
    bill = await make_bill(3000)
    await BillService.record_payment(db_session, dormitory.id, bill.id, _payment(1000), notifier)

    _, config, payload = await BillService.build_promptpay_payload(db_session, dormitory.id, bill.id)
    assert config.account_name == "Baan Suk"
    assert "54072000.00" in payload
    assert "5802TH" in payload


@pytest.mark.asyncio
async def test_promptpay_payload_requires_config(db_session, dormitory, make_bill):
    bill = await make_bill(3000)
    with pytest.raises(NotFoundError):
        await BillService.build_promptpay_payload(db_session, dormitory.id, bill.id)


# ---------------------------------------------------------------------------
# createMonthlyBills
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_monthly_bills_price_utilities_and_skip_unready_rooms(
    db_session, dormitory, room, tenant, notifier, record_reading, now
):
    other_room = await DormitoryService.create_room(db_session, dormitory.id, RoomCreate(number="102"))
    await DormitoryService.create_tenant(
        db_session, dormitory.id, TenantCreate(full_name="Malee Sukjai", room_id=other_room.id)
    )
    await record_reading(MeterType.WATER, 130, previous=100)
    await record_reading(MeterType.ELECTRIC, 1350, previous=1200)

    batch = BatchBillCreate(month=10, year=2026, due_date=now + timedelta(days=5))
    created, skipped = await BillService.create_monthly_bills(db_session, dormitory.id, batch, notifier)

    assert len(created) == 1
    bill = created[0]
    assert bill.room_number == "101"
    amounts = {item.category: item.amount for item in bill.items}
    assert amounts[BillItemCategory.RENT] == Decimal("3500")
    assert amounts[BillItemCategory.WATER] == Decimal("540")
    assert amounts[BillItemCategory.ELECTRIC] == Decimal("1050")
    assert bill.total_amount == Decimal("5090")

    assert [(s.room_number, s.reason) for s in skipped] == [("102", "meter not yet read this cycle")]

    readings = await DormitoryService.list_meter_readings(db_session, dormitory.id, room_id=room.id)
    assert all(r.bill_id == bill.id for r in readings)

    created, skipped = await BillService.create_monthly_bills(db_session, dormitory.id, batch, notifier)
    assert created == []
    assert {s.reason for s in skipped} == {"bill already exists for this period", "meter not yet read this cycle"}


@pytest.mark.asyncio
async def test_monthly_bills_skip_tenant_moving_out(
    db_session, dormitory, room, tenant, notifier, record_reading, now
):
    await record_reading(MeterType.WATER, 130, previous=100)
    tenant.status = TenantStatus.MOVING_OUT
    await db_session.commit()

    batch = BatchBillCreate(month=10, year=2026, due_date=now + timedelta(days=5))
    created, skipped = await BillService.create_monthly_bills(db_session, dormitory.id, batch, notifier)

    assert created == []
    assert skipped[0].reason == "room flagged for move-out"


@pytest.mark.asyncio
async def test_monthly_bills_skip_zero_total_rooms(
    db_session, dormitory, room, tenant, notifier, record_reading, now
):
    room.monthly_rent = Decimal("0")
    await db_session.commit()
    await record_reading(MeterType.WATER, 100, previous=100)

    batch = BatchBillCreate(month=10, year=2026, due_date=now + timedelta(days=5))
    created, skipped = await BillService.create_monthly_bills(db_session, dormitory.id, batch, notifier)

    assert created == []
    assert [(s.room_number, s.reason) for s in skipped] == [("101", "Bill total must be greater than 0")]
