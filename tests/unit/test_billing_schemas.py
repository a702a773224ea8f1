"""Unit tests for billing and settings request schemas."""

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.models.enums import NotificationChannelType, PaymentMethod
from app.schemas.billing import BillCreate, BillItemCreate, PaymentCreate, UtilityReading
from app.schemas.notification import NotificationConfigUpdate, PromptPayConfigUpdate


def _bill_payload(**overrides) -> dict:
    payload = {
        "room_id": uuid4(),
        "tenant_id": uuid4(),
        "month": 10,
        "year": 2026,
        "due_date": datetime(2026, 10, 25),
        "items": [{"name": "Room rent", "category": "rent", "amount": "3500"}],
    }
    payload.update(overrides)
    return payload


def test_bill_create_valid():
    bill = BillCreate(**_bill_payload())
    assert bill.items[0].amount == Decimal("3500")
    assert bill.due_date == datetime(2026, 10, 25)


def test_bill_create_requires_items():
    with pytest.raises(ValidationError):
        BillCreate(**_bill_payload(items=[]))


@pytest.mark.parametrize("month", [0, 13])
def test_bill_create_rejects_bad_month(month):
    with pytest.raises(ValidationError):
        BillCreate(**_bill_payload(month=month))


def test_bill_create_normalizes_aware_due_date():
    bangkok = timezone(timedelta(hours=7))
    bill = BillCreate(**_bill_payload(due_date=datetime(2026, 10, 25, 7, 0, tzinfo=bangkok)))
    assert bill.due_date == datetime(2026, 10, 25, 0, 0)
    assert bill.due_date.tzinfo is None


def test_bill_item_rejects_negative_amount():
    with pytest.raises(ValidationError):
        BillItemCreate(name="Discount", amount=Decimal("-10"))


@pytest.mark.parametrize("amount", ["0.004", "12.345"])
def test_bill_item_amount_is_whole_cents(amount):
    with pytest.raises(ValidationError):
        BillItemCreate(name="Water", amount=Decimal(amount))
    assert BillItemCreate(name="Water", amount=Decimal("12.34")).amount == Decimal("12.34")


@pytest.mark.parametrize("amount", ["99.999", "0.001"])
def test_payment_amount_is_whole_cents(amount):
    with pytest.raises(ValidationError):
        PaymentCreate(amount=Decimal(amount), method=PaymentMethod.CASH)
    assert PaymentCreate(amount=Decimal("99.90"), method=PaymentMethod.CASH).amount == Decimal("99.90")


def test_utility_reading_derives_units():
    reading = UtilityReading(previous_reading=Decimal("120"), current_reading=Decimal("150"))
    assert reading.units_used == Decimal("30")


def test_utility_reading_rejects_meter_going_backwards():
    with pytest.raises(ValidationError):
        UtilityReading(previous_reading=Decimal("150"), current_reading=Decimal("120"))


def test_notification_config_requires_token_for_line():
    with pytest.raises(ValidationError):
        NotificationConfigUpdate(channel_type=NotificationChannelType.LINE_NOTIFY)


def test_notification_config_requires_recipient_for_messaging_api():
    with pytest.raises(ValidationError):
        NotificationConfigUpdate(channel_type=NotificationChannelType.LINE_MESSAGING, access_token="tok")


def test_notification_config_webhook_defaults():
    config = NotificationConfigUpdate(
        channel_type=NotificationChannelType.WEBHOOK, webhook_url="https://hooks.example.com/x"
    )
    assert config.bill_created and config.bill_due_reminder and config.bill_overdue
    assert config.payment_received is True
    assert config.utility_reading is False


@pytest.mark.parametrize("number", ["0812345678", "1234567890123", "123456789012345"])
def test_promptpay_account_number_valid(number):
    assert PromptPayConfigUpdate(account_name="Baan Suk", account_number=number).account_number == number


@pytest.mark.parametrize("number", ["081-234-5678", "12345", "abcdefghij"])
def test_promptpay_account_number_invalid(number):
    with pytest.raises(ValidationError):
        PromptPayConfigUpdate(account_name="Baan Suk", account_number=number)
