"""Text templates for tenant/owner notifications"""

from datetime import datetime
from decimal import Decimal
from typing import Union

from app.models.billing import Bill
from app.models.enums import MeterType
from app.utils.time import format_period

Number = Union[Decimal, int, float]


def format_baht(amount: Number) -> str:
    return f"฿{Decimal(str(amount)):,.2f}"


def format_date(value: datetime) -> str:
    return value.strftime("%d %b %Y")


def bill_created(bill: Bill) -> str:
    return (
        "\nNew bill issued 🧾"
        f"\nRoom: {bill.room_number}"
        f"\nPeriod: {format_period(bill.month, bill.year)}"
        f"\nTotal: {format_baht(bill.total_amount)}"
        f"\nDue date: {format_date(bill.due_date)}"
    )


def bill_due_reminder(bill: Bill) -> str:
    return (
        "\nPayment reminder ⚠️"
        f"\nRoom: {bill.room_number}"
        f"\nPeriod: {format_period(bill.month, bill.year)}"
        f"\nAmount due: {format_baht(bill.remaining_amount)}"
        f"\nDue date: {format_date(bill.due_date)}"
    )


def bill_overdue(bill: Bill) -> str:
    return (
        "\nPayment overdue ❌"
        f"\nRoom: {bill.room_number}"
        f"\nPeriod: {format_period(bill.month, bill.year)}"
        f"\nOutstanding: {format_baht(bill.remaining_amount)}"
        f"\nDue date: {format_date(bill.due_date)}"
    )


def payment_received(bill: Bill, amount: Number) -> str:
    return (
        "\nPayment received ✅"
        f"\nRoom: {bill.room_number}"
        f"\nPeriod: {format_period(bill.month, bill.year)}"
        f"\nAmount: {format_baht(amount)}"
        f"\nRemaining: {format_baht(bill.remaining_amount)}"
    )


def utility_reading(
    room_number: str,
    meter_type: MeterType,
    previous_reading: Number,
    current_reading: Number,
    units_used: Number,
) -> str:
    label = "Water" if meter_type == MeterType.WATER else "Electricity"
    return (
        "\nMeter reading recorded 📊"
        f"\nRoom: {room_number}"
        f"\nType: {label}"
        f"\nPrevious: {previous_reading}"
        f"\nCurrent: {current_reading}"
        f"\nUnits used: {units_used}"
    )
