"""Centralized Enum Definitions"""

import enum


# Domain 1: Dormitory & Occupancy
class RoomStatus(str, enum.Enum):
    """Room occupancy status"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class TenantStatus(str, enum.Enum):
    """Tenant occupancy status"""
    ACTIVE = "active"
    MOVING_OUT = "moving_out"
    INACTIVE = "inactive"


class MeterType(str, enum.Enum):
    """Utility meter types"""
    WATER = "water"
    ELECTRIC = "electric"


# Domain 2: Billing
class BillStatus(str, enum.Enum):
    """Bill lifecycle status. PAID and CANCELLED are terminal."""
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BillStatus.PAID, BillStatus.CANCELLED)


class BillItemCategory(str, enum.Enum):
    """Bill line item categories"""
    RENT = "rent"
    WATER = "water"
    ELECTRIC = "electric"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods"""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    PROMPTPAY = "promptpay"


# Domain 3: Notifications
class NotificationChannelType(str, enum.Enum):
    """Outbound notification channels"""
    LINE_NOTIFY = "line_notify"
    LINE_MESSAGING = "line_messaging"
    WEBHOOK = "webhook"


class NotificationEvent(str, enum.Enum):
    """Events a dormitory can opt in to, keyed like the per-event settings map"""
    BILL_CREATED = "billCreated"
    BILL_DUE_REMINDER = "billDueReminder"
    BILL_OVERDUE = "billOverdue"
    PAYMENT_RECEIVED = "paymentReceived"
    UTILITY_READING = "utilityReading"


def enum_values(enum_cls) -> list:
    """Persist enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
