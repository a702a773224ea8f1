"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel, DormitoryScopedMixin, StatusMixin
from app.models.enums import *
from app.models.dormitory import Dormitory, Room, Tenant, MeterReading
from app.models.billing import Bill, BillItem, Payment, PromptPayConfig, BILL_TRANSITIONS, OPEN_BILL_STATUSES
from app.models.notification import NotificationConfig, ScanCheckpoint


__all__ = [
    # Base classes
    "BaseModel",
    "DormitoryScopedMixin",
    "StatusMixin",

    # Dormitory
    "Dormitory",
    "Room",
    "Tenant",
    "MeterReading",

    # Billing
    "Bill",
    "BillItem",
    "Payment",
    "PromptPayConfig",
    "BILL_TRANSITIONS",
    "OPEN_BILL_STATUSES",

    # Notifications
    "NotificationConfig",
    "ScanCheckpoint",
]
