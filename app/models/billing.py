"""Domain 2: Billing Models"""

from decimal import Decimal

from sqlalchemy import (
    Column, String, Text, Integer, Numeric, Boolean, DateTime, ForeignKey, Index, Enum, Uuid, text,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, DormitoryScopedMixin, StatusMixin
from app.models.enums import BillStatus, BillItemCategory, PaymentMethod, enum_values


# Allowed status moves; PAID and CANCELLED have no outgoing edges.
BILL_TRANSITIONS = {
    BillStatus.PENDING: {BillStatus.PARTIALLY_PAID, BillStatus.PAID, BillStatus.OVERDUE, BillStatus.CANCELLED},
    BillStatus.PARTIALLY_PAID: {BillStatus.PAID, BillStatus.OVERDUE, BillStatus.CANCELLED},
    BillStatus.OVERDUE: {BillStatus.PAID, BillStatus.CANCELLED},
    BillStatus.PAID: set(),
    BillStatus.CANCELLED: set(),
}

OPEN_BILL_STATUSES = (BillStatus.PENDING, BillStatus.PARTIALLY_PAID)


class Bill(BaseModel, DormitoryScopedMixin):
    """
    One billing cycle for one room/tenant.

    remaining_amount is derived from total_amount - paid_amount and never stored.
    The version column makes concurrent writes on the same bill fail instead of
    silently overwriting each other.
    """
    __tablename__ = "bills"
    __table_args__ = (
        # One live bill per room and period; cancelled bills may be re-issued
        Index(
            "uq_bills_room_period_active",
            "dormitory_id", "room_id", "month", "year",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False, index=True)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, index=True)
    room_number = Column(String(50), nullable=False)
    tenant_name = Column(String(255), nullable=True)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    total_amount = Column(Numeric(10, 2), nullable=False)
    paid_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    late_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    status = Column(
        Enum(BillStatus, name="bill_status", values_callable=enum_values),
        default=BillStatus.PENDING,
        nullable=False,
        index=True,
    )
    due_date = Column(DateTime, nullable=False, index=True)
    paid_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Notification flags; claimed with a conditional UPDATE before sending
    notified_created = Column(Boolean, nullable=False, default=False)
    notified_reminder = Column(Boolean, nullable=False, default=False)
    notified_overdue = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    dormitory = relationship("Dormitory", back_populates="bills")
    items = relationship(
        "BillItem",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItem.position",
        lazy="selectin",
    )
    payments = relationship(
        "Payment",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="Payment.created_at",
        lazy="selectin",
    )

    @hybrid_property
    def remaining_amount(self):
        return self.total_amount - self.paid_amount

    def can_transition_to(self, status: BillStatus) -> bool:
        return status in BILL_TRANSITIONS[BillStatus(self.status)]

    def __repr__(self) -> str:
        return f"<Bill {self.room_number} {self.month}/{self.year} {self.total_amount} - {self.status}>"


class BillItem(BaseModel):
    """
    Bill line item. Utility items may carry the meter reading they were priced from.
    """
    __tablename__ = "bill_items"

    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    category = Column(
        Enum(BillItemCategory, name="bill_item_category", values_callable=enum_values),
        default=BillItemCategory.OTHER,
        nullable=False,
    )
    description = Column(Text, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    units = Column(Numeric(12, 2), nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=True)

    # Utility reading sub-record
    previous_reading = Column(Numeric(12, 2), nullable=True)
    current_reading = Column(Numeric(12, 2), nullable=True)
    units_used = Column(Numeric(12, 2), nullable=True)

    bill = relationship("Bill", back_populates="items")

    def __repr__(self) -> str:
        return f"<BillItem {self.name} {self.amount}>"


class Payment(BaseModel):
    """Payment recorded against a bill"""
    __tablename__ = "payments"

    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=enum_values),
        nullable=False,
    )
    paid_at = Column(DateTime, nullable=False)
    reference = Column(String(255), nullable=True)
    evidence_url = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    recorded_by = Column(String(255), nullable=True)

    bill = relationship("Bill", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment {self.amount} via {self.method}>"


class PromptPayConfig(BaseModel, DormitoryScopedMixin, StatusMixin):
    """PromptPay payee used to build payment QR payloads"""
    __tablename__ = "promptpay_configs"
    __table_args__ = (
        Index("uq_promptpay_configs_dormitory", "dormitory_id", unique=True),
    )

    account_name = Column(String(255), nullable=False)
    account_number = Column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<PromptPayConfig {self.account_name}>"
