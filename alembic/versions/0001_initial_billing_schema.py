"""initial billing schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None

room_status = sa.Enum("available", "occupied", "maintenance", name="room_status")
tenant_status = sa.Enum("active", "moving_out", "inactive", name="tenant_status")
meter_type = sa.Enum("water", "electric", name="meter_type")
bill_status = sa.Enum("pending", "partially_paid", "paid", "overdue", "cancelled", name="bill_status")
bill_item_category = sa.Enum("rent", "water", "electric", "maintenance", "other", name="bill_item_category")
payment_method = sa.Enum("cash", "bank_transfer", "promptpay", name="payment_method")
notification_channel_type = sa.Enum(
    "line_notify", "line_messaging", "webhook", name="notification_channel_type"
)


def _base_columns():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _dormitory_fk():
    return sa.Column(
        "dormitory_id", sa.Uuid(), sa.ForeignKey("dormitories.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "dormitories",
        *_base_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("default_rent", sa.Numeric(10, 2), nullable=False),
        sa.Column("water_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("electric_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("late_fee_per_day", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_dormitories_id"), "dormitories", ["id"])
    op.create_index(op.f("ix_dormitories_is_active"), "dormitories", ["is_active"])

    op.create_table(
        "rooms",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("number", sa.String(50), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("monthly_rent", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", room_status, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dormitory_id", "number", name="uq_rooms_dormitory_number"),
    )
    op.create_index(op.f("ix_rooms_id"), "rooms", ["id"])
    op.create_index(op.f("ix_rooms_dormitory_id"), "rooms", ["dormitory_id"])
    op.create_index(op.f("ix_rooms_status"), "rooms", ["status"])

    op.create_table(
        "tenants",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("line_user_id", sa.String(100), nullable=True),
        sa.Column("status", tenant_status, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tenants_id"), "tenants", ["id"])
    op.create_index(op.f("ix_tenants_dormitory_id"), "tenants", ["dormitory_id"])
    op.create_index(op.f("ix_tenants_room_id"), "tenants", ["room_id"])
    op.create_index(op.f("ix_tenants_status"), "tenants", ["status"])

    op.create_table(
        "bills",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("room_number", sa.String(50), nullable=False),
        sa.Column("tenant_name", sa.String(255), nullable=True),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("late_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", bill_status, nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("notified_created", sa.Boolean(), nullable=False),
        sa.Column("notified_reminder", sa.Boolean(), nullable=False),
        sa.Column("notified_overdue", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bills_id"), "bills", ["id"])
    op.create_index(op.f("ix_bills_dormitory_id"), "bills", ["dormitory_id"])
    op.create_index(op.f("ix_bills_room_id"), "bills", ["room_id"])
    op.create_index(op.f("ix_bills_tenant_id"), "bills", ["tenant_id"])
    op.create_index(op.f("ix_bills_status"), "bills", ["status"])
    op.create_index(op.f("ix_bills_due_date"), "bills", ["due_date"])
    op.create_index(
        "uq_bills_room_period_active",
        "bills",
        ["dormitory_id", "room_id", "month", "year"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "bill_items",
        *_base_columns(),
        sa.Column("bill_id", sa.Uuid(), sa.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", bill_item_category, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("units", sa.Numeric(12, 2), nullable=True),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("previous_reading", sa.Numeric(12, 2), nullable=True),
        sa.Column("current_reading", sa.Numeric(12, 2), nullable=True),
        sa.Column("units_used", sa.Numeric(12, 2), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bill_items_id"), "bill_items", ["id"])
    op.create_index(op.f("ix_bill_items_bill_id"), "bill_items", ["bill_id"])

    op.create_table(
        "payments",
        *_base_columns(),
        sa.Column("bill_id", sa.Uuid(), sa.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("method", payment_method, nullable=False),
        sa.Column("paid_at", sa.DateTime(), nullable=False),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("evidence_url", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recorded_by", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payments_id"), "payments", ["id"])
    op.create_index(op.f("ix_payments_bill_id"), "payments", ["bill_id"])

    op.create_table(
        "meter_readings",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("meter_type", meter_type, nullable=False),
        sa.Column("previous_reading", sa.Numeric(12, 2), nullable=False),
        sa.Column("current_reading", sa.Numeric(12, 2), nullable=False),
        sa.Column("units_used", sa.Numeric(12, 2), nullable=False),
        sa.Column("reading_date", sa.DateTime(), nullable=False),
        sa.Column("bill_id", sa.Uuid(), sa.ForeignKey("bills.id", ondelete="SET NULL"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_meter_readings_id"), "meter_readings", ["id"])
    op.create_index(op.f("ix_meter_readings_dormitory_id"), "meter_readings", ["dormitory_id"])
    op.create_index(op.f("ix_meter_readings_room_id"), "meter_readings", ["room_id"])
    op.create_index(op.f("ix_meter_readings_meter_type"), "meter_readings", ["meter_type"])
    op.create_index(op.f("ix_meter_readings_reading_date"), "meter_readings", ["reading_date"])

    op.create_table(
        "promptpay_configs",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("account_number", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_promptpay_configs_id"), "promptpay_configs", ["id"])
    op.create_index(op.f("ix_promptpay_configs_is_active"), "promptpay_configs", ["is_active"])
    op.create_index("uq_promptpay_configs_dormitory", "promptpay_configs", ["dormitory_id"], unique=True)

    op.create_table(
        "notification_configs",
        *_base_columns(),
        _dormitory_fk(),
        sa.Column("channel_type", notification_channel_type, nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("webhook_url", sa.Text(), nullable=True),
        sa.Column("recipient_id", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("bill_created", sa.Boolean(), nullable=False),
        sa.Column("bill_due_reminder", sa.Boolean(), nullable=False),
        sa.Column("bill_overdue", sa.Boolean(), nullable=False),
        sa.Column("payment_received", sa.Boolean(), nullable=False),
        sa.Column("utility_reading", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notification_configs_id"), "notification_configs", ["id"])
    op.create_index(op.f("ix_notification_configs_is_active"), "notification_configs", ["is_active"])
    op.create_index("uq_notification_configs_dormitory", "notification_configs", ["dormitory_id"], unique=True)

    op.create_table(
        "scan_checkpoints",
        *_base_columns(),
        sa.Column("job_name", sa.String(100), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("last_dormitory_id", sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_name"),
    )
    op.create_index(op.f("ix_scan_checkpoints_id"), "scan_checkpoints", ["id"])


def downgrade() -> None:
    op.drop_table("scan_checkpoints")
    op.drop_table("notification_configs")
    op.drop_table("promptpay_configs")
    op.drop_table("meter_readings")
    op.drop_table("payments")
    op.drop_table("bill_items")
    op.drop_table("bills")
    op.drop_table("tenants")
    op.drop_table("rooms")
    op.drop_table("dormitories")

    bind = op.get_bind()
    for enum_type in (
        notification_channel_type, payment_method, bill_item_category,
        bill_status, meter_type, tenant_status, room_status,
    ):
        enum_type.drop(bind, checkfirst=True)
