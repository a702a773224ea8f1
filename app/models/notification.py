"""Domain 3: Notification Settings and Scheduled Job State"""

from sqlalchemy import Column, String, Text, Boolean, DateTime, Index, Enum, Uuid

from app.models.base import BaseModel, DormitoryScopedMixin, StatusMixin
from app.models.enums import NotificationChannelType, NotificationEvent, enum_values


class NotificationConfig(BaseModel, DormitoryScopedMixin, StatusMixin):
    """
    Per-dormitory notification channel.
    Each event type is gated by its own flag on top of is_active.
    """
    __tablename__ = "notification_configs"
    __table_args__ = (
        Index("uq_notification_configs_dormitory", "dormitory_id", unique=True),
    )

    channel_type = Column(
        Enum(NotificationChannelType, name="notification_channel_type", values_callable=enum_values),
        default=NotificationChannelType.LINE_NOTIFY,
        nullable=False,
    )
    access_token = Column(Text, nullable=True)
    webhook_url = Column(Text, nullable=True)
    recipient_id = Column(String(255), nullable=True)

    bill_created = Column(Boolean, nullable=False, default=True)
    bill_due_reminder = Column(Boolean, nullable=False, default=True)
    bill_overdue = Column(Boolean, nullable=False, default=True)
    payment_received = Column(Boolean, nullable=False, default=True)
    utility_reading = Column(Boolean, nullable=False, default=False)

    _EVENT_FLAGS = {
        NotificationEvent.BILL_CREATED: "bill_created",
        NotificationEvent.BILL_DUE_REMINDER: "bill_due_reminder",
        NotificationEvent.BILL_OVERDUE: "bill_overdue",
        NotificationEvent.PAYMENT_RECEIVED: "payment_received",
        NotificationEvent.UTILITY_READING: "utility_reading",
    }

    def is_enabled(self, event: NotificationEvent) -> bool:
        """True when the channel is active and the event type is switched on"""
        return bool(self.is_active and getattr(self, self._EVENT_FLAGS[event]))

    def __repr__(self) -> str:
        return f"<NotificationConfig {self.channel_type} active={self.is_active}>"


class ScanCheckpoint(BaseModel):
    """
    Cursor for the due/overdue sweep. An unfinished checkpoint (completed_at is NULL)
    lets the next run resume after last_dormitory_id.
    """
    __tablename__ = "scan_checkpoints"

    job_name = Column(String(100), nullable=False, unique=True)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    last_dormitory_id = Column(Uuid(as_uuid=True), nullable=True)

    @property
    def is_running(self) -> bool:
        return self.completed_at is None

    def __repr__(self) -> str:
        return f"<ScanCheckpoint {self.job_name} cursor={self.last_dormitory_id}>"
