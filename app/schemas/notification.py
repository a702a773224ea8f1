from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID
from datetime import datetime

from app.models.enums import NotificationChannelType


class NotificationConfigUpdate(BaseModel):
    channel_type: NotificationChannelType = NotificationChannelType.LINE_NOTIFY
    access_token: Optional[str] = None
    webhook_url: Optional[str] = None
    recipient_id: Optional[str] = None
    is_active: bool = True
    bill_created: bool = True
    bill_due_reminder: bool = True
    bill_overdue: bool = True
    payment_received: bool = True
    utility_reading: bool = False

    @model_validator(mode="after")
    def check_channel_credentials(self) -> "NotificationConfigUpdate":
        if self.channel_type == NotificationChannelType.WEBHOOK:
            if not self.webhook_url:
                raise ValueError("webhook_url is required for the webhook channel")
        elif not self.access_token:
            raise ValueError(f"access_token is required for the {self.channel_type.value} channel")
        if self.channel_type == NotificationChannelType.LINE_MESSAGING and not self.recipient_id:
            raise ValueError("recipient_id is required for the line_messaging channel")
        return self


class NotificationConfigResponse(BaseModel):
    id: UUID
    dormitory_id: UUID
    channel_type: NotificationChannelType
    webhook_url: Optional[str] = None
    recipient_id: Optional[str] = None
    has_access_token: bool
    is_active: bool
    bill_created: bool
    bill_due_reminder: bool
    bill_overdue: bool
    payment_received: bool
    utility_reading: bool
    updated_at: datetime

    @classmethod
    def from_config(cls, config) -> "NotificationConfigResponse":
        """Build the response without ever echoing the access token"""
        return cls(
            id=config.id,
            dormitory_id=config.dormitory_id,
            channel_type=config.channel_type,
            webhook_url=config.webhook_url,
            recipient_id=config.recipient_id,
            has_access_token=bool(config.access_token),
            is_active=config.is_active,
            bill_created=config.bill_created,
            bill_due_reminder=config.bill_due_reminder,
            bill_overdue=config.bill_overdue,
            payment_received=config.payment_received,
            utility_reading=config.utility_reading,
            updated_at=config.updated_at,
        )


class PromptPayConfigUpdate(BaseModel):
    account_name: str = Field(..., min_length=1)
    account_number: str = Field(..., pattern=r"^\d{10}$|^\d{13}$|^\d{15}$")
    is_active: bool = True


class PromptPayConfigResponse(BaseModel):
    id: UUID
    dormitory_id: UUID
    account_name: str
    account_number: str
    is_active: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScanResult(BaseModel):
    """Outcome of one due/overdue sweep"""
    due_soon_count: int = 0
    overdue_count: int = 0
    notifications_sent: int = 0
    failed_count: int = 0
    dormitories_processed: int = 0
    resumed: bool = False


class OverdueCheckResult(BaseModel):
    dormitory_id: UUID
    updated_count: int
