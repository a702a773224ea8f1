"""Per-dormitory notification and PromptPay settings"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import commit_or_raise
from app.models.billing import PromptPayConfig
from app.models.notification import NotificationConfig
from app.schemas.notification import NotificationConfigUpdate, PromptPayConfigUpdate


class SettingsService:

    @staticmethod
    async def get_notification_config(db: AsyncSession, dormitory_id: UUID) -> Optional[NotificationConfig]:
        result = await db.execute(
            select(NotificationConfig).where(NotificationConfig.dormitory_id == dormitory_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_notification_config(
        db: AsyncSession,
        dormitory_id: UUID,
        data: NotificationConfigUpdate,
    ) -> NotificationConfig:
        config = await SettingsService.get_notification_config(db, dormitory_id)
        if config is None:
            config = NotificationConfig(dormitory_id=dormitory_id)
            db.add(config)

        for field, value in data.model_dump().items():
            setattr(config, field, value)

        await commit_or_raise(db, "Notification settings were updated concurrently")
        await db.refresh(config)
        return config

    @staticmethod
    async def get_promptpay_config(db: AsyncSession, dormitory_id: UUID) -> Optional[PromptPayConfig]:
        result = await db.execute(
            select(PromptPayConfig).where(PromptPayConfig.dormitory_id == dormitory_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_promptpay_config(
        db: AsyncSession,
        dormitory_id: UUID,
        data: PromptPayConfigUpdate,
    ) -> PromptPayConfig:
        config = await SettingsService.get_promptpay_config(db, dormitory_id)
        if config is None:
            config = PromptPayConfig(dormitory_id=dormitory_id)
            db.add(config)

        config.account_name = data.account_name
        config.account_number = data.account_number
        config.is_active = data.is_active

        await commit_or_raise(db, "PromptPay settings were updated concurrently")
        await db.refresh(config)
        return config
