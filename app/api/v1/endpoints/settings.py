"""Per-dormitory Notification and PromptPay Settings Endpoints"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.exceptions import NotFoundError
from app.schemas.notification import (
    NotificationConfigUpdate,
    NotificationConfigResponse,
    PromptPayConfigUpdate,
    PromptPayConfigResponse,
)
from app.schemas.responses import SuccessResponse
from app.services.dormitory_service import DormitoryService
from app.services.settings_service import SettingsService

router = APIRouter()


@router.get("/notifications", response_model=SuccessResponse[NotificationConfigResponse])
async def get_notification_settings(
    dormitory_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    config = await SettingsService.get_notification_config(db, dormitory_id)
    if not config:
        raise NotFoundError("Notification channel is not configured")
    return SuccessResponse(data=NotificationConfigResponse.from_config(config))


@router.put("/notifications", response_model=SuccessResponse[NotificationConfigResponse])
async def update_notification_settings(
    dormitory_id: UUID,
    config_in: NotificationConfigUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Create or replace the dormitory's notification channel and per-event switches.
    The access token is write-only and never returned.
    """
    await DormitoryService.require_dormitory(db, dormitory_id)
    config = await SettingsService.upsert_notification_config(db, dormitory_id, config_in)
    return SuccessResponse(
        data=NotificationConfigResponse.from_config(config),
        message="Notification settings saved",
    )


@router.get("/promptpay", response_model=SuccessResponse[PromptPayConfigResponse])
async def get_promptpay_settings(
    dormitory_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    config = await SettingsService.get_promptpay_config(db, dormitory_id)
    if not config:
        raise NotFoundError("PromptPay is not configured")
    return SuccessResponse(data=config)


@router.put("/promptpay", response_model=SuccessResponse[PromptPayConfigResponse])
async def update_promptpay_settings(
    dormitory_id: UUID,
    config_in: PromptPayConfigUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await DormitoryService.require_dormitory(db, dormitory_id)
    config = await SettingsService.upsert_promptpay_config(db, dormitory_id, config_in)
    return SuccessResponse(data=config, message="PromptPay settings saved")
