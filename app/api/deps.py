"""API Dependencies"""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import settings
from app.database import get_db
from app.services.notification_service import NotificationSender, get_notification_sender

__all__ = ["get_db", "get_notifier", "verify_cron_secret"]

# Cron routes read the bearer token themselves so an unset secret leaves them open
cron_security = HTTPBearer(auto_error=False)


def get_notifier(
    sender: NotificationSender = Depends(get_notification_sender),
) -> NotificationSender:
    return sender


async def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(cron_security),
) -> None:
    """
    Guard scheduler-only routes with CRON_SECRET.

    Raises:
        HTTPException: 401 when a secret is configured and the bearer token does not match
    """
    if not settings.CRON_SECRET:
        return

    token = credentials.credentials if credentials else ""
    if not secrets.compare_digest(token, settings.CRON_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
            headers={"WWW-Authenticate": "Bearer"},
        )
