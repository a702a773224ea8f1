"""Outbound notification delivery (LINE Notify, LINE Messaging API, generic webhook).

Delivery is best-effort: ``NotificationSender.send`` reports success as a bool and
never raises, so a failed send cannot undo the bill or payment write that triggered it.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

import httpx

from app.config import settings
from app.core.exceptions import NotificationError
from app.core.logging import get_logger
from app.models.enums import NotificationChannelType
from app.models.notification import NotificationConfig

logger = get_logger(__name__)


class NotificationSender:
    """Send a text message through a dormitory's configured channel"""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = settings.NOTIFY_TIMEOUT_SECONDS if timeout is None else timeout
        self.max_retries = max(1, settings.NOTIFY_MAX_RETRIES if max_retries is None else max_retries)
        self.backoff_seconds = (
            settings.NOTIFY_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self._transport = transport

    @staticmethod
    def build_request(config: NotificationConfig, message: str) -> Tuple[str, Dict[str, Any]]:
        """Return (url, httpx request kwargs) for the config's channel."""
        channel = NotificationChannelType(config.channel_type)

        if channel == NotificationChannelType.WEBHOOK:
            if not config.webhook_url:
                raise NotificationError("Webhook URL not configured")
            return config.webhook_url, {"json": {"text": message, "to": config.recipient_id}}

        if not config.access_token:
            raise NotificationError(f"Access token not configured for {channel.value}")
        headers = {"Authorization": f"Bearer {config.access_token}"}

        if channel == NotificationChannelType.LINE_MESSAGING:
            if not config.recipient_id:
                raise NotificationError("LINE recipient id not configured")
            body = {"to": config.recipient_id, "messages": [{"type": "text", "text": message}]}
            return settings.LINE_MESSAGING_API_URL, {"headers": headers, "json": body}

        return settings.LINE_NOTIFY_API_URL, {"headers": headers, "data": {"message": message}}

    async def _post_with_retry(self, url: str, request_kwargs: Dict[str, Any]) -> httpx.Response:
        last_error: Optional[str] = None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = await client.post(url, **request_kwargs)
                except httpx.InvalidURL as e:
                    raise NotificationError(f"Invalid channel URL: {e}") from e
                except httpx.TransportError as e:
                    last_error = f"{type(e).__name__}: {e}"
                else:
                    if response.status_code < 400:
                        return response
                    if response.status_code < 500:
                        raise NotificationError(
                            f"Channel rejected message ({response.status_code}): {response.text[:200]}"
                        )
                    last_error = f"HTTP {response.status_code}"

                if attempt < self.max_retries:
                    delay = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.warning(
                        "Notification attempt failed, retrying",
                        extra={"attempt": attempt, "delay": delay, "error": last_error},
                    )
                    await asyncio.sleep(delay)

        raise NotificationError(f"Delivery failed after {self.max_retries} attempts: {last_error}")

    async def send(self, config: NotificationConfig, message: str) -> bool:
        """Deliver message; returns False on any failure (logged, not raised)."""
        try:
            url, request_kwargs = self.build_request(config, message)
            await self._post_with_retry(url, request_kwargs)
        except NotificationError as e:
            logger.error(
                "Notification not delivered: %s",
                e.message,
                extra={"dormitory_id": str(config.dormitory_id), "channel": str(config.channel_type)},
            )
            return False

        logger.info(
            "Notification delivered",
            extra={"dormitory_id": str(config.dormitory_id), "channel": str(config.channel_type)},
        )
        return True


def get_notification_sender() -> NotificationSender:
    """Dependency provider; tests override it with a recording fake."""
    return NotificationSender()
