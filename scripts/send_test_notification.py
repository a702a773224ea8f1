#!/usr/bin/env python3
"""
Send a test message through a notification channel. Use to verify LINE / webhook setup.

Usage:
  python scripts/send_test_notification.py line_notify <access-token>
  python scripts/send_test_notification.py line_messaging <channel-token> <recipient-id>
  python scripts/send_test_notification.py webhook <webhook-url>
"""
import asyncio
import os
import sys

from dotenv import load_dotenv

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_root, ".env"))

# Add project root to path
sys.path.insert(0, _root)

from app.models.enums import NotificationChannelType
from app.models.notification import NotificationConfig
from app.services.notification_service import NotificationSender

MESSAGE = "\nTest notification from the dormitory billing service ✅"


def build_config(argv) -> NotificationConfig:
    channel = NotificationChannelType(argv[0])
    if channel == NotificationChannelType.WEBHOOK:
        return NotificationConfig(channel_type=channel, webhook_url=argv[1], is_active=True)
    return NotificationConfig(
        channel_type=channel,
        access_token=argv[1],
        recipient_id=argv[2] if len(argv) > 2 else None,
        is_active=True,
    )


async def main(argv) -> int:
    if len(argv) < 2:
        print(__doc__)
        return 1
    config = build_config(argv)
    print(f"Sending test message via {config.channel_type.value}...")
    if await NotificationSender().send(config, MESSAGE):
        print("SUCCESS: Message delivered.")
        return 0
    print("FAILED: Message was not delivered. Check logs.")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
