"""Notification service factory."""
from __future__ import annotations

import logging
from functools import lru_cache

from tseleskop.core.config import settings
from tseleskop.services.notifications.base import NotificationService
from tseleskop.services.notifications.noop import NoopNotificationService
from tseleskop.services.notifications.telegram import TelegramNotificationService


logger = logging.getLogger(__name__)


@lru_cache
def get_notification_service() -> NotificationService:
    provider = settings.notifications_provider.lower()
    if provider == "telegram":
        if settings.telegram_bot_token:
            return TelegramNotificationService(
                bot_token=settings.telegram_bot_token,
                api_base=settings.telegram_api_base,
            )
        logger.warning("NOTIFICATIONS_PROVIDER=telegram but TELEGRAM_BOT_TOKEN is missing; using noop")
    return NoopNotificationService()
