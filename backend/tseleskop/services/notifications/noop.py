"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging

from tseleskop.services.notifications.base import NotificationResult, NotificationService


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    def send_message(self, *, chat_id: str, text: str) -> NotificationResult:
        logger.info("Notification queued (noop) chat=%s chars=%s", chat_id, len(text))
        return NotificationResult(status="noop", reason="notification provider is noop")
