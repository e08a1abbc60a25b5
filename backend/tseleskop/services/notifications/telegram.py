"""Telegram Bot API notification provider."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from tseleskop.services.notifications.base import NotificationResult, NotificationService


logger = logging.getLogger(__name__)


class TelegramNotificationService(NotificationService):
    """Sends plain-text messages through ``sendMessage``; failures are reported, never raised."""

    def __init__(
        self,
        *,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}/sendMessage"
        self._timeout = timeout
        self._transport = transport

    def send_message(self, *, chat_id: str, text: str) -> NotificationResult:
        if not chat_id:
            logger.warning("Telegram message skipped: no chat id")
            return NotificationResult(status="skipped", reason="missing chat id")

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._url, json={"chat_id": chat_id, "text": text})
        except httpx.HTTPError as exc:
            logger.error("Telegram sendMessage to chat %s failed: %s", chat_id, exc)
            return NotificationResult(status="failed", reason=f"transport error: {type(exc).__name__}")

        if response.status_code >= 400:
            logger.error("Telegram sendMessage to chat %s returned %s: %s", chat_id, response.status_code, response.text[:300])
            return NotificationResult(status="failed", reason=f"telegram status {response.status_code}")

        logger.info("Telegram message delivered to chat %s", chat_id)
        return NotificationResult(status="sent", reason="delivered")
