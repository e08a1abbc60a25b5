"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class NotificationResult:
    status: str
    reason: str

    @property
    def delivered(self) -> bool:
        return self.status == "sent"


class NotificationService:
    """Base interface for notification providers."""

    def send_message(self, *, chat_id: str, text: str) -> NotificationResult:
        raise NotImplementedError
