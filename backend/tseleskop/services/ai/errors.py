"""Failures that cross the AI subsystem boundary."""
from __future__ import annotations

from tseleskop.core.errors import ConfigurationError

__all__ = ["AIServiceError", "ConfigurationError", "TransportError", "UpstreamError"]


class AIServiceError(Exception):
    """Base class for completion endpoint failures; never retried here."""


class UpstreamError(AIServiceError):
    """The completion endpoint answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Completion endpoint error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class TransportError(AIServiceError):
    """The completion endpoint could not be reached (timeout, DNS, refused connection)."""
