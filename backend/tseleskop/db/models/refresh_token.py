"""Refresh token ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from tseleskop.core.clock import utcnow
from tseleskop.db.base import Base


class RefreshToken(Base):
    """The single live refresh token of a user; issuing a new one replaces it."""

    __tablename__ = "refresh_tokens"

    user_id = Column(String(length=64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    token = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
