"""User ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text, func
from sqlalchemy.orm import relationship

from tseleskop.core.clock import utcnow
from tseleskop.db.base import Base


class User(Base):
    """A Telegram mini-app user; the primary key is the Telegram user id."""

    __tablename__ = "users"

    id = Column(String(length=64), primary_key=True)
    first_name = Column(String(length=255), nullable=True)
    last_name = Column(String(length=255), nullable=True)
    username = Column(String(length=255), nullable=True)
    photo_url = Column(Text, nullable=True)
    invite_code = Column(String(length=128), nullable=False, unique=True)
    chat_id = Column(String(length=64), nullable=True)
    # Latest AI weekly report, served as-is until the next weekly run replaces it.
    week_report = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    goals = relationship("Goal", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    notification_settings = relationship(
        "NotificationSettings",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
