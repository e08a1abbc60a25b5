"""Per-user notification preferences."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func, text as sa_text
from sqlalchemy.orm import relationship

from tseleskop.core.clock import utcnow
from tseleskop.db.base import Base

DEFAULT_TODAY_TIME = "09:00"
DEFAULT_TOMORROW_TIME = "20:00"
DEFAULT_MONTHLY_TIME = "10:00"
DEFAULT_CUSTOM_TIME = "12:00"


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    user_id = Column(String(length=64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    today_sub_goals_notifications = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    tomorrow_sub_goal_notifications = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    monthly_goal_deadline_notifications = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    custom_notifications = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    # HH:MM in the scheduler timezone; NULL disables the reminder regardless of the flag.
    today_sub_goals_notifications_time = Column(String(length=5), nullable=True, default=DEFAULT_TODAY_TIME)
    tomorrow_sub_goal_notifications_time = Column(String(length=5), nullable=True, default=DEFAULT_TOMORROW_TIME)
    monthly_goal_deadline_notifications_time = Column(String(length=5), nullable=True, default=DEFAULT_MONTHLY_TIME)
    custom_notifications_time = Column(String(length=5), nullable=True, default=DEFAULT_CUSTOM_TIME)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    user = relationship("User", back_populates="notification_settings")
