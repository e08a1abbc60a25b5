"""Pydantic schemas for notification settings."""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from tseleskop.core.camel import CamelModel

HHMM_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class NotificationSettingsResponse(CamelModel):
    user_id: str
    today_sub_goals_notifications: bool
    tomorrow_sub_goal_notifications: bool
    monthly_goal_deadline_notifications: bool
    custom_notifications: bool
    today_sub_goals_notifications_time: Optional[str] = None
    tomorrow_sub_goal_notifications_time: Optional[str] = None
    monthly_goal_deadline_notifications_time: Optional[str] = None
    custom_notifications_time: Optional[str] = None


class NotificationSettingsUpdate(CamelModel):
    today_sub_goals_notifications: Optional[bool] = None
    tomorrow_sub_goal_notifications: Optional[bool] = None
    monthly_goal_deadline_notifications: Optional[bool] = None
    custom_notifications: Optional[bool] = None
    today_sub_goals_notifications_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    tomorrow_sub_goal_notifications_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    monthly_goal_deadline_notifications_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    custom_notifications_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
