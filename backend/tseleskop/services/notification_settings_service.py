"""Per-user notification preferences."""
from __future__ import annotations

from sqlalchemy.orm import Session

from tseleskop.api.schemas.settings import NotificationSettingsUpdate
from tseleskop.db.models.notification_settings import (
    DEFAULT_CUSTOM_TIME,
    DEFAULT_MONTHLY_TIME,
    DEFAULT_TODAY_TIME,
    DEFAULT_TOMORROW_TIME,
    NotificationSettings,
)

# Reminder kind -> (flag column, HH:MM column, default time).
REMINDER_FIELDS = {
    "today": ("today_sub_goals_notifications", "today_sub_goals_notifications_time", DEFAULT_TODAY_TIME),
    "tomorrow": ("tomorrow_sub_goal_notifications", "tomorrow_sub_goal_notifications_time", DEFAULT_TOMORROW_TIME),
    "monthly": (
        "monthly_goal_deadline_notifications",
        "monthly_goal_deadline_notifications_time",
        DEFAULT_MONTHLY_TIME,
    ),
    "custom": ("custom_notifications", "custom_notifications_time", DEFAULT_CUSTOM_TIME),
}


def get_settings(db: Session, user_id: str) -> NotificationSettings:
    """Return the user's settings, creating the defaults on first read."""
    record = db.get(NotificationSettings, user_id)
    if record:
        return record
    record = NotificationSettings(user_id=user_id)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_settings(db: Session, user_id: str, payload: NotificationSettingsUpdate) -> NotificationSettings:
    record = get_settings(db, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def is_enabled(record: NotificationSettings | None, kind: str) -> bool:
    """Users without a settings row get the defaults, where every reminder is on."""
    if record is None:
        return True
    return bool(getattr(record, REMINDER_FIELDS[kind][0]))


def reminder_time(record: NotificationSettings | None, kind: str) -> str | None:
    _, column, default = REMINDER_FIELDS[kind]
    if record is None:
        return default
    return getattr(record, column)
