"""Deadline reminders delivered to a user's Telegram chat."""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from zoneinfo import ZoneInfo

from tseleskop.core.clock import as_utc, utcnow
from tseleskop.core.config import settings
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.db.models.notification_settings import NotificationSettings
from tseleskop.db.models.user import User
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services.notification_settings_service import is_enabled
from tseleskop.services.notifications.base import NotificationResult, NotificationService
from tseleskop.services.notifications.factory import get_notification_service


logger = logging.getLogger(__name__)

MONTHLY_WINDOW_DAYS = 30
MAX_LISTED_ITEMS = 10


def deliver(
    user: User,
    text: str,
    *,
    kind: str,
    service: Optional[NotificationService] = None,
) -> NotificationResult:
    """Send ``text`` to the user's chat unless notifications are off or no chat is known."""
    if not settings.notifications_enabled:
        return NotificationResult(status="skipped", reason="notifications disabled")
    if not user.chat_id:
        return NotificationResult(status="skipped", reason="missing chat id")

    service = service or get_notification_service()
    metadata = {
        "kind": kind,
        "provider": settings.notifications_provider,
        "llm_input_text": text[:500],
    }
    with trace(f"notifications.{kind}", metadata=metadata, user_id=user.id) as notification_trace:
        result = service.send_message(chat_id=user.chat_id, text=text)
        if notification_trace:
            notification_trace.update(output={"status": result.status, "reason": result.reason})
    log_metric(f"notifications.{kind}.{result.status}", 1)
    return result


def _local_day_bounds(now: datetime, offset_days: int) -> Tuple[datetime, datetime]:
    """UTC bounds of the local calendar day ``offset_days`` after ``now``."""
    tz = ZoneInfo(settings.scheduler_timezone)
    local_day = as_utc(now).astimezone(tz).date() + timedelta(days=offset_days)
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    return as_utc(start), as_utc(start + timedelta(days=1))


def _open_sub_goals(db: Session, user_id: str, start: datetime, end: datetime) -> List[SubGoal]:
    return (
        db.query(SubGoal)
        .join(Goal, SubGoal.goal_id == Goal.id)
        .filter(
            Goal.user_id == user_id,
            Goal.is_completed.is_(False),
            SubGoal.is_completed.is_(False),
            SubGoal.deadline >= start,
            SubGoal.deadline < end,
        )
        .order_by(SubGoal.deadline.asc(), SubGoal.id.asc())
        .all()
    )


def _sub_goal_lines(sub_goals: List[SubGoal]) -> str:
    lines = [f"- {sub.description} (цель «{sub.goal.title}»)" for sub in sub_goals[:MAX_LISTED_ITEMS]]
    if len(sub_goals) > MAX_LISTED_ITEMS:
        lines.append(f"и ещё {len(sub_goals) - MAX_LISTED_ITEMS}")
    return "\n".join(lines)


def _allowed(db: Session, user: User, kind: str) -> bool:
    return is_enabled(db.get(NotificationSettings, user.id), kind)


def check_today_sub_goals(
    db: Session,
    user: User,
    *,
    now: Optional[datetime] = None,
    service: Optional[NotificationService] = None,
) -> NotificationResult:
    if not _allowed(db, user, "today"):
        return NotificationResult(status="skipped", reason="preferences disabled")
    start, end = _local_day_bounds(now or utcnow(), 0)
    sub_goals = _open_sub_goals(db, user.id, start, end)
    if not sub_goals:
        return NotificationResult(status="skipped", reason="nothing due")
    text = "Сегодня истекает срок подцелей:\n" + _sub_goal_lines(sub_goals)
    return deliver(user, text, kind="today", service=service)


def check_tomorrow_sub_goals(
    db: Session,
    user: User,
    *,
    now: Optional[datetime] = None,
    service: Optional[NotificationService] = None,
) -> NotificationResult:
    if not _allowed(db, user, "tomorrow"):
        return NotificationResult(status="skipped", reason="preferences disabled")
    start, end = _local_day_bounds(now or utcnow(), 1)
    sub_goals = _open_sub_goals(db, user.id, start, end)
    if not sub_goals:
        return NotificationResult(status="skipped", reason="nothing due")
    text = "Завтра истекает срок подцелей:\n" + _sub_goal_lines(sub_goals)
    return deliver(user, text, kind="tomorrow", service=service)


def check_monthly_deadlines(
    db: Session,
    user: User,
    *,
    now: Optional[datetime] = None,
    service: Optional[NotificationService] = None,
) -> NotificationResult:
    """Goals whose deadline falls within the next 30 days."""
    if not _allowed(db, user, "monthly"):
        return NotificationResult(status="skipped", reason="preferences disabled")
    now = as_utc(now) if now else utcnow()
    goals = (
        db.query(Goal)
        .filter(
            Goal.user_id == user.id,
            Goal.is_completed.is_(False),
            Goal.deadline >= now,
            Goal.deadline <= now + timedelta(days=MONTHLY_WINDOW_DAYS),
        )
        .order_by(Goal.deadline.asc(), Goal.id.asc())
        .all()
    )
    if not goals:
        return NotificationResult(status="skipped", reason="nothing due")

    tz = ZoneInfo(settings.scheduler_timezone)
    lines = [
        f"- {goal.title}: до {as_utc(goal.deadline).astimezone(tz).strftime('%d.%m.%Y')}"
        for goal in goals[:MAX_LISTED_ITEMS]
    ]
    text = "В ближайший месяц истекает срок целей:\n" + "\n".join(lines)
    return deliver(user, text, kind="monthly", service=service)


CHECKS = {
    "today": check_today_sub_goals,
    "tomorrow": check_tomorrow_sub_goals,
    "monthly": check_monthly_deadlines,
}
