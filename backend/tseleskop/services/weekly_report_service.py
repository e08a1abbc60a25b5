"""Weekly progress data, AI report generation and report storage."""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from tseleskop.core.clock import as_utc, iso_z, utcnow
from tseleskop.db.models.goal import Goal
from tseleskop.db.models.user import User
from tseleskop.db.models.weekly_report import WeeklyReport
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services.ai.prompts import DEFAULT_USER_NAME
from tseleskop.services.ai.service import AIService
from tseleskop.services.ai.types import (
    CompletedGoal,
    CompletedTask,
    GoalProgress,
    PendingTask,
    WeeklyReportInput,
)

logger = logging.getLogger(__name__)

WINDOW_DAYS = 7
MAX_TASKS_PER_GOAL = 10


def _plural(count: int, one: str, few: str, many: str) -> str:
    if count % 10 == 1 and count % 100 != 11:
        return one
    if 2 <= count % 10 <= 4 and not 12 <= count % 100 <= 14:
        return few
    return many


def humanize_days(days: int) -> str:
    """``17`` -> ``"2 недели 3 дн"``; zero or negative -> ``"0 дней"``."""
    if days <= 0:
        return "0 дней"
    weeks, rest = divmod(days, 7)
    parts = []
    if weeks:
        parts.append(f"{weeks} {_plural(weeks, 'неделя', 'недели', 'недель')}")
    if rest:
        parts.append(f"{rest} дн")
    return " ".join(parts)


def _day(value: datetime) -> str:
    return as_utc(value).date().isoformat()


def _goal_progress(goal: Goal, now: datetime, since: datetime) -> GoalProgress:
    deadline = as_utc(goal.deadline)
    days_left = max(0, math.ceil((deadline - now).total_seconds() / 86400))
    sub_goals = goal.sub_goals

    completed_tasks = [
        CompletedTask(description=sub.description, date_completed=_day(sub.completed_at))
        for sub in sub_goals
        if sub.is_completed and sub.completed_at and as_utc(sub.completed_at) >= since
    ][:MAX_TASKS_PER_GOAL]
    pending_tasks = [
        PendingTask(description=sub.description, deadline=_day(sub.deadline))
        for sub in sub_goals
        if not sub.is_completed and sub.deadline
    ][:MAX_TASKS_PER_GOAL]

    return GoalProgress(
        title=goal.title,
        created_at=_day(goal.created_at),
        deadline_at=_day(deadline),
        time_left_days=days_left,
        time_left_human=humanize_days(days_left),
        completed=sum(1 for sub in sub_goals if sub.is_completed),
        total=len(sub_goals),
        completed_tasks=completed_tasks,
        pending_tasks=pending_tasks,
    )


def build_weekly_data_for_user(db: Session, user_id: str, now: Optional[datetime] = None) -> WeeklyReportInput:
    """Progress of active goals plus goals completed during the last seven days."""
    now = as_utc(now) if now else utcnow()
    since = now - timedelta(days=WINDOW_DAYS)
    goals = (
        db.query(Goal)
        .options(selectinload(Goal.sub_goals))
        .filter(Goal.user_id == user_id)
        .order_by(Goal.created_at.asc(), Goal.id.asc())
        .all()
    )

    goals_summary = [_goal_progress(goal, now, since) for goal in goals if not goal.is_completed]
    completed_goals = [
        CompletedGoal(title=goal.title, completed_at=iso_z(goal.completed_at), created_at=iso_z(goal.created_at))
        for goal in goals
        if goal.is_completed and goal.completed_at and as_utc(goal.completed_at) >= since
    ]
    return WeeklyReportInput(goals_summary=goals_summary, completed_goals=completed_goals)


def week_start_for(value: datetime) -> date:
    """Monday of the ISO week containing ``value``."""
    day = as_utc(value).date()
    return day - timedelta(days=day.weekday())


def save_weekly_report(db: Session, user_id: str, text: str, week_start: date) -> WeeklyReport:
    record = (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == user_id, WeeklyReport.week_start == week_start)
        .one_or_none()
    )
    if record:
        record.text = text
        record.updated_at = utcnow()
    else:
        record = WeeklyReport(user_id=user_id, week_start=week_start, text=text)
        db.add(record)
    db.flush()
    return record


def get_all_reports(db: Session, user_id: str) -> List[WeeklyReport]:
    return (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == user_id)
        .order_by(WeeklyReport.week_start.desc())
        .all()
    )


def generate_and_store_weekly_report(
    db: Session,
    user: User,
    ai: AIService,
    now: Optional[datetime] = None,
) -> WeeklyReport:
    """Build the user's weekly data, ask the model for a report and persist it.

    The text is stored per week and cached on the user row. AI failures propagate.
    """
    now = as_utc(now) if now else utcnow()
    data = build_weekly_data_for_user(db, user.id, now=now)
    data.user_name = user.first_name or DEFAULT_USER_NAME

    with trace("weekly_report.generate", metadata={"goals": len(data.goals_summary)}, user_id=user.id):
        text = ai.generate_weekly_report(data)

    record = save_weekly_report(db, user.id, text, week_start_for(now))
    user.week_report = text
    db.add(user)
    db.commit()
    db.refresh(record)
    log_metric("weekly_report.stored", 1, metadata={"user_id": user.id})
    return record
