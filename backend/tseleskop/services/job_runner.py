"""Batch job runners for weekly reports and daily reminders."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload
from zoneinfo import ZoneInfo

from tseleskop.core.clock import as_utc, utcnow
from tseleskop.core.config import settings
from tseleskop.db.models.user import User
from tseleskop.observability.metrics import log_metric
from tseleskop.services.ai.service import AIService
from tseleskop.services.notification_settings_service import is_enabled, reminder_time
from tseleskop.services.notifications.base import NotificationResult, NotificationService
from tseleskop.services.notifications.reminders import CHECKS
from tseleskop.services.weekly_report_service import generate_and_store_weekly_report


logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


@dataclass
class JobRunResult:
    users_processed: int
    reports_written: int
    failures: int = 0


@dataclass
class PlannedReminder:
    user_id: str
    kind: str
    run_at: datetime

    @property
    def job_id(self) -> str:
        return f"reminder:{self.kind}:{self.user_id}"


def _users(db: Session) -> List[User]:
    return db.query(User).options(selectinload(User.notification_settings)).order_by(User.id.asc()).all()


def run_weekly_reports_for_all_users(db: Session, ai: AIService, *, now: Optional[datetime] = None) -> JobRunResult:
    """Regenerate and store every user's weekly report; one user's failure does not stop the rest."""
    users_processed = 0
    reports_written = 0
    failures = 0
    for user in _users(db):
        users_processed += 1
        try:
            generate_and_store_weekly_report(db, user, ai, now=now)
        except Exception:
            db.rollback()
            failures += 1
            logger.exception("Weekly report job failed for user %s", user.id)
            continue
        reports_written += 1
    log_metric("jobs.weekly_reports.written", reports_written, metadata={"failures": failures})
    return JobRunResult(users_processed=users_processed, reports_written=reports_written, failures=failures)


def parse_hhmm(value: str | None) -> Optional[time]:
    if not value:
        return None
    match = _HHMM.match(value.strip())
    if not match:
        return None
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def plan_daily_notifications(db: Session, *, now: Optional[datetime] = None) -> List[PlannedReminder]:
    """Reminders still due today in the scheduler timezone, one per user and enabled kind.

    Times already past are skipped; they come round again after the next midnight run.
    """
    tz = ZoneInfo(settings.scheduler_timezone)
    local_now = as_utc(now or utcnow()).astimezone(tz)
    planned: List[PlannedReminder] = []
    for user in _users(db):
        record = user.notification_settings
        for kind in CHECKS:
            if not is_enabled(record, kind):
                continue
            raw = reminder_time(record, kind)
            at = parse_hhmm(raw)
            if at is None:
                if raw:
                    logger.warning("Ignoring malformed %s reminder time %r of user %s", kind, raw, user.id)
                continue
            run_at = datetime.combine(local_now.date(), at, tzinfo=tz)
            if run_at <= local_now:
                continue
            planned.append(PlannedReminder(user_id=user.id, kind=kind, run_at=run_at))
    logger.info("Planned %d reminders for %s", len(planned), local_now.date().isoformat())
    return planned


def run_reminder_for_user(
    db: Session,
    user_id: str,
    kind: str,
    *,
    now: Optional[datetime] = None,
    service: Optional[NotificationService] = None,
) -> NotificationResult:
    user = db.get(User, user_id)
    if not user:
        return NotificationResult(status="skipped", reason="user not found")
    result = CHECKS[kind](db, user, now=now, service=service)
    logger.info("Reminder %s for user %s: %s (%s)", kind, user_id, result.status, result.reason)
    return result
