"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading
from typing import Iterable

from apscheduler.schedulers.background import BackgroundScheduler

from tseleskop.core.config import settings
from tseleskop.core.errors import ConfigurationError
from tseleskop.core.logging import configure_logging
from tseleskop.db.session import SessionLocal
from tseleskop.services.ai.service import get_ai_service
from tseleskop.services.job_runner import (
    PlannedReminder,
    plan_daily_notifications,
    run_reminder_for_user,
    run_weekly_reports_for_all_users,
)


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        # The midnight run has not happened yet for today.
        _plan_reminders_job(scheduler)
        if settings.jobs_run_on_startup:
            logger.info("Running weekly reports once on startup")
            _run_weekly_reports_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        _plan_reminders_job,
        trigger="cron",
        hour=settings.daily_job_hour,
        minute=settings.daily_job_minute,
        args=[scheduler],
        id="daily_reminders_job",
        replace_existing=True,
    )
    day_of_week = str(settings.weekly_job_day)
    scheduler.add_job(
        _run_weekly_reports_job,
        trigger="cron",
        day_of_week=day_of_week,
        hour=settings.weekly_job_hour,
        minute=settings.weekly_job_minute,
        id="weekly_reports_job",
        replace_existing=True,
    )
    logger.info(
        "Registered scheduler jobs (daily=%02d:%02d, weekly=%s %02d:%02d %s)",
        settings.daily_job_hour,
        settings.daily_job_minute,
        day_of_week,
        settings.weekly_job_hour,
        settings.weekly_job_minute,
        settings.scheduler_timezone,
    )


def schedule_reminders(scheduler: BackgroundScheduler, planned: Iterable[PlannedReminder]) -> int:
    count = 0
    for reminder in planned:
        scheduler.add_job(
            _run_reminder_job,
            trigger="date",
            run_date=reminder.run_at,
            args=[reminder.user_id, reminder.kind],
            id=reminder.job_id,
            replace_existing=True,
        )
        count += 1
    return count


def _plan_reminders_job(scheduler: BackgroundScheduler) -> None:
    session = SessionLocal()
    try:
        count = schedule_reminders(scheduler, plan_daily_notifications(session))
        logger.info("Daily reminder planning complete: jobs=%s", count)
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Daily reminder planning failed")
    finally:
        session.close()


def _run_reminder_job(user_id: str, kind: str) -> None:
    session = SessionLocal()
    try:
        run_reminder_for_user(session, user_id, kind)
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Reminder %s failed for user %s", kind, user_id)
    finally:
        session.close()


def _run_weekly_reports_job() -> None:
    try:
        ai = get_ai_service()
    except ConfigurationError as exc:
        logger.error("Weekly reports skipped: %s", exc)
        return

    session = SessionLocal()
    try:
        result = run_weekly_reports_for_all_users(session, ai)
        logger.info(
            "Weekly reports job complete: users=%s, reports=%s, failures=%s",
            result.users_processed,
            result.reports_written,
            result.failures,
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Weekly reports job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
