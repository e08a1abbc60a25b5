from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tseleskop.db.base import Base
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.db.models.user import User
from tseleskop.db.models.weekly_report import WeeklyReport
from tseleskop.services.ai.service import AIService
from tseleskop.services.ai.types import ChatMessage
from tseleskop.services.weekly_report_service import (
    build_weekly_data_for_user,
    generate_and_store_weekly_report,
    get_all_reports,
    humanize_days,
    save_weekly_report,
    week_start_for,
)

NOW = datetime(2025, 3, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    with TestingSession() as session:
        session.add(User(id="1", first_name="Оля", invite_code="invite_1"))
        session.commit()
        yield session


class EchoCompleter:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts = []

    def complete(self, messages: Sequence[ChatMessage], system_prompt: Optional[str] = None) -> str:
        self.prompts.append(messages[-1].content)
        return self.reply


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (-3, "0 дней"),
        (0, "0 дней"),
        (5, "5 дн"),
        (7, "1 неделя"),
        (17, "2 недели 3 дн"),
        (35, "5 недель"),
        (155, "22 недели 1 дн"),
    ],
)
def test_humanize_days(days, expected) -> None:
    assert humanize_days(days) == expected


def test_week_start_is_monday() -> None:
    assert week_start_for(NOW) == date(2025, 3, 3)
    assert week_start_for(datetime(2025, 3, 3, 0, 0, tzinfo=timezone.utc)) == date(2025, 3, 3)


def test_weekly_data_covers_active_and_recently_completed_goals(db_session) -> None:
    active = Goal(
        user_id="1",
        title="Марафон",
        description="42 км",
        deadline=NOW + timedelta(days=16, hours=1),
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    active.sub_goals.append(
        SubGoal(description="10 км", deadline=NOW, is_completed=True, completed_at=NOW - timedelta(days=2))
    )
    active.sub_goals.append(
        SubGoal(description="5 км", deadline=NOW, is_completed=True, completed_at=NOW - timedelta(days=20))
    )
    active.sub_goals.append(SubGoal(description="21 км", deadline=NOW + timedelta(days=10)))
    recent = Goal(
        user_id="1",
        title="Книга",
        description="-",
        deadline=NOW,
        is_completed=True,
        completed_at=NOW - timedelta(days=1),
    )
    old = Goal(
        user_id="1",
        title="Старое",
        description="-",
        deadline=NOW,
        is_completed=True,
        completed_at=NOW - timedelta(days=30),
    )
    db_session.add_all([active, recent, old])
    db_session.commit()

    data = build_weekly_data_for_user(db_session, "1", now=NOW)

    assert len(data.goals_summary) == 1
    progress = data.goals_summary[0]
    assert progress.title == "Марафон"
    assert progress.created_at == "2025-01-01"
    assert progress.time_left_days == 17
    assert progress.time_left_human == "2 недели 3 дн"
    assert (progress.completed, progress.total) == (2, 3)
    assert [task.description for task in progress.completed_tasks] == ["10 км"]
    assert progress.completed_tasks[0].date_completed == "2025-03-03"
    assert [task.description for task in progress.pending_tasks] == ["21 км"]
    assert [goal.title for goal in data.completed_goals] == ["Книга"]
    assert data.completed_goals[0].completed_at == "2025-03-04T12:00:00.000Z"


def test_saving_twice_in_one_week_updates_the_report(db_session) -> None:
    first = save_weekly_report(db_session, "1", "первый", date(2025, 3, 3))
    second = save_weekly_report(db_session, "1", "второй", date(2025, 3, 3))
    save_weekly_report(db_session, "1", "прошлый", date(2025, 2, 24))
    db_session.commit()

    assert first.id == second.id
    assert db_session.query(WeeklyReport).count() == 2
    assert [report.text for report in get_all_reports(db_session, "1")] == ["второй", "прошлый"]


def test_generate_and_store_caches_text_on_user(db_session) -> None:
    completer = EchoCompleter("**Хорошая** неделя.")
    user = db_session.get(User, "1")

    record = generate_and_store_weekly_report(db_session, user, AIService(completer, clock=lambda: NOW), now=NOW)

    assert record.text == "Хорошая неделя."
    assert record.week_start == date(2025, 3, 3)
    assert db_session.get(User, "1").week_report == "Хорошая неделя."
    assert "Оля" in completer.prompts[0]
