from __future__ import annotations

import io
import json
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tseleskop.api.routes import goal as goal_routes
from tseleskop.core.config import settings
from tseleskop.db.base import Base
from tseleskop.db.deps import get_db
from tseleskop.db.models.friendship import Friendship
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.db.models.user import User
from tseleskop.main import app
from tseleskop.services.ai.errors import TransportError
from tseleskop.services.ai.service import AIService
from tseleskop.services.ai.types import ChatMessage
from tseleskop.services.goal_service import resolve_deadline
from tseleskop.services.storage import ObjectStorage, get_storage
from tseleskop.services.token_service import generate_tokens


class FakeS3:
    def __init__(self) -> None:
        self.puts: List[dict] = []
        self.deletes: List[dict] = []

    def put_object(self, **kwargs) -> None:
        self.puts.append(kwargs)

    def delete_object(self, **kwargs) -> None:
        self.deletes.append(kwargs)


class FakeCompleter:
    def __init__(self, *replies: str, error: Optional[Exception] = None) -> None:
        self.replies = list(replies)
        self.error = error

    def complete(self, messages: Sequence[ChatMessage], system_prompt: Optional[str] = None) -> str:
        if self.error:
            raise self.error
        return self.replies.pop(0)


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    s3 = FakeS3()
    storage = ObjectStorage(bucket="tseleskop-test", region="eu-north-1", access_key="k", secret_key="s", client=s3)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal, s3
    app.dependency_overrides.clear()


def _seed_user(Session, user_id: str = "1") -> dict:
    with Session() as session:
        session.add(User(id=user_id, first_name=f"User {user_id}", invite_code=f"invite_{user_id}", chat_id=user_id))
        session.commit()
    return {"Authorization": f"Bearer {generate_tokens(user_id).access_token}"}


def _seed_goal(Session, user_id: str, *, privacy: str = "PRIVATE", title: str = "Цель", sub_goals=()) -> int:
    with Session() as session:
        goal = Goal(
            user_id=user_id,
            title=title,
            description="Описание",
            privacy=privacy,
            urgency_level="LOW",
            deadline=datetime.now(timezone.utc) + timedelta(days=90),
        )
        for description, completed in sub_goals:
            goal.sub_goals.append(
                SubGoal(
                    description=description,
                    deadline=datetime.now(timezone.utc) + timedelta(days=10),
                    is_completed=completed,
                    completed_at=datetime.now(timezone.utc) if completed else None,
                )
            )
        session.add(goal)
        session.commit()
        return goal.id


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (8, 8), (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


def _info(**overrides) -> str:
    payload = {
        "title": "Пробежать марафон",
        "description": "Подготовиться и пробежать 42 км",
        "specific": "42 км",
        "measurable": "Финиш",
        "attainable": "Тренировки",
        "relevant": "Здоровье",
        "award": "Медаль",
        "urgencyLevel": "HIGH",
        "privacy": "PUBLIC",
        "deadline": "6_MONTHS",
        "subGoals": [
            {"description": "10 км", "deadline": "2025-05-01T00:00:00.000Z"},
            {"description": "5 км", "deadline": "2025-04-01T00:00:00.000Z"},
        ],
    }
    payload.update(overrides)
    return json.dumps({key: value for key, value in payload.items() if value is not None})


def test_create_goal_without_image_uses_placeholder(client):
    test_client, Session, s3 = client
    headers = _seed_user(Session)

    response = test_client.post("/api/goal/create", data={"info": _info()}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Пробежать марафон"
    assert body["userId"] == "1"
    assert body["urgencyLevel"] == "HIGH"
    assert body["privacy"] == "PUBLIC"
    assert body["imageUrl"] == settings.placeholder_image_url
    assert body["isCompleted"] is False
    assert body["deadline"].startswith(resolve_deadline("6_MONTHS").date().isoformat())
    assert body["deadline"].endswith("Z")
    assert [sub["description"] for sub in body["subGoals"]] == ["5 км", "10 км"]
    assert body["subGoals"][0]["deadline"] == "2025-04-01T00:00:00.000Z"
    assert s3.puts == []


def test_create_goal_with_image_uploads_jpeg(client):
    test_client, Session, s3 = client
    headers = _seed_user(Session)

    response = test_client.post(
        "/api/goal/create",
        data={"info": _info(subGoals=None)},
        files={"image": ("photo.png", _png(), "image/png")},
        headers=headers,
    )

    assert response.status_code == 200
    assert len(s3.puts) == 1
    upload = s3.puts[0]
    assert upload["Bucket"] == "tseleskop-test"
    assert upload["ContentType"] == "image/jpeg"
    assert upload["Body"][:3] == b"\xff\xd8\xff"
    assert upload["Key"].startswith("goal-") and upload["Key"].endswith(".jpg")
    assert response.json()["imageUrl"] == f"https://tseleskop-test.s3.eu-north-1.amazonaws.com/{upload['Key']}"


def test_manual_goal_without_description_is_rejected(client):
    test_client, Session, _ = client
    headers = _seed_user(Session)

    response = test_client.post("/api/goal/create", data={"info": _info(description=None)}, headers=headers)

    assert response.status_code == 400
    assert "Описание цели обязательно" in response.json()["error"]


@pytest.mark.parametrize("info", ["{not json", "[1, 2]", json.dumps({"title": "x"})])
def test_malformed_info_is_a_bad_request(client, info):
    test_client, Session, _ = client
    headers = _seed_user(Session)

    response = test_client.post("/api/goal/create", data={"info": info}, headers=headers)

    assert response.status_code == 400
    assert response.json()["status"] == 400


def test_template_goal_gets_ai_description_and_defaults(client, monkeypatch):
    test_client, Session, _ = client
    headers = _seed_user(Session)
    ai = AIService(FakeCompleter("Читать по 20 страниц каждый день.", '[{"description": "Выбрать книгу"}]'))
    monkeypatch.setattr(goal_routes, "get_ai_service", lambda: ai)
    info = json.dumps({"source": "template", "title": "Читать книги", "shortDescription": "Больше читать", "deadline": "3_MONTHS"})

    response = test_client.post("/api/goal/create-from-template", data={"info": info}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Читать по 20 страниц каждый день."
    assert body["specific"] == "-"
    assert body["award"] == "-"
    assert body["urgencyLevel"] == "LOW"
    assert body["privacy"] == "PRIVATE"


def test_template_goal_falls_back_to_short_description_when_ai_fails(client, monkeypatch):
    test_client, Session, _ = client
    headers = _seed_user(Session)
    ai = AIService(FakeCompleter(error=TransportError("timeout")))
    monkeypatch.setattr(goal_routes, "get_ai_service", lambda: ai)
    info = json.dumps({"source": "template", "title": "Бегать", "shortDescription": "По утрам", "deadline": "1_YEAR"})

    response = test_client.post("/api/goal/create", data={"info": info}, headers=headers)

    assert response.status_code == 200
    assert response.json()["description"] == "По утрам"


def test_list_goals_returns_only_own_goals(client):
    test_client, Session, _ = client
    headers = _seed_user(Session, "1")
    _seed_user(Session, "2")
    _seed_goal(Session, "1", title="Моя")
    _seed_goal(Session, "2", title="Чужая")

    response = test_client.get("/api/goal", headers=headers)

    assert response.status_code == 200
    assert [goal["title"] for goal in response.json()] == ["Моя"]


def test_friend_goals_include_only_public_goals_of_friends(client):
    test_client, Session, _ = client
    headers = _seed_user(Session, "1")
    _seed_user(Session, "2")
    _seed_user(Session, "3")
    _seed_goal(Session, "2", privacy="PUBLIC", title="Открытая")
    _seed_goal(Session, "2", privacy="PRIVATE", title="Скрытая")
    _seed_goal(Session, "3", privacy="PUBLIC", title="Не друг")
    with Session() as session:
        session.add(Friendship(first_user_id="2", second_user_id="1"))
        session.commit()

    response = test_client.get("/api/goal/friends", headers=headers)

    assert response.status_code == 200
    assert [goal["title"] for goal in response.json()] == ["Открытая"]


def test_get_goal_of_another_user_is_not_found(client):
    test_client, Session, _ = client
    headers = _seed_user(Session, "1")
    _seed_user(Session, "2")
    goal_id = _seed_goal(Session, "2")

    assert test_client.get(f"/api/goal/{goal_id}", headers=headers).status_code == 404
    assert test_client.get("/api/goal/999", headers=headers).status_code == 404


def test_update_reconciles_sub_goals_by_description(client):
    test_client, Session, _ = client
    headers = _seed_user(Session)
    goal_id = _seed_goal(Session, "1", sub_goals=[("Оставить", True), ("Удалить", False)])
    info = json.dumps(
        {
            "title": "Новое название",
            "description": "",
            "privacy": None,
            "subGoals": [
                {"description": "Оставить", "deadline": "2025-06-01T00:00:00.000Z"},
                {"description": "Добавить", "deadline": "2025-07-01T00:00:00.000Z"},
            ],
        }
    )

    response = test_client.put(f"/api/goal/{goal_id}", data={"info": info}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Новое название"
    assert body["description"] == "Описание"
    assert body["privacy"] == "PRIVATE"
    subs = {sub["description"]: sub for sub in body["subGoals"]}
    assert set(subs) == {"Оставить", "Добавить"}
    assert subs["Оставить"]["isCompleted"] is True
    assert subs["Оставить"]["deadline"] == "2025-06-01T00:00:00.000Z"
    assert subs["Добавить"]["isCompleted"] is False
    with Session() as session:
        assert session.query(SubGoal).filter(SubGoal.description == "Удалить").count() == 0


def test_update_other_users_goal_is_forbidden(client):
    test_client, Session, _ = client
    headers = _seed_user(Session, "1")
    _seed_user(Session, "2")
    goal_id = _seed_goal(Session, "2")

    response = test_client.put(f"/api/goal/{goal_id}", data={"info": json.dumps({"title": "x"})}, headers=headers)
    missing = test_client.put("/api/goal/999", data={"info": json.dumps({"title": "x"})}, headers=headers)

    assert response.status_code == 403
    assert missing.status_code == 404


def test_complete_goal_requires_image(client):
    test_client, Session, _ = client
    headers = _seed_user(Session)
    goal_id = _seed_goal(Session, "1")

    response = test_client.post(f"/api/goal/{goal_id}/complete", headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Необходимо загрузить изображение для закрытия цели"


def test_complete_goal_with_image(client):
    test_client, Session, s3 = client
    headers = _seed_user(Session)
    goal_id = _seed_goal(Session, "1")

    response = test_client.post(
        f"/api/goal/{goal_id}/complete",
        files={"image": ("done.png", _png(), "image/png")},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["isCompleted"] is True
    assert body["completedAt"].endswith("Z")
    assert s3.puts[0]["Key"].startswith(f"goal-{goal_id}-")
    assert body["imageUrl"].endswith(s3.puts[0]["Key"])


def test_complete_missing_goal_is_not_found(client):
    test_client, Session, s3 = client
    headers = _seed_user(Session)

    response = test_client.post(
        "/api/goal/999/complete",
        files={"image": ("done.png", _png(), "image/png")},
        headers=headers,
    )

    assert response.status_code == 404
    assert s3.puts == []


def test_sub_goal_complete_and_uncomplete(client):
    test_client, Session, _ = client
    headers = _seed_user(Session)
    _seed_goal(Session, "1", sub_goals=[("Шаг", False)])
    with Session() as session:
        sub_goal_id = session.query(SubGoal).one().id

    done = test_client.post(f"/api/goal/sub-goal/{sub_goal_id}/complete", headers=headers)
    assert done.status_code == 200
    assert done.json()["isCompleted"] is True
    assert done.json()["completedAt"] is not None

    undone = test_client.post(f"/api/goal/sub-goal/{sub_goal_id}/uncomplete", headers=headers)
    assert undone.status_code == 200
    assert undone.json()["isCompleted"] is False
    assert undone.json()["completedAt"] is None


def test_sub_goal_of_another_user_is_forbidden(client):
    test_client, Session, _ = client
    headers = _seed_user(Session, "1")
    _seed_user(Session, "2")
    _seed_goal(Session, "2", sub_goals=[("Чужой шаг", False)])
    with Session() as session:
        sub_goal_id = session.query(SubGoal).one().id

    assert test_client.post(f"/api/goal/sub-goal/{sub_goal_id}/complete", headers=headers).status_code == 403
    assert test_client.post("/api/goal/sub-goal/999/uncomplete", headers=headers).status_code == 404


def test_oversized_upload_is_rejected(client, monkeypatch):
    test_client, Session, s3 = client
    headers = _seed_user(Session)
    monkeypatch.setattr(settings, "max_upload_bytes", 16)

    response = test_client.post(
        "/api/goal/create",
        data={"info": _info()},
        files={"image": ("big.png", _png(), "image/png")},
        headers=headers,
    )

    assert response.status_code == 413
    assert s3.puts == []
