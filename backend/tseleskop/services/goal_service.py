"""Goal and sub-goal persistence rules."""
from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session, selectinload

from tseleskop.api.schemas.goal import GoalCreateRequest, GoalUpdateRequest
from tseleskop.core.clock import utcnow
from tseleskop.core.config import settings
from tseleskop.core.errors import ApiError, ConfigurationError
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.observability.metrics import log_metric
from tseleskop.services.ai.errors import AIServiceError
from tseleskop.services.ai.types import GoalFromTemplateInput, GoalFromTemplateResult
from tseleskop.services.friendship_service import friend_ids

logger = logging.getLogger(__name__)

DEADLINE_MONTHS = {"3_MONTHS": 3, "6_MONTHS": 6, "1_YEAR": 12}
SMART_FIELDS = ("specific", "measurable", "attainable", "relevant", "award")


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_deadline(preset: str, now: Optional[datetime] = None) -> datetime:
    """Turn ``3_MONTHS`` / ``6_MONTHS`` / ``1_YEAR`` into a concrete UTC timestamp."""
    months = DEADLINE_MONTHS.get(preset)
    if months is None:
        raise ApiError.bad_request(f"Неизвестный срок цели: {preset}")
    return _add_months(now or utcnow(), months)


def fill_description(
    payload: GoalCreateRequest,
    generate: Callable[[GoalFromTemplateInput], GoalFromTemplateResult],
) -> GoalCreateRequest:
    """Expand the short description of a template goal into a full one.

    Payloads that already carry a description, or have nothing to expand, are
    returned unchanged. When the AI call fails the short description is used.
    """
    if payload.description or not payload.short_description:
        return payload

    description = payload.short_description
    try:
        result = generate(
            GoalFromTemplateInput(
                template=payload.title,
                short_description=payload.short_description,
                deadline=payload.deadline,
                context=payload.short_description,
            )
        )
        description = result.description or description
    except (AIServiceError, ConfigurationError) as exc:
        logger.warning("AI description failed for template goal %r, using the short description: %s", payload.title, exc)
        log_metric("goal.template_description.fallback", 1)
    return payload.model_copy(update={"description": description})


def create_goal(db: Session, user_id: str, payload: GoalCreateRequest, *, image_url: Optional[str] = None) -> Goal:
    if not payload.description:
        raise ApiError.bad_request("Описание цели обязательно. Укажите description или shortDescription")

    goal = Goal(
        user_id=user_id,
        title=payload.title,
        description=payload.description,
        urgency_level=payload.urgency_level or "LOW",
        privacy=payload.privacy or "PRIVATE",
        deadline=resolve_deadline(payload.deadline),
        image_url=image_url or payload.image_url or settings.placeholder_image_url,
        **{field: getattr(payload, field) or "-" for field in SMART_FIELDS},
    )
    for sub_goal in payload.sub_goals or []:
        goal.sub_goals.append(SubGoal(description=sub_goal.description, deadline=sub_goal.deadline))
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info("Goal %s created with %d sub-goals", goal.id, len(goal.sub_goals))
    return goal


def _goals_query(db: Session):
    return db.query(Goal).options(selectinload(Goal.sub_goals)).order_by(Goal.created_at.asc(), Goal.id.asc())


def list_goals(db: Session, user_id: str) -> List[Goal]:
    return _goals_query(db).filter(Goal.user_id == user_id).all()


def list_friend_goals(db: Session, user_id: str) -> List[Goal]:
    ids = friend_ids(db, user_id)
    if not ids:
        return []
    return _goals_query(db).filter(Goal.user_id.in_(ids), Goal.privacy == "PUBLIC").all()


def get_goal(db: Session, user_id: str, goal_id: int) -> Goal:
    goal = _goals_query(db).filter(Goal.id == goal_id, Goal.user_id == user_id).one_or_none()
    if not goal:
        raise ApiError.not_found("Цель не найдена")
    return goal


def owned_goal(db: Session, user_id: str, goal_id: int, action: str) -> Goal:
    goal = db.get(Goal, goal_id)
    if not goal:
        raise ApiError.not_found("Goal not found")
    if goal.user_id != user_id:
        raise ApiError.forbidden(f"Not authorized to {action} this goal")
    return goal


def complete_goal(db: Session, user_id: str, goal_id: int, image_url: str) -> Goal:
    goal = owned_goal(db, user_id, goal_id, "complete")
    goal.is_completed = True
    goal.completed_at = utcnow()
    goal.image_url = image_url
    db.add(goal)
    db.commit()
    db.refresh(goal)
    log_metric("goal.completed", 1)
    return goal


def update_goal(
    db: Session,
    user_id: str,
    goal_id: int,
    payload: GoalUpdateRequest,
    *,
    image_url: Optional[str] = None,
) -> Goal:
    """Apply a partial update; sub-goals are reconciled by description.

    Existing sub-goals keep their completion state, new descriptions are
    inserted, and sub-goals missing from the payload are deleted.
    """
    goal = owned_goal(db, user_id, goal_id, "update")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"sub_goals", "deadline"})
    for field, value in changes.items():
        setattr(goal, field, value)
    if payload.deadline:
        goal.deadline = resolve_deadline(payload.deadline)
    if image_url:
        goal.image_url = image_url

    if payload.sub_goals is not None:
        existing = {sub_goal.description: sub_goal for sub_goal in goal.sub_goals}
        wanted = set()
        for item in payload.sub_goals:
            wanted.add(item.description)
            current = existing.get(item.description)
            if current:
                current.deadline = item.deadline
            else:
                goal.sub_goals.append(SubGoal(description=item.description, deadline=item.deadline))
        for description, sub_goal in existing.items():
            if description not in wanted:
                goal.sub_goals.remove(sub_goal)

    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


def set_sub_goal_completed(db: Session, user_id: str, sub_goal_id: int, completed: bool) -> SubGoal:
    sub_goal = db.get(SubGoal, sub_goal_id)
    if not sub_goal:
        raise ApiError.not_found("Sub-goal not found")
    if sub_goal.goal.user_id != user_id:
        action = "complete" if completed else "uncomplete"
        raise ApiError.forbidden(f"Not authorized to {action} this sub-goal")

    sub_goal.is_completed = completed
    sub_goal.completed_at = utcnow() if completed else None
    db.add(sub_goal)
    db.commit()
    db.refresh(sub_goal)
    return sub_goal
