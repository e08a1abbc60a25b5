"""Goal and sub-goal routes. Create and update take multipart ``info`` JSON plus an optional ``image``."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from tseleskop.api.schemas.goal import GoalCreateRequest, GoalResponse, GoalUpdateRequest, SubGoalResponse
from tseleskop.api.uploads import parse_info, read_image
from tseleskop.core.auth import get_current_user
from tseleskop.core.errors import ApiError
from tseleskop.db.deps import get_db
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.db.models.user import User
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services import goal_service
from tseleskop.services.ai.service import get_ai_service
from tseleskop.services.ai.types import GoalFromTemplateInput, GoalFromTemplateResult
from tseleskop.services.storage import ObjectStorage, get_storage, object_key

router = APIRouter(prefix="/api/goal", tags=["goals"])


def _upload_goal_image(image: Optional[UploadFile], storage: ObjectStorage) -> Optional[str]:
    jpeg = read_image(image)
    if jpeg is None:
        return None
    return storage.upload(jpeg, object_key("goal"))


def _generate_from_template(data: GoalFromTemplateInput) -> GoalFromTemplateResult:
    return get_ai_service().generate_goal_from_template(data)


def _create(
    db: Session,
    user: User,
    payload: GoalCreateRequest,
    image: Optional[UploadFile],
    storage: ObjectStorage,
    *,
    from_template: bool,
) -> Goal:
    if from_template:
        payload = goal_service.fill_description(payload, _generate_from_template)
    metadata = {"route": "/api/goal/create", "template": from_template, "sub_goals": len(payload.sub_goals or [])}
    with trace("goal.create", metadata=metadata, user_id=user.id):
        image_url = _upload_goal_image(image, storage)
        goal = goal_service.create_goal(db, user.id, payload, image_url=image_url)
    log_metric("goal.create.success", 1, metadata={"template": from_template})
    return goal


@router.post("/create", response_model=GoalResponse)
def create_goal(
    info: str = Form(...),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> Goal:
    payload = parse_info(info, GoalCreateRequest)
    return _create(db, user, payload, image, storage, from_template=payload.source == "template")


@router.post("/create-from-template", response_model=GoalResponse)
def create_goal_from_template(
    info: str = Form(...),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> Goal:
    payload = parse_info(info, GoalCreateRequest)
    return _create(db, user, payload, image, storage, from_template=True)


@router.get("", response_model=List[GoalResponse])
def list_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Goal]:
    goals = goal_service.list_goals(db, user.id)
    log_metric("goal.list.count", len(goals))
    return goals


@router.get("/friends", response_model=List[GoalResponse])
def list_friend_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[Goal]:
    return goal_service.list_friend_goals(db, user.id)


@router.post("/{goal_id}/complete", response_model=GoalResponse)
def complete_goal(
    goal_id: int,
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> Goal:
    """Close a goal; a photo of the result is mandatory."""
    jpeg = read_image(image)
    if jpeg is None:
        raise ApiError.bad_request("Необходимо загрузить изображение для закрытия цели")
    goal_service.owned_goal(db, user.id, goal_id, "complete")
    with trace("goal.complete", metadata={"goal_id": goal_id}, user_id=user.id):
        image_url = storage.upload(jpeg, object_key(f"goal-{goal_id}"))
        return goal_service.complete_goal(db, user.id, goal_id, image_url)


@router.post("/sub-goal/{sub_goal_id}/complete", response_model=SubGoalResponse)
def complete_sub_goal(
    sub_goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubGoal:
    return goal_service.set_sub_goal_completed(db, user.id, sub_goal_id, True)


@router.post("/sub-goal/{sub_goal_id}/uncomplete", response_model=SubGoalResponse)
def uncomplete_sub_goal(
    sub_goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubGoal:
    return goal_service.set_sub_goal_completed(db, user.id, sub_goal_id, False)


@router.get("/{goal_id}", response_model=GoalResponse)
def get_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Goal:
    return goal_service.get_goal(db, user.id, goal_id)


@router.put("/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: int,
    info: str = Form(...),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> Goal:
    payload = parse_info(info, GoalUpdateRequest, drop_empty=True)
    image_url = _upload_goal_image(image, storage)
    return goal_service.update_goal(db, user.id, goal_id, payload, image_url=image_url)
