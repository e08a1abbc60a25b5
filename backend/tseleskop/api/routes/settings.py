"""Notification settings routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tseleskop.api.schemas.settings import NotificationSettingsResponse, NotificationSettingsUpdate
from tseleskop.core.auth import get_current_user
from tseleskop.db.deps import get_db
from tseleskop.db.models.notification_settings import NotificationSettings
from tseleskop.db.models.user import User
from tseleskop.services import notification_settings_service

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=NotificationSettingsResponse)
def get_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> NotificationSettings:
    return notification_settings_service.get_settings(db, user.id)


@router.put("/edit", response_model=NotificationSettingsResponse)
def edit_settings(
    payload: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationSettings:
    return notification_settings_service.update_settings(db, user.id, payload)
