"""Helpers for working with users."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tseleskop.api.schemas.user import UserEditRequest
from tseleskop.core.errors import ApiError
from tseleskop.db.models.user import User
from tseleskop.services.storage import ObjectStorage, StorageError, key_from_url, object_key

logger = logging.getLogger(__name__)


def get_user_by_invite_code(db: Session, invite_code: str) -> User:
    user = db.query(User).filter(User.invite_code == invite_code).one_or_none()
    if not user:
        raise ApiError.not_found("Пользователь с таким кодом приглашения не найден")
    return user


def edit_user(db: Session, user: User, payload: UserEditRequest) -> User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def edit_user_photo(db: Session, user: User, jpeg: bytes, storage: ObjectStorage) -> User:
    """Upload the new photo, then drop the previous object if it lives in our bucket."""
    old_url = user.photo_url
    user.photo_url = storage.upload(jpeg, object_key(f"user-{user.id}"))
    db.add(user)
    db.commit()
    db.refresh(user)

    # Telegram-hosted avatars are not ours to delete.
    old_key = key_from_url(old_url)
    if old_key and old_url and old_url.startswith(storage.public_url("")):
        try:
            storage.delete(old_key)
        except StorageError:
            logger.warning("Could not delete previous photo %s of user %s", old_key, user.id)
    return user
