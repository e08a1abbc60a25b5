"""Current-user profile routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from tseleskop.api.schemas.user import UserEditRequest, UserResponse
from tseleskop.api.uploads import read_image
from tseleskop.core.auth import get_current_user
from tseleskop.core.errors import ApiError
from tseleskop.db.deps import get_db
from tseleskop.db.models.user import User
from tseleskop.services import user_service
from tseleskop.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)) -> User:
    return user


@router.get("/invite/{invite_code}", response_model=UserResponse)
def user_by_invite_code(
    invite_code: str,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    return user_service.get_user_by_invite_code(db, invite_code)


@router.put("/edit", response_model=UserResponse)
def edit_profile(
    payload: UserEditRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    return user_service.edit_user(db, user, payload)


@router.put("/photo", response_model=UserResponse)
def edit_photo(
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> User:
    jpeg = read_image(image)
    if jpeg is None:
        raise ApiError.bad_request("Необходимо загрузить изображение")
    return user_service.edit_user_photo(db, user, jpeg, storage)
