"""Friendship routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tseleskop.api.schemas.friendship import FriendshipCreateRequest, FriendshipResponse
from tseleskop.api.schemas.user import UserResponse
from tseleskop.core.auth import get_current_user
from tseleskop.db.deps import get_db
from tseleskop.db.models.friendship import Friendship
from tseleskop.db.models.user import User
from tseleskop.services import friendship_service, user_service

router = APIRouter(prefix="/api/friendship", tags=["friendship"])


@router.get("", response_model=List[UserResponse])
def list_friends(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> List[User]:
    return friendship_service.list_friends(db, user.id)


@router.post("/create", response_model=FriendshipResponse)
def create_friendship(
    payload: FriendshipCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Friendship:
    """Befriend the owner of an invite code."""
    friend = user_service.get_user_by_invite_code(db, payload.invite_code)
    return friendship_service.create_friendship(db, user.id, friend.id)


@router.delete("/{friend_id}", response_model=FriendshipResponse)
def remove_friendship(
    friend_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Friendship:
    return friendship_service.remove_friendship(db, user.id, friend_id)
