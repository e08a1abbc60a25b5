"""Friendships between users; a link is stored once regardless of direction."""
from __future__ import annotations

from typing import List

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from tseleskop.core.errors import ApiError
from tseleskop.db.models.friendship import Friendship
from tseleskop.db.models.user import User


def _between(user_id: str, friend_id: str):
    return or_(
        and_(Friendship.first_user_id == user_id, Friendship.second_user_id == friend_id),
        and_(Friendship.first_user_id == friend_id, Friendship.second_user_id == user_id),
    )


def create_friendship(db: Session, user_id: str, friend_id: str) -> Friendship:
    if user_id == friend_id:
        raise ApiError.bad_request("Нельзя добавить самого себя в друзья")
    if db.query(Friendship).filter(_between(user_id, friend_id)).first():
        raise ApiError.bad_request("Дружба уже существует")

    friendship = Friendship(first_user_id=user_id, second_user_id=friend_id)
    db.add(friendship)
    db.commit()
    db.refresh(friendship)
    return friendship


def remove_friendship(db: Session, user_id: str, friend_id: str) -> Friendship:
    friendship = db.query(Friendship).filter(_between(user_id, friend_id)).first()
    if not friendship:
        raise ApiError.not_found("Дружба не найдена")
    db.delete(friendship)
    db.commit()
    return friendship


def friend_ids(db: Session, user_id: str) -> List[str]:
    rows = (
        db.query(Friendship)
        .filter(or_(Friendship.first_user_id == user_id, Friendship.second_user_id == user_id))
        .all()
    )
    return [row.second_user_id if row.first_user_id == user_id else row.first_user_id for row in rows]


def list_friends(db: Session, user_id: str) -> List[User]:
    ids = friend_ids(db, user_id)
    if not ids:
        return []
    return db.query(User).filter(User.id.in_(ids)).order_by(User.id.asc()).all()
