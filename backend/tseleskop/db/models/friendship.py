"""Friendship ORM model."""
from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, func

from tseleskop.core.clock import utcnow
from tseleskop.db.base import Base


class Friendship(Base):
    """Undirected link between two users, stored once in whichever order it was created."""

    __tablename__ = "friendships"
    __table_args__ = (CheckConstraint("first_user_id <> second_user_id", name="ck_friendships_distinct"),)

    first_user_id = Column(String(length=64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    second_user_id = Column(String(length=64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
