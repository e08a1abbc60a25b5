"""Goal and sub-goal ORM models."""
from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.orm import relationship

from tseleskop.core.clock import utcnow
from tseleskop.db.base import Base


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (
        Index("ix_goals_user_id", "user_id"),
        CheckConstraint("urgency_level IN ('LOW', 'AVERAGE', 'HIGH')", name="ck_goals_urgency_level"),
        CheckConstraint("privacy IN ('PRIVATE', 'PUBLIC')", name="ck_goals_privacy"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(length=64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(length=100), nullable=False)
    description = Column(Text, nullable=False)
    # SMART breakdown, "-" when the goal came from a template.
    specific = Column(Text, nullable=False, server_default="-")
    measurable = Column(Text, nullable=False, server_default="-")
    attainable = Column(Text, nullable=False, server_default="-")
    relevant = Column(Text, nullable=False, server_default="-")
    award = Column(Text, nullable=False, server_default="-")
    urgency_level = Column(String(length=16), nullable=False, server_default="LOW")
    privacy = Column(String(length=16), nullable=False, server_default="PRIVATE")
    deadline = Column(DateTime(timezone=True), nullable=False)
    image_url = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    user = relationship("User", back_populates="goals")
    sub_goals = relationship(
        "SubGoal",
        back_populates="goal",
        order_by="SubGoal.deadline",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SubGoal(Base):
    __tablename__ = "sub_goals"
    __table_args__ = (Index("ix_sub_goals_goal_id", "goal_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(length=250), nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    goal = relationship("Goal", back_populates="sub_goals")
