"""Pydantic schemas for goals and sub-goals."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from tseleskop.core.camel import CamelModel, UtcDatetime

UrgencyLevel = Literal["LOW", "AVERAGE", "HIGH"]
Privacy = Literal["PRIVATE", "PUBLIC"]
DeadlinePreset = Literal["3_MONTHS", "6_MONTHS", "1_YEAR"]


class SubGoalInput(CamelModel):
    description: str = Field(..., min_length=1, max_length=250)
    deadline: datetime


class GoalCreateRequest(CamelModel):
    """Body of the multipart ``info`` field when creating a goal."""

    source: Optional[Literal["template", "manual"]] = None
    title: str = Field(..., min_length=1, max_length=100)
    short_description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    specific: Optional[str] = None
    measurable: Optional[str] = None
    attainable: Optional[str] = None
    relevant: Optional[str] = None
    award: Optional[str] = None
    urgency_level: Optional[UrgencyLevel] = None
    privacy: Optional[Privacy] = None
    deadline: DeadlinePreset
    image_url: Optional[str] = None
    sub_goals: Optional[List[SubGoalInput]] = None


class GoalUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    specific: Optional[str] = None
    measurable: Optional[str] = None
    attainable: Optional[str] = None
    relevant: Optional[str] = None
    award: Optional[str] = None
    urgency_level: Optional[UrgencyLevel] = None
    privacy: Optional[Privacy] = None
    deadline: Optional[DeadlinePreset] = None
    sub_goals: Optional[List[SubGoalInput]] = None


class SubGoalResponse(CamelModel):
    id: int
    goal_id: int
    description: str
    deadline: UtcDatetime
    is_completed: bool
    completed_at: Optional[UtcDatetime] = None


class GoalResponse(CamelModel):
    id: int
    user_id: str
    title: str
    description: str
    specific: str
    measurable: str
    attainable: str
    relevant: str
    award: str
    urgency_level: UrgencyLevel
    privacy: Privacy
    deadline: UtcDatetime
    image_url: Optional[str] = None
    is_completed: bool
    completed_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    sub_goals: List[SubGoalResponse] = Field(default_factory=list)
