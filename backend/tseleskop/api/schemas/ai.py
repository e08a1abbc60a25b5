"""Response envelopes of the AI routes; request bodies are the feature input types."""
from __future__ import annotations

from datetime import date
from typing import List

from pydantic import Field

from tseleskop.core.camel import CamelModel, UtcDatetime
from tseleskop.services.ai.types import CompletedGoal, GoalProgress, TaskItem


class TextResponse(CamelModel):
    text: str


class TasksResponse(CamelModel):
    tasks: List[TaskItem]


class TemplatesResponse(CamelModel):
    templates: List[str]


class WeeklyReportFromDbResponse(CamelModel):
    text: str
    goals_summary: List[GoalProgress] = Field(default_factory=list)
    completed_goals: List[CompletedGoal] = Field(default_factory=list)


class StoredWeeklyReport(CamelModel):
    id: int
    week_start: date
    text: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class TriggerMessageResponse(CamelModel):
    text: str
    sent: bool
