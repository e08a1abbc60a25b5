"""Typed inputs and results of the AI feature functions."""
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from tseleskop.core.camel import CamelModel


class ChatMessage(CamelModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatResult(CamelModel):
    text: str


class TaskItem(CamelModel):
    description: str
    deadline: Optional[str] = None


class GoalFromTemplateResult(CamelModel):
    title: str
    description: str
    tasks: List[TaskItem] = Field(default_factory=list)


class ChatAboutGoalsResult(CamelModel):
    text: str
    selected_goal_title: Optional[str] = None


# Weekly report records, produced by the weekly data builder or sent by the client.


class CompletedTask(CamelModel):
    description: str = ""
    date_completed: str = ""


class PendingTask(CamelModel):
    description: str = ""
    deadline: str = ""


class GoalProgress(CamelModel):
    title: str = ""
    created_at: str = ""
    deadline_at: str = ""
    time_left_days: Optional[int] = None
    time_left_human: str = ""
    completed: Optional[int] = None
    total: Optional[int] = None
    completed_tasks: List[CompletedTask] = Field(default_factory=list)
    pending_tasks: List[PendingTask] = Field(default_factory=list)


class CompletedGoal(CamelModel):
    title: str = ""
    completed_at: Optional[str] = None
    created_at: Optional[str] = None


class WeeklyReportInput(CamelModel):
    user_name: Optional[str] = None
    goals_summary: List[GoalProgress] = Field(default_factory=list)
    completed_goals: List[CompletedGoal] = Field(default_factory=list)


# Feature inputs.


class GoalDescriptionInput(CamelModel):
    title: str = Field(..., min_length=1)
    context: Optional[str] = None


class TasksInput(CamelModel):
    title: str = Field(..., min_length=1)
    context: Optional[str] = None
    max_items: Optional[int] = Field(default=None, ge=1, le=50)
    deadline: Optional[str] = None


class MotivationInput(CamelModel):
    completed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class GoalFromTemplateInput(CamelModel):
    template: str = Field(..., min_length=1)
    deadline: str
    max_items: Optional[int] = Field(default=None, ge=1, le=50)
    context: Optional[str] = None
    short_description: Optional[str] = None


class ChatSubGoal(CamelModel):
    description: str = ""
    is_completed: bool = False


class ChatGoal(CamelModel):
    title: str = ""
    description: Optional[str] = None
    urgency_level: Optional[str] = None
    privacy: Optional[str] = None
    is_completed: bool = False
    deadline: Optional[str] = None
    sub_goals: List[ChatSubGoal] = Field(default_factory=list)


class ChatContext(CamelModel):
    goals: List[ChatGoal] = Field(default_factory=list)


class ChatHistoryTurn(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatAboutGoalsInput(CamelModel):
    question: str = Field(..., min_length=1)
    context: ChatContext = Field(default_factory=ChatContext)
    history: List[ChatHistoryTurn] = Field(default_factory=list)
    focus: Optional[str] = None


class TriggerType(str, Enum):
    HALF_DONE = "HALF_DONE"
    TASK_OVERDUE = "TASK_OVERDUE"
    FIRST_TASK_DONE = "FIRST_TASK_DONE"
    GOAL_OVERDUE = "GOAL_OVERDUE"
    GOAL_COMPLETED = "GOAL_COMPLETED"


class TriggerMessageInput(CamelModel):
    type: TriggerType
    goal_title: Optional[str] = None
    task_title: Optional[str] = None
    total_tasks: Optional[int] = None
    completed_tasks: Optional[int] = None
    user_name: Optional[str] = None
