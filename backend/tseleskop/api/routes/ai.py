"""AI assistant routes for goals.

Stateless generators are open; routes that read or notify the current user need a bearer token.
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tseleskop.api.schemas.ai import (
    StoredWeeklyReport,
    TasksResponse,
    TemplatesResponse,
    TextResponse,
    TriggerMessageResponse,
    WeeklyReportFromDbResponse,
)
from tseleskop.core.auth import get_current_user
from tseleskop.db.deps import get_db
from tseleskop.db.models.user import User
from tseleskop.db.models.weekly_report import WeeklyReport
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services import weekly_report_service
from tseleskop.services.ai.prompts import DEFAULT_USER_NAME
from tseleskop.services.ai.service import AIService, get_ai_service
from tseleskop.services.ai.types import (
    ChatAboutGoalsInput,
    ChatAboutGoalsResult,
    GoalDescriptionInput,
    GoalFromTemplateInput,
    GoalFromTemplateResult,
    MotivationInput,
    TasksInput,
    TriggerMessageInput,
    WeeklyReportInput,
)
from tseleskop.services.notifications.reminders import deliver

router = APIRouter(prefix="/api/ai/goal", tags=["ai"])


@router.post("/description", response_model=TextResponse)
def goal_description(payload: GoalDescriptionInput, ai: AIService = Depends(get_ai_service)) -> TextResponse:
    with trace("ai.goal_description", metadata={"llm_input_text": payload.title[:500]}):
        return TextResponse(text=ai.generate_goal_description(payload))


@router.post("/tasks", response_model=TasksResponse)
def goal_tasks(payload: TasksInput, ai: AIService = Depends(get_ai_service)) -> TasksResponse:
    with trace("ai.tasks", metadata={"llm_input_text": payload.title[:500], "max_items": payload.max_items}):
        tasks = ai.generate_tasks(payload)
    log_metric("ai.tasks.count", len(tasks))
    return TasksResponse(tasks=tasks)


@router.post("/motivation", response_model=TextResponse)
def motivation(payload: MotivationInput, ai: AIService = Depends(get_ai_service)) -> TextResponse:
    return TextResponse(text=ai.generate_motivation(payload))


@router.post("/weekly-report", response_model=TextResponse)
def weekly_report_from_body(payload: WeeklyReportInput, ai: AIService = Depends(get_ai_service)) -> TextResponse:
    return TextResponse(text=ai.generate_weekly_report(payload))


@router.get("/weekly-report/from-db", response_model=WeeklyReportFromDbResponse)
def weekly_report_from_db(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> WeeklyReportFromDbResponse:
    """Build the report from stored goals without saving it."""
    data = weekly_report_service.build_weekly_data_for_user(db, user.id)
    data.user_name = user.first_name or DEFAULT_USER_NAME
    text = ai.generate_weekly_report(data)
    return WeeklyReportFromDbResponse(
        text=text,
        goals_summary=data.goals_summary,
        completed_goals=data.completed_goals,
    )


@router.get("/weekly-report", response_model=TextResponse)
def cached_weekly_report(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TextResponse:
    """Serve the cached report; the first request of a user generates and stores it."""
    if user.week_report:
        return TextResponse(text=user.week_report)
    record = weekly_report_service.generate_and_store_weekly_report(db, user, get_ai_service())
    return TextResponse(text=record.text)


@router.get("/weekly-report/history", response_model=List[StoredWeeklyReport])
def weekly_report_history(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[WeeklyReport]:
    return weekly_report_service.get_all_reports(db, user.id)


@router.get("/templates", response_model=TemplatesResponse)
def templates(ai: AIService = Depends(get_ai_service)) -> TemplatesResponse:
    return TemplatesResponse(templates=ai.generate_templates())


@router.post("/from-template", response_model=GoalFromTemplateResult)
def goal_from_template(
    payload: GoalFromTemplateInput,
    ai: AIService = Depends(get_ai_service),
) -> GoalFromTemplateResult:
    return ai.generate_goal_from_template(payload)


@router.post("/chat", response_model=ChatAboutGoalsResult)
def chat(payload: ChatAboutGoalsInput, ai: AIService = Depends(get_ai_service)) -> ChatAboutGoalsResult:
    metadata = {
        "llm_input_text": payload.question[:500],
        "goals": len(payload.context.goals),
        "history": len(payload.history),
        "focus": payload.focus,
    }
    with trace("ai.chat", metadata=metadata):
        return ai.chat_about_goals(payload)


@router.post("/trigger-message", response_model=TriggerMessageResponse)
def trigger_message(
    payload: TriggerMessageInput,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
) -> TriggerMessageResponse:
    """Generate a short motivational message and push it to the user's Telegram chat."""
    data = payload.model_copy(update={"user_name": user.first_name or payload.user_name})
    text = ai.generate_trigger_message(data)
    result = deliver(user, text, kind=f"trigger.{payload.type.value.lower()}")
    return TriggerMessageResponse(text=text, sent=result.delivered)
