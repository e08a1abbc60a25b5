"""AI feature functions: prompt, complete, then normalize or extract."""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, List, Optional, Protocol, Sequence

from tseleskop.core.clock import utcnow
from tseleskop.core.config import settings
from tseleskop.observability.metrics import log_metric
from tseleskop.services.ai import prompts
from tseleskop.services.ai.client import AIConfig, CompletionClient
from tseleskop.services.ai.extractor import extract_json
from tseleskop.services.ai.normalizer import normalize_text, sanitize_list_lines
from tseleskop.services.ai.types import (
    ChatAboutGoalsInput,
    ChatAboutGoalsResult,
    ChatMessage,
    GoalDescriptionInput,
    GoalFromTemplateInput,
    GoalFromTemplateResult,
    MotivationInput,
    TaskItem,
    TasksInput,
    TriggerMessageInput,
    WeeklyReportInput,
)

logger = logging.getLogger(__name__)

CHAT_APOLOGY = "Извините, не удалось получить ответ. Попробуйте переформулировать вопрос."


class Completer(Protocol):
    def complete(self, messages: Sequence[ChatMessage], system_prompt: Optional[str] = None) -> str: ...


class AIService:
    """Feature functions over a completion client.

    Upstream and transport failures from the client propagate unchanged.
    Unparseable model output never raises; each feature falls back to text.
    """

    def __init__(self, client: Completer, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.client = client
        self.clock = clock

    def _complete(self, prompt: prompts.Prompt) -> str:
        system, messages = prompt
        return self.client.complete(messages, system_prompt=system)

    def generate_goal_description(self, data: GoalDescriptionInput) -> str:
        return normalize_text(self._complete(prompts.goal_description_prompt(data)))

    def generate_tasks(self, data: TasksInput) -> List[TaskItem]:
        max_items = data.max_items or prompts.DEFAULT_MAX_TASKS
        # Raw text: normalizing first would delete a fenced JSON block.
        raw = self._complete(
            prompts.tasks_prompt(
                title=data.title,
                context=data.context,
                max_items=max_items,
                deadline=data.deadline,
                now=self.clock(),
            )
        )

        parsed = extract_json(raw)
        # A one-element array matches the object span first.
        if isinstance(parsed, dict) and "description" in parsed:
            parsed = [parsed]
        if isinstance(parsed, list):
            tasks = [task for task in (_task_from_json(item) for item in parsed[:max_items]) if task]
            if tasks:
                return tasks

        logger.info("Task list was not valid JSON; falling back to line splitting")
        log_metric("ai.tasks.fallback", 1)
        return [TaskItem(description=line) for line in sanitize_list_lines(raw.split("\n"))[:max_items]]

    def generate_motivation(self, data: MotivationInput) -> str:
        return normalize_text(self._complete(prompts.motivation_prompt(data)))

    def generate_weekly_report(self, data: WeeklyReportInput) -> str:
        return normalize_text(self._complete(prompts.weekly_report_prompt(data, now=self.clock())))

    def generate_templates(self) -> List[str]:
        text = normalize_text(self._complete(prompts.templates_prompt()))
        return sanitize_list_lines(text.split("\n"))

    def generate_goal_from_template(self, data: GoalFromTemplateInput) -> GoalFromTemplateResult:
        """Two sequential calls: the description is generated first and feeds the task prompt."""
        title = data.template.strip()
        description = normalize_text(self._complete(prompts.template_description_prompt(data, now=self.clock())))
        tasks = self.generate_tasks(
            TasksInput(
                title=title,
                context=description,
                max_items=data.max_items or prompts.DEFAULT_MAX_TASKS,
                deadline=data.deadline,
            )
        )
        return GoalFromTemplateResult(title=title, description=description, tasks=tasks)

    def chat_about_goals(self, data: ChatAboutGoalsInput) -> ChatAboutGoalsResult:
        raw = self._complete(prompts.chat_prompt(data))

        parsed = extract_json(raw)
        if isinstance(parsed, dict):
            answer = parsed.get("answer")
            if isinstance(answer, str) and answer:
                selected = parsed.get("selectedGoalTitle")
                return ChatAboutGoalsResult(
                    text=normalize_text(answer),
                    selected_goal_title=selected if isinstance(selected, str) and selected else None,
                )

        fallback = normalize_text(raw)
        if not fallback:
            logger.warning("Chat completion returned nothing usable")
            log_metric("ai.chat.empty", 1)
            return ChatAboutGoalsResult(text=CHAT_APOLOGY)

        log_metric("ai.chat.fallback", 1)
        selected_title = data.focus or _guess_goal_title(fallback, [goal.title for goal in data.context.goals])
        return ChatAboutGoalsResult(text=fallback, selected_goal_title=selected_title)

    def generate_trigger_message(self, data: TriggerMessageInput) -> str:
        return normalize_text(self._complete(prompts.trigger_message_prompt(data, now=self.clock())))


def _task_from_json(item: Any) -> Optional[TaskItem]:
    if isinstance(item, str):
        description, deadline = item.strip(), None
    elif isinstance(item, dict):
        description = str(item.get("description") or "").strip()
        raw_deadline = item.get("deadline")
        deadline = str(raw_deadline).strip() if raw_deadline else None
    else:
        return None
    if not description:
        return None
    return TaskItem(description=description, deadline=deadline or None)


def _guess_goal_title(reply: str, titles: Sequence[str]) -> Optional[str]:
    """Loose match: first title contained in the reply (case-insensitive), else the first title."""
    known = [title for title in titles if title]
    if not known:
        return None
    lowered = reply.lower()
    for title in known:
        if title.lower() in lowered:
            return title
    return known[0]


@lru_cache
def get_ai_service() -> AIService:
    """Process-wide service built from settings; raises ConfigurationError without an API key."""
    return AIService(CompletionClient(AIConfig.from_settings(settings)))
