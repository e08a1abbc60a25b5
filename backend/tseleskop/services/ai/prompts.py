"""Prompt builders for every AI feature.

Each builder is pure: it takes a typed input (plus "now" where the prompt
mentions today's date) and returns ``(system_instruction, messages)``. Caller
text is interpolated as-is. Missing optional values are rendered as a dash or
"не задан" so that every prompt keeps the same shape.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import List, Sequence, Tuple

from tseleskop.core.clock import iso_z
from tseleskop.services.ai.normalizer import normalize_text
from tseleskop.services.ai.types import (
    ChatAboutGoalsInput,
    ChatGoal,
    ChatHistoryTurn,
    ChatMessage,
    CompletedGoal,
    GoalDescriptionInput,
    GoalFromTemplateInput,
    GoalProgress,
    MotivationInput,
    TriggerMessageInput,
    TriggerType,
    WeeklyReportInput,
)

Prompt = Tuple[str, List[ChatMessage]]

DASH = "—"
NOT_SET = "не задан"
DEFAULT_USER_NAME = "Пользователь"
DEFAULT_MAX_TASKS = 6

MAX_CONDENSED_GOALS = 10
MAX_CONDENSED_SUB_ITEMS = 5
MAX_CHAT_HISTORY = 10
MAX_HISTORY_DIGEST = 6


def _user(content: str) -> List[ChatMessage]:
    return [ChatMessage(role="user", content=content)]


def _or_dash(value: str | None) -> str:
    return value if value else DASH


def goal_description_prompt(data: GoalDescriptionInput) -> Prompt:
    system = "Ты помощник по целям. Пиши кратко, структурировано и по делу."
    prompt = (
        "Сформируй качественное описание цели на основе заголовка и контекста, буквально 1 предложение краткое.\n"
        f"Заголовок: {data.title}\n"
        f"Контекст: {_or_dash(data.context)}\n"
    )
    return system, _user(prompt)


def tasks_prompt(
    *,
    title: str,
    context: str | None,
    max_items: int,
    deadline: str | None,
    now: datetime,
) -> Prompt:
    system = "Ты планировщик. Верни строго JSON без markdown и текста вокруг."
    prompt = (
        f"Сгенерируй до {max_items} базовых задач для достижения цели.\n"
        f"Цель: {title}\n"
        f"Контекст: {_or_dash(context)}\n"
        f"Срок выполнения всей цели: {deadline or NOT_SET}\n"
        f"Сегодняшняя дата (UTC): {iso_z(now)}\n"
        "Требование по срокам задач: каждой задаче присвой свой дедлайн в формате ISO-8601 "
        "(например, 2025-03-31T00:00:00.000Z), распределив дедлайны равномерно от сегодняшнего дня "
        "по всему сроку. Дедлайны задач должны отличаться друг от друга и идти по времени вперёд.\n"
        'Формат ответа: массив JSON вида [{"description":"текст задачи","deadline":"ISO-8601"}].'
    )
    return system, _user(prompt)


def motivation_prompt(data: MotivationInput) -> Prompt:
    system = "Ты мотиватор. Пиши дружелюбно и кратко, 1-2 предложения."
    prompt = (
        "Сгенерируй персональное мотивационное сообщение.\n"
        f"Выполнено: {data.completed} из {data.total}.\n"
        f'Пример стиля: "Отлично, ты завершил {data.completed} из {data.total} задач, '
        'осталось немного — так держать!"'
    )
    return system, _user(prompt)


def _condense_goal_progress(index: int, goal: GoalProgress) -> str:
    time_left_days = str(goal.time_left_days) if goal.time_left_days is not None else ""
    time_left = goal.time_left_human or f"{time_left_days} дн."
    completed = goal.completed if goal.completed is not None else ""
    total = goal.total if goal.total is not None else ""
    done = "; ".join(
        f"{task.description} ({task.date_completed})" for task in goal.completed_tasks[:MAX_CONDENSED_SUB_ITEMS]
    )
    pending = "; ".join(
        f"{task.description} (до {task.deadline})" for task in goal.pending_tasks[:MAX_CONDENSED_SUB_ITEMS]
    )
    line = (
        f"{index}. {goal.title.strip()} [{completed}/{total}] осталось: {time_left} "
        f"| создана: {goal.created_at}, дедлайн: {goal.deadline_at}"
    )
    if done:
        line += f" | выполнено: {done}"
    if pending:
        line += f" | в работе: {pending}"
    return line


def condense_weekly(goals_summary: Sequence[GoalProgress], completed_goals: Sequence[CompletedGoal]) -> str:
    """Digest of at most 10 active goals (5 sub-items each) and 10 completed goals."""
    lines = [
        _condense_goal_progress(index, goal)
        for index, goal in enumerate(goals_summary[:MAX_CONDENSED_GOALS], start=1)
    ]
    if completed_goals:
        finished = "; ".join(
            f"{goal.title} (завершена {goal.completed_at or ''}, создана {goal.created_at or ''})"
            for goal in completed_goals[:MAX_CONDENSED_GOALS]
        )
        lines.append(f"Завершённые цели: {finished}")
    return "\n".join(lines)


def weekly_report_prompt(data: WeeklyReportInput, *, now: datetime) -> Prompt:
    system = " ".join(
        [
            "Ты аналитик и мотивирующий коуч. Пиши в стиле данного примера:",
            '"Привет 👋\nПодготовил для тебя статистику за эту неделю - ты просто машина продуктивности!\n\n'
            "✅ Задачи: ...\n📈 Продуктивность: ...\n🏆 Завершено: ...\n🎯 Ключевые цели в работе: ...\n⚡️ ...\n\n"
            '💪 Мотивация: ...\n\n🎯 ИИ-рекомендация: "...""',
            "Сохраняй структуру и тон: приветствие, блок с иконками-строками, мотивация, рекомендация. "
            "Больше смайликов, без markdown-разметки и списочных маркеров.",
        ]
    )
    condensed = condense_weekly(data.goals_summary, data.completed_goals) or DASH
    prompt = (
        f"Пользователь: {data.user_name or DEFAULT_USER_NAME}\n"
        f"Сегодня: {iso_z(now)}\n"
        f"Данные за неделю:\n{condensed}\n"
        "Сформируй отчёт в стиле примера выше: коротко, по делу, с множеством смайликов. "
        "Упоминай числа и сроки лаконично."
    )
    return system, _user(prompt)


def templates_prompt() -> Prompt:
    system = "Ты библиотекарь целей. Верни только список шаблонных целей, по одной на строку."
    return system, _user("Сгенерируй 10 шаблонных целей для личной продуктивности и саморазвития.")


def template_description_prompt(data: GoalFromTemplateInput, *, now: datetime) -> Prompt:
    system = (
        "Ты помощник по целям. Сформируй краткое, мотивирующее и конкретное описание цели "
        "на основе шаблона или краткого описания, максимум 2 предложения."
    )
    prompt = (
        f"Шаблон цели: {data.template.strip()}\n"
        f"Краткое описание: {_or_dash(data.short_description)}\n"
        f"Контекст: {_or_dash(data.context)}\n"
        f"Срок цели: {data.deadline or NOT_SET}\n"
        f"Сегодняшняя дата (UTC): {iso_z(now)}\n"
    )
    return system, _user(prompt)


def _format_ru_date(value: str | None) -> str:
    if not value:
        return "не указан"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d.%m.%Y")
    except ValueError:
        return value


def condense_goals(goals: Sequence[ChatGoal]) -> str:
    """One line per goal (max 10) with status, progress, priority, deadline and up to 5 sub-goals."""
    if not goals:
        return DASH
    lines = []
    for index, goal in enumerate(goals[:MAX_CONDENSED_GOALS], start=1):
        description = re.sub(r"\n+", " ", goal.description or "").strip()
        done = sum(1 for sub in goal.sub_goals if sub.is_completed)
        progress = f"({done}/{len(goal.sub_goals)})" if goal.sub_goals else ""
        subs = "; ".join(
            f"{'[✓]' if sub.is_completed else '[ ]'} {sub.description}".strip()
            for sub in goal.sub_goals[:MAX_CONDENSED_SUB_ITEMS]
        )
        status = "[ЗАВЕРШЕНА]" if goal.is_completed else "[АКТИВНА]"
        line = (
            f"{index}. {goal.title.strip()} {status} {progress} | Приоритет: {goal.urgency_level or 'LOW'} "
            f"| Дедлайн: {_format_ru_date(goal.deadline)} | {description}"
        )
        if subs:
            line += f" | Подзадачи: {subs}"
        lines.append(line.strip())
    return "\n".join(lines)


def history_digest(history: Sequence[ChatHistoryTurn]) -> str:
    """Summarise the last six turns: recent questions, recent advice and a numbered transcript."""
    if not history:
        return "История диалога отсутствует."
    recent = list(history[-MAX_HISTORY_DIGEST:])
    questions = [turn.content for turn in recent if turn.role == "user"]
    answers = [turn.content for turn in recent if turn.role == "assistant"]

    digest = "Контекст из истории диалога:\n"
    if questions:
        digest += f"Последние вопросы пользователя: {'; '.join(questions[-3:])}\n"
    if answers:
        digest += f"Последние советы ассистента: {'; '.join(answers[-2:])}\n"
    digest += f"Полная история (последние {len(recent)} сообщений):\n"
    for index, turn in enumerate(recent, start=1):
        digest += f"{index}. {turn.role}: {turn.content}\n"
    return digest.strip()


_CHAT_JSON_RULES = [
    'ВАЖНО: Отвечай ТОЛЬКО в формате JSON: {"selectedGoalTitle": "название цели", "answer": "твой ответ"}.',
    "Не добавляй никакого текста до или после JSON. Только чистый JSON.",
]

_FOCUSED_CHAT_SYSTEM = " ".join(
    [
        "Ты персональный коуч по целям. Пользователь сфокусирован на конкретной задаче или цели.",
        "Твоя задача - дать максимально конкретные и практичные советы именно по этой задаче.",
        "Учитывай всю историю диалога для понимания контекста, предпочтений и прогресса пользователя.",
        "Анализируй предыдущие советы и адаптируй новые рекомендации под стиль общения пользователя.",
        "Отвечай на русском языке, дружелюбно и мотивирующе.",
        "Давай конкретные шаги, советы и рекомендации с учетом истории взаимодействий.",
        "Если нужно, предлагай разбить задачу на подзадачи или скорректировать подход.",
        *_CHAT_JSON_RULES,
    ]
)

_OPEN_CHAT_SYSTEM = " ".join(
    [
        "Ты персональный коуч по целям. У тебя есть полная история диалога с пользователем.",
        "Анализируй историю для понимания контекста, предпочтений, стиля общения и текущего состояния дел.",
        "Выбери ОДНУ наиболее релевантную цель из списка по смысловой близости к запросу и истории.",
        "Дай конкретный, персонализированный ответ с практическими шагами.",
        "Учитывай предыдущие советы, прогресс пользователя и адаптируй стиль под его предпочтения.",
        "Отвечай на русском языке, дружелюбно и мотивирующе.",
        *_CHAT_JSON_RULES,
    ]
)


def chat_prompt(data: ChatAboutGoalsInput) -> Prompt:
    history = list(data.history[-MAX_CHAT_HISTORY:])
    goals_condensed = condense_goals(data.context.goals)
    digest = history_digest(history)

    messages = [ChatMessage(role=turn.role, content=normalize_text(turn.content)) for turn in history]
    if data.focus:
        system = _FOCUSED_CHAT_SYSTEM
        content = (
            f"{digest}\n\nВопрос: {data.question}\nФокус на задаче: \"{data.focus}\"\n"
            f"Список целей:\n{goals_condensed}"
        )
    else:
        system = _OPEN_CHAT_SYSTEM
        content = f"{digest}\n\nВопрос: {data.question}\nСписок целей:\n{goals_condensed}"
    messages.append(ChatMessage(role="user", content=content))
    return system, messages


_TRIGGER_TEMPLATES = {
    TriggerType.HALF_DONE: (
        "Сгенерируй фразу по достижению половины задач: выполнено {completed}/{total}. Тон: вдохновляющий."
    ),
    TriggerType.TASK_OVERDUE: (
        'Сгенерируй мягкое напоминание: просрочена задача "{task}" в цели "{goal}". Предложи начать с малого.'
    ),
    TriggerType.FIRST_TASK_DONE: 'Сгенерируй обнадёживающее сообщение: выполнена первая задача в цели "{goal}".',
    TriggerType.GOAL_OVERDUE: (
        'Сгенерируй поддерживающее сообщение: цель "{goal}" просрочена. Предложи скорректировать план.'
    ),
    TriggerType.GOAL_COMPLETED: (
        'Сгенерируй поздравление с достижением цели "{goal}". Предложи порадовать себя наградой.'
    ),
}


def trigger_message_prompt(data: TriggerMessageInput, *, now: datetime) -> Prompt:
    system = "Ты коуч. Верни одно короткое мотивирующее сообщение с эмодзи. Без markdown и без списков."
    body = _TRIGGER_TEMPLATES[data.type].format(
        completed=data.completed_tasks if data.completed_tasks is not None else DASH,
        total=data.total_tasks if data.total_tasks is not None else DASH,
        task=_or_dash(data.task_title),
        goal=_or_dash(data.goal_title),
    )
    prompt = f"Сегодня: {iso_z(now)}\nИмя: {_or_dash(data.user_name)}\n{body}"
    return system, _user(prompt)
