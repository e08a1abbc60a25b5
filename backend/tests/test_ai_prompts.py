from __future__ import annotations

from datetime import datetime, timezone

from tseleskop.services.ai import prompts
from tseleskop.services.ai.types import (
    ChatAboutGoalsInput,
    ChatGoal,
    ChatHistoryTurn,
    CompletedGoal,
    CompletedTask,
    GoalProgress,
    PendingTask,
    TriggerMessageInput,
    TriggerType,
    WeeklyReportInput,
)

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_condense_goals_without_goals_is_a_dash() -> None:
    assert prompts.condense_goals([]) == prompts.DASH


def test_condense_goals_line_shape() -> None:
    goal = ChatGoal.model_validate(
        {
            "title": " Марафон ",
            "description": "Пробежать\n\nполный",
            "urgencyLevel": "HIGH",
            "deadline": "2025-09-01T00:00:00.000Z",
            "subGoals": [
                {"description": "5 км", "isCompleted": True},
                {"description": "10 км", "isCompleted": False},
            ],
        }
    )

    line = prompts.condense_goals([goal])

    assert line == (
        "1. Марафон [АКТИВНА] (1/2) | Приоритет: HIGH | Дедлайн: 01.09.2025 "
        "| Пробежать полный | Подзадачи: [✓] 5 км; [ ] 10 км"
    )


def test_condense_goals_caps_goals_and_sub_goals() -> None:
    goals = [
        ChatGoal(title=f"Цель {i}", sub_goals=[{"description": f"шаг {j}"} for j in range(8)]) for i in range(12)
    ]

    lines = prompts.condense_goals(goals).split("\n")

    assert len(lines) == 10
    assert "шаг 4" in lines[0]
    assert "шаг 5" not in lines[0]
    assert "Дедлайн: не указан" in lines[0]


def test_history_digest_keeps_last_six_turns() -> None:
    history = [ChatHistoryTurn(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(8)]

    digest = prompts.history_digest(history)

    assert "m0" not in digest and "m1" not in digest
    assert "Последние вопросы пользователя: m2; m4; m6" in digest
    assert "Последние советы ассистента: m5; m7" in digest
    assert "Полная история (последние 6 сообщений)" in digest


def test_history_digest_empty() -> None:
    assert prompts.history_digest([]) == "История диалога отсутствует."


def test_chat_prompt_truncates_history_to_ten_turns() -> None:
    history = [{"role": "user", "content": f"q{i}"} for i in range(14)]
    data = ChatAboutGoalsInput.model_validate({"question": "?", "history": history})

    system, messages = prompts.chat_prompt(data)

    assert len(messages) == 11
    assert messages[0].content == "q4"
    assert "JSON" in system


def test_trigger_prompt_substitutes_dash_for_missing_values() -> None:
    data = TriggerMessageInput(type=TriggerType.HALF_DONE)

    _, messages = prompts.trigger_message_prompt(data, now=NOW)

    content = messages[0].content
    assert "выполнено —/—" in content
    assert "Имя: —" in content
    assert "Сегодня: 2025-03-01T09:30:00.000Z" in content


def test_trigger_prompt_task_overdue() -> None:
    data = TriggerMessageInput(type=TriggerType.TASK_OVERDUE, task_title="Отчёт", goal_title="Работа", user_name="Аня")

    _, messages = prompts.trigger_message_prompt(data, now=NOW)

    assert 'просрочена задача "Отчёт" в цели "Работа"' in messages[0].content
    assert "Имя: Аня" in messages[0].content


def test_weekly_prompt_includes_condensed_goals() -> None:
    data = WeeklyReportInput(
        user_name="Иван",
        goals_summary=[
            GoalProgress(
                title="Бег",
                created_at="2025-01-01",
                deadline_at="2025-06-01",
                time_left_days=92,
                time_left_human="13 недель 1 дн",
                completed=1,
                total=4,
            )
        ],
    )

    _, messages = prompts.weekly_report_prompt(data, now=NOW)

    content = messages[0].content
    assert "Пользователь: Иван" in content
    assert "1. Бег [1/4] осталось: 13 недель 1 дн | создана: 2025-01-01, дедлайн: 2025-06-01" in content


def test_weekly_prompt_without_data_uses_dash() -> None:
    _, messages = prompts.weekly_report_prompt(WeeklyReportInput(), now=NOW)

    assert f"Данные за неделю:\n{prompts.DASH}\n" in messages[0].content


def test_condense_weekly_caps_goals_and_sub_items() -> None:
    goals = [
        GoalProgress(
            title=f"Цель {i}",
            completed_tasks=[CompletedTask(description=f"готово {j}", date_completed="2025-03-01") for j in range(20)],
            pending_tasks=[PendingTask(description=f"в работе {j}", deadline="2025-04-01") for j in range(20)],
        )
        for i in range(50)
    ]
    completed = [CompletedGoal(title=f"Итог {i}") for i in range(50)]

    lines = prompts.condense_weekly(goals, completed).split("\n")

    goal_lines, finished_line = lines[:-1], lines[-1]
    assert len(goal_lines) == 10
    assert goal_lines[-1].startswith("10. Цель 9 ")
    for line in goal_lines:
        assert line.count("готово ") == 5
        assert line.count("в работе ") == 5
    assert finished_line.startswith("Завершённые цели: ")
    assert finished_line.count("Итог ") == 10
    assert "Итог 10" not in finished_line
