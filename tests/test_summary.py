from __future__ import annotations

from datetime import date

import pytest

from studymate.client.summary import (
    budget_summary,
    dashboard_stats,
    days_left_text,
    filter_by_subject,
    is_overdue,
    subject_options,
    subject_progress,
)


TODAY = date(2025, 6, 10)


def _task(subject="Math", due="2025-06-20", completed=False, **extra):
    return {
        "subject": subject,
        "due_date": due,
        "completed": completed,
        "status": "Completed" if completed else "Pending",
        **extra,
    }


@pytest.mark.parametrize(
    "due,expected",
    [
        ("2025-06-07", "3 day(s) overdue"),
        ("2025-06-09", "1 day(s) overdue"),
        ("2025-06-10", "Due today"),
        ("2025-06-11", "1 day left"),
        ("2025-06-20", "10 days left"),
        ("2025-06-11T00:00:00", "1 day left"),
        (date(2025, 6, 12), "2 days left"),
        ("soon", "Invalid Date"),
        ("", "Invalid Date"),
        (None, "Invalid Date"),
    ],
)
def test_days_left_text(due, expected):
    assert days_left_text(due, TODAY) == expected


def test_is_overdue_is_strictly_before_today():
    assert is_overdue("2025-06-09", TODAY)
    assert not is_overdue("2025-06-10", TODAY)
    assert not is_overdue("garbage", TODAY)


def test_dashboard_stats_counts_only_pending_as_overdue():
    tasks = [
        _task(due="2025-06-01"),
        _task(due="2025-06-01", completed=True),
        _task(due="2025-06-30"),
        _task(due="2025-06-10", completed=True),
    ]
    assert dashboard_stats(tasks, TODAY) == {"total": 4, "completed": 2, "pending": 2, "overdue": 1}


def test_dashboard_stats_empty():
    assert dashboard_stats([], TODAY) == {"total": 0, "completed": 0, "pending": 0, "overdue": 0}


def test_subject_options_and_filter():
    tasks = [_task("Physics"), _task("Math"), _task("Physics", completed=True), _task("")]
    assert subject_options(tasks) == ["Math", "Physics"]
    assert len(filter_by_subject(tasks, "Physics")) == 2
    assert filter_by_subject(tasks, "all") == tasks
    assert filter_by_subject(tasks, None) == tasks
    assert filter_by_subject(tasks, "History") == []


def test_subject_progress():
    tasks = [
        _task("Math", completed=True),
        _task("Math"),
        _task("Math"),
        _task("Bio", completed=True),
    ]
    assert subject_progress(tasks) == [
        {"subject": "Bio", "total": 1, "done": 1, "percent": 100},
        {"subject": "Math", "total": 3, "done": 1, "percent": 33},
    ]


def test_budget_summary():
    budget = {
        "allowance": 200.0,
        "expenses": [{"amount": 19.99}, {"amount": 0.01}, {"amount": 30.1}],
    }
    assert budget_summary(budget) == {"allowance": 200.0, "spent": 50.1, "remaining": 149.9}


def test_budget_summary_can_go_negative():
    assert budget_summary({"allowance": 10, "expenses": [{"amount": 12.5}]})["remaining"] == -2.5
    assert budget_summary({}) == {"allowance": 0.0, "spent": 0.0, "remaining": 0.0}
