"""Dashboard numbers derived from the task/expense lists the client holds.

Pure functions over the JSON shapes returned by the API; `today` is passed
in so callers (and tests) control the clock.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from studymate.util.time import parse_iso_date


def is_overdue(due: str | date | None, today: date) -> bool:
    d = parse_iso_date(due)
    if d is None:
        return False
    return d < today


def days_left_text(due: str | date | None, today: date) -> str:
    d = parse_iso_date(due)
    if d is None:
        return "Invalid Date"
    diff = (d - today).days
    if diff < 0:
        return f"{abs(diff)} day(s) overdue"
    if diff == 0:
        return "Due today"
    if diff == 1:
        return "1 day left"
    return f"{diff} days left"


def dashboard_stats(tasks: Iterable[Dict[str, Any]], today: date) -> Dict[str, int]:
    items = list(tasks)
    completed = sum(1 for t in items if t.get("completed"))
    overdue = sum(1 for t in items if not t.get("completed") and is_overdue(t.get("due_date"), today))
    return {
        "total": len(items),
        "completed": completed,
        "pending": len(items) - completed,
        "overdue": overdue,
    }


def subject_options(tasks: Iterable[Dict[str, Any]]) -> List[str]:
    return sorted({str(t.get("subject")).strip() for t in tasks if str(t.get("subject") or "").strip()})


def filter_by_subject(tasks: Iterable[Dict[str, Any]], subject: Optional[str] = "all") -> List[Dict[str, Any]]:
    items = list(tasks)
    if not subject or subject == "all":
        return items
    return [t for t in items if t.get("subject") == subject]


def subject_progress(tasks: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per subject: done/total and a rounded completion percentage, sorted by subject."""
    stats: Dict[str, Dict[str, int]] = {}
    for t in tasks:
        s = str(t.get("subject") or "").strip()
        if not s:
            continue
        entry = stats.setdefault(s, {"total": 0, "done": 0})
        entry["total"] += 1
        if t.get("completed"):
            entry["done"] += 1

    out: List[Dict[str, Any]] = []
    for s in sorted(stats):
        e = stats[s]
        out.append(
            {
                "subject": s,
                "total": e["total"],
                "done": e["done"],
                "percent": int(round(100.0 * e["done"] / e["total"])),
            }
        )
    return out


def budget_summary(budget: Dict[str, Any]) -> Dict[str, float]:
    allowance = float(budget.get("allowance") or 0)
    spent = round(sum(float(e.get("amount") or 0) for e in budget.get("expenses") or []), 2)
    return {
        "allowance": allowance,
        "spent": spent,
        "remaining": round(allowance - spent, 2),
    }
