"""Task request shapes, validated at the API boundary.

`PUT /tasks/{id}` accepts two body shapes:

- partial: `{"completed": bool}` -> only the status changes
- full:    `{"title", "subject", "due_date", "priority"?, "status"?, "completed"?}`

Any of title/subject/due_date present makes it a full update (even if
`completed` is sent too).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Union

from studymate.errors import ValidationError
from studymate.util.time import parse_iso_date


PRIORITIES = ("low", "medium", "high")
STATUS_PENDING = "Pending"
STATUS_COMPLETED = "Completed"
STATUSES = (STATUS_PENDING, STATUS_COMPLETED)

_FULL_UPDATE_KEYS = ("title", "subject", "due_date")


@dataclass(frozen=True)
class NewTask:
    title: str
    subject: str
    due_date: date
    priority: str = "medium"


@dataclass(frozen=True)
class PartialTaskUpdate:
    completed: bool


@dataclass(frozen=True)
class FullTaskUpdate:
    title: str
    subject: str
    due_date: date
    priority: Optional[str] = None  # None -> keep stored priority
    status: Optional[str] = None  # None -> keep stored status


TaskUpdate = Union[PartialTaskUpdate, FullTaskUpdate]


def status_for(completed: bool) -> str:
    return STATUS_COMPLETED if completed else STATUS_PENDING


def _require(cond: bool, detail: str) -> None:
    if not cond:
        raise ValidationError(detail)


def _text(body: Dict[str, Any], key: str) -> str:
    v = body.get(key)
    if v is None:
        return ""
    _require(isinstance(v, str), f"invalid_{key}")
    return v.strip()


def _due_date(body: Dict[str, Any]) -> date:
    raw = body.get("due_date")
    _require(raw is not None and str(raw).strip() != "", "missing_fields")
    d = parse_iso_date(raw) if isinstance(raw, str) else None
    _require(d is not None, "invalid_due_date")
    return d  # type: ignore[return-value]


def _priority(body: Dict[str, Any]) -> Optional[str]:
    raw = body.get("priority")
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    _require(isinstance(raw, str) and raw.strip().lower() in PRIORITIES, "invalid_priority")
    return raw.strip().lower()


def _completed(raw: Any) -> bool:
    # bool is a subclass of int; accept 0/1 from loosely typed clients.
    _require(isinstance(raw, (bool, int)) and raw in (0, 1), "invalid_completed")
    return bool(raw)


def _status(raw: Any) -> str:
    _require(isinstance(raw, str), "invalid_status")
    for s in STATUSES:
        if raw.strip().lower() == s.lower():
            return s
    raise ValidationError("invalid_status")


def _require_object(body: Any) -> Dict[str, Any]:
    _require(isinstance(body, dict), "body_must_be_object")
    return body


def parse_new_task(body: Any) -> NewTask:
    b = _require_object(body)
    title = _text(b, "title")
    subject = _text(b, "subject")
    _require(bool(title) and bool(subject), "missing_fields")
    due = _due_date(b)
    return NewTask(title=title, subject=subject, due_date=due, priority=_priority(b) or "medium")


def parse_task_update(body: Any) -> TaskUpdate:
    b = _require_object(body)

    if any(b.get(k) is not None for k in _FULL_UPDATE_KEYS):
        title = _text(b, "title")
        subject = _text(b, "subject")
        _require(bool(title) and bool(subject), "missing_fields")
        due = _due_date(b)

        # Explicit status wins, then the completed flag, else keep what is stored.
        status: Optional[str] = None
        if b.get("status") is not None:
            status = _status(b["status"])
        elif b.get("completed") is not None:
            status = status_for(_completed(b["completed"]))

        return FullTaskUpdate(
            title=title,
            subject=subject,
            due_date=due,
            priority=_priority(b),
            status=status,
        )

    if b.get("completed") is not None:
        return PartialTaskUpdate(completed=_completed(b["completed"]))

    raise ValidationError("no_update_fields")
