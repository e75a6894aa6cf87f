from __future__ import annotations

from typing import Any, Dict, List

from studymate.db import insert_returning_id, row_id_in_range
from studymate.errors import NotFoundError
from studymate.util.time import utcnow_iso

from .models import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    FullTaskUpdate,
    NewTask,
    PartialTaskUpdate,
    TaskUpdate,
    status_for,
)


_TASK_COLUMNS = "task_id, title, subject, due_date, priority, status"


def public_task(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    status = str(d.get("status") or STATUS_PENDING)
    return {
        "id": int(d["task_id"]),
        "title": d.get("title") or "",
        "subject": d.get("subject") or "",
        "due_date": str(d.get("due_date") or ""),
        "priority": d.get("priority") or "medium",
        "status": status,
        "completed": status == STATUS_COMPLETED,
    }


def list_tasks(conn: Any, student_id: int) -> List[Dict[str, Any]]:
    """All tasks owned by `student_id`: Pending before Completed, then by due date."""
    rows = conn.execute(
        f"""
        SELECT {_TASK_COLUMNS}
        FROM tasks
        WHERE student_id=?
        ORDER BY CASE status WHEN 'Pending' THEN 0 ELSE 1 END ASC, due_date ASC, task_id ASC
        """,
        (int(student_id),),
    ).fetchall()
    return [public_task(r) for r in rows]


def get_task(conn: Any, student_id: int, task_id: int) -> Dict[str, Any]:
    if not row_id_in_range(task_id):
        raise NotFoundError("task_not_found")
    row = conn.execute(
        f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id=? AND student_id=?",
        (int(task_id), int(student_id)),
    ).fetchone()
    if row is None:
        raise NotFoundError("task_not_found")
    return public_task(row)


def create_task(conn: Any, student_id: int, task: NewTask) -> Dict[str, Any]:
    now = utcnow_iso()
    task_id = insert_returning_id(
        conn,
        """
        INSERT INTO tasks (student_id, title, subject, due_date, priority, status, created_at, updated_at)
        VALUES (?,?,?,?,?,?,?,?)
        """,
        (
            int(student_id),
            task.title,
            task.subject,
            task.due_date.isoformat(),
            task.priority,
            STATUS_PENDING,
            now,
            now,
        ),
        id_column="task_id",
    )
    return get_task(conn, student_id, task_id)


def update_task(conn: Any, student_id: int, task_id: int, update: TaskUpdate) -> Dict[str, Any]:
    """Apply a partial (status only) or full update to an owned task.

    A task that does not exist or belongs to someone else raises NotFoundError
    before anything is written.
    """
    current = get_task(conn, student_id, task_id)

    if isinstance(update, PartialTaskUpdate):
        conn.execute(
            "UPDATE tasks SET status=?, updated_at=? WHERE task_id=? AND student_id=?",
            (status_for(update.completed), utcnow_iso(), int(task_id), int(student_id)),
        )
        return get_task(conn, student_id, task_id)

    assert isinstance(update, FullTaskUpdate)
    conn.execute(
        """
        UPDATE tasks
        SET title=?, subject=?, due_date=?, priority=?, status=?, updated_at=?
        WHERE task_id=? AND student_id=?
        """,
        (
            update.title,
            update.subject,
            update.due_date.isoformat(),
            update.priority or current["priority"],
            update.status or current["status"],
            utcnow_iso(),
            int(task_id),
            int(student_id),
        ),
    )
    return get_task(conn, student_id, task_id)


def delete_task(conn: Any, student_id: int, task_id: int) -> None:
    if not row_id_in_range(task_id):
        raise NotFoundError("task_not_found")
    cur = conn.execute(
        "DELETE FROM tasks WHERE task_id=? AND student_id=?",
        (int(task_id), int(student_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError("task_not_found")
