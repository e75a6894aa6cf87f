from __future__ import annotations

from typing import Any, Dict, Optional

from studymate.errors import ConflictError, NotFoundError, ValidationError
from studymate.util.time import utcnow_iso

from .security import hash_password, verify_password


THEMES = ("light", "dark")

_PROFILE_COLUMNS = (
    "student_id, full_name, username, email, bio, profile_picture, "
    "theme_preference, monthly_allowance, created_at, updated_at, last_login_at"
)


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def public_student(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    d.pop("password_hash", None)
    if "monthly_allowance" in d:
        d["monthly_allowance"] = float(d["monthly_allowance"] or 0)
    return d


def get_student_by_username(conn: Any, username: str) -> Optional[Any]:
    u = normalize_username(username)
    if not u:
        return None
    return conn.execute(
        "SELECT * FROM students WHERE username=?",
        (u,),
    ).fetchone()


def get_student_by_id(conn: Any, student_id: int) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM students WHERE student_id=?",
        (int(student_id),),
    ).fetchone()


def verify_student_credentials(conn: Any, username: str, password: str) -> Optional[Any]:
    row = get_student_by_username(conn, username)
    if row is None:
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return row


def _identity_taken(conn: Any, username: str, email: str, *, exclude_student_id: int | None = None) -> bool:
    if exclude_student_id is None:
        row = conn.execute(
            "SELECT 1 FROM students WHERE username=? OR email=?",
            (username, email),
        ).fetchone()
    else:
        row = conn.execute(
            "SELECT 1 FROM students WHERE (username=? OR email=?) AND student_id<>?",
            (username, email, int(exclude_student_id)),
        ).fetchone()
    return row is not None


def create_student(
    conn: Any,
    *,
    full_name: str,
    username: str,
    email: str,
    password: str,
) -> Dict[str, Any]:
    name = (full_name or "").strip()
    u = normalize_username(username)
    e = normalize_email(email)
    if not name or not u or not e or not password:
        raise ValidationError("missing_fields")

    # Uniqueness is checked on the normalized values.
    if _identity_taken(conn, u, e):
        raise ConflictError("username_or_email_exists")

    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO students (full_name, username, email, password_hash, created_at, updated_at)
        VALUES (?,?,?,?,?,?)
        """,
        (name, u, e, hash_password(password), now, now),
    )
    row = get_student_by_username(conn, u)
    assert row is not None
    return public_student(row)


def touch_last_login(conn: Any, student_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE students SET last_login_at=?, updated_at=? WHERE student_id=?",
        (now, now, int(student_id)),
    )


def get_profile(conn: Any, student_id: int) -> Dict[str, Any]:
    row = conn.execute(
        f"SELECT {_PROFILE_COLUMNS} FROM students WHERE student_id=?",
        (int(student_id),),
    ).fetchone()
    if row is None:
        raise NotFoundError("profile_not_found")
    return public_student(row)


def update_profile(
    conn: Any,
    student_id: int,
    *,
    name: str,
    username: str,
    email: str,
    bio: str | None = None,
    picture: str | None = None,
) -> Dict[str, Any]:
    """Replace the editable profile fields of one account.

    The username/email uniqueness check ignores the caller's own row, so
    re-submitting an unchanged profile is not a conflict.
    """
    full_name = (name or "").strip()
    u = normalize_username(username)
    e = normalize_email(email)
    if not full_name or not u or not e:
        raise ValidationError("missing_fields")

    if _identity_taken(conn, u, e, exclude_student_id=student_id):
        raise ConflictError("username_or_email_exists")

    cur = conn.execute(
        """
        UPDATE students
        SET full_name=?, username=?, email=?, bio=?, profile_picture=?, updated_at=?
        WHERE student_id=?
        """,
        (full_name, u, e, (bio or "").strip(), picture or None, utcnow_iso(), int(student_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError("profile_not_found")
    return get_profile(conn, student_id)


def update_theme_preference(conn: Any, student_id: int, theme: str) -> str:
    t = (theme or "").strip().lower()
    if t not in THEMES:
        raise ValidationError("invalid_theme")
    cur = conn.execute(
        "UPDATE students SET theme_preference=?, updated_at=? WHERE student_id=?",
        (t, utcnow_iso(), int(student_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError("profile_not_found")
    return t
