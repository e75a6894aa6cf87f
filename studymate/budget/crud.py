from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List

from studymate.db import insert_returning_id, row_id_in_range
from studymate.errors import NotFoundError, ValidationError
from studymate.util.time import parse_iso_date, utcnow_iso


_CENT = Decimal("0.01")

# Largest magnitude a NUMERIC(12,2) money column holds.
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True)
class NewExpense:
    amount: Decimal
    category: str
    description: str
    expense_date: date


def to_money(value: Any) -> Decimal:
    """Coerce a JSON number/string to a Decimal rounded to cents.

    Raises ValidationError for anything that is not numeric (booleans included)
    or whose magnitude exceeds MAX_AMOUNT.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("invalid_amount")
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("invalid_amount")
    if not d.is_finite() or abs(d) > MAX_AMOUNT:
        raise ValidationError("invalid_amount")
    try:
        return d.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("invalid_amount")


def parse_new_expense(body: Any) -> NewExpense:
    if not isinstance(body, dict):
        raise ValidationError("body_must_be_object")

    category = body.get("category")
    description = body.get("description")
    raw_date = body.get("date")
    raw_amount = body.get("amount")
    if raw_amount is None or raw_amount == "" or not category or not description or not raw_date:
        raise ValidationError("missing_fields")
    if not isinstance(category, str) or not isinstance(description, str):
        raise ValidationError("missing_fields")
    if not category.strip() or not description.strip():
        raise ValidationError("missing_fields")

    amount = to_money(raw_amount)
    if amount <= 0:
        raise ValidationError("amount_must_be_positive")

    d = parse_iso_date(raw_date) if isinstance(raw_date, str) else None
    if d is None:
        raise ValidationError("invalid_date")

    return NewExpense(
        amount=amount,
        category=category.strip(),
        description=description.strip(),
        expense_date=d,
    )


def public_expense(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    return {
        "id": int(d["expense_id"]),
        "amount": float(d["amount"]),
        "category": d.get("category") or "",
        "description": d.get("description") or "",
        "date": str(d.get("expense_date") or ""),
    }


def get_allowance(conn: Any, student_id: int) -> float:
    row = conn.execute(
        "SELECT monthly_allowance FROM students WHERE student_id=?",
        (int(student_id),),
    ).fetchone()
    if row is None:
        return 0.0
    return float(row["monthly_allowance"] or 0)


def list_expenses(conn: Any, student_id: int) -> Dict[str, Any]:
    """Allowance plus expenses, most recent date first (newest row first on ties)."""
    rows = conn.execute(
        """
        SELECT expense_id, amount, category, description, expense_date
        FROM expenses
        WHERE student_id=?
        ORDER BY expense_date DESC, expense_id DESC
        """,
        (int(student_id),),
    ).fetchall()
    return {
        "allowance": get_allowance(conn, student_id),
        "expenses": [public_expense(r) for r in rows],
    }


def add_expense(conn: Any, student_id: int, expense: NewExpense) -> int:
    if expense.amount <= 0:
        raise ValidationError("amount_must_be_positive")
    return insert_returning_id(
        conn,
        """
        INSERT INTO expenses (student_id, amount, category, description, expense_date, created_at)
        VALUES (?,?,?,?,?,?)
        """,
        (
            int(student_id),
            str(expense.amount),
            expense.category,
            expense.description,
            expense.expense_date.isoformat(),
            utcnow_iso(),
        ),
        id_column="expense_id",
    )


def delete_expense(conn: Any, student_id: int, expense_id: int) -> None:
    if not row_id_in_range(expense_id):
        raise NotFoundError("expense_not_found")
    cur = conn.execute(
        "DELETE FROM expenses WHERE expense_id=? AND student_id=?",
        (int(expense_id), int(student_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError("expense_not_found")


def set_allowance(conn: Any, student_id: int, amount: Any) -> float:
    """Replace the monthly allowance.

    A missing value stores 0. Negative amounts are stored as given.
    """
    value = Decimal("0.00") if amount is None or amount == "" else to_money(amount)
    cur = conn.execute(
        "UPDATE students SET monthly_allowance=?, updated_at=? WHERE student_id=?",
        (str(value), utcnow_iso(), int(student_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError("profile_not_found")
    return float(value)
