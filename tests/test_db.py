from __future__ import annotations

import sqlite3

import pytest

from studymate.db import (
    MAX_ROW_ID,
    _qmark_to_pct,
    _table_columns,
    connect,
    get_app_config,
    init_db,
    insert_returning_id,
    row_id_in_range,
    upsert_app_config,
)
from studymate.errors import StorageError
from studymate.schema import get_schema_sql


@pytest.mark.parametrize(
    "sql,expected",
    [
        ("SELECT * FROM t WHERE a=? AND b=?", "SELECT * FROM t WHERE a=%s AND b=%s"),
        ("SELECT '?' FROM t WHERE a=?", "SELECT '?' FROM t WHERE a=%s"),
        ("SELECT 'it''s ?' , \"col?\" FROM t WHERE a=?", "SELECT 'it''s ?' , \"col?\" FROM t WHERE a=%s"),
    ],
)
def test_qmark_to_pct(sql, expected):
    assert _qmark_to_pct(sql) == expected


def test_init_db_is_idempotent(tmp_path):
    dsn = str(tmp_path / "nested" / "db.sqlite")
    init_db(dsn)
    init_db(dsn)

    with connect(dsn) as conn:
        upsert_app_config(conn, "schema_version", "v1")
        upsert_app_config(conn, "schema_version", "v2")
    with connect(dsn) as conn:
        assert get_app_config(conn, "schema_version") == "v2"
        assert get_app_config(conn, "missing") is None


def test_insert_returning_id_on_sqlite(tmp_path):
    dsn = str(tmp_path / "db.sqlite")
    init_db(dsn)
    with connect(dsn) as conn:
        first = insert_returning_id(
            conn,
            "INSERT INTO app_config (key, value) VALUES (?, ?)",
            ("a", "1"),
            id_column="rowid",
        )
        second = insert_returning_id(
            conn,
            "INSERT INTO app_config (key, value) VALUES (?, ?)",
            ("b", "2"),
            id_column="rowid",
        )
    assert second == first + 1


def test_migrates_legacy_tables(tmp_path):
    dsn = str(tmp_path / "legacy.sqlite")
    raw = sqlite3.connect(dsn)
    raw.executescript(
        """
        CREATE TABLE students (
          student_id INTEGER PRIMARY KEY AUTOINCREMENT,
          full_name TEXT NOT NULL,
          username TEXT NOT NULL UNIQUE,
          email TEXT NOT NULL UNIQUE,
          password_hash TEXT NOT NULL,
          created_at TEXT NOT NULL,
          updated_at TEXT NOT NULL
        );
        CREATE TABLE tasks (
          task_id INTEGER PRIMARY KEY AUTOINCREMENT,
          student_id INTEGER NOT NULL,
          title TEXT NOT NULL,
          subject TEXT NOT NULL,
          due_date TEXT NOT NULL,
          status TEXT NOT NULL DEFAULT 'Pending',
          created_at TEXT NOT NULL,
          updated_at TEXT NOT NULL
        );
        INSERT INTO students (full_name, username, email, password_hash, created_at, updated_at)
        VALUES ('Old', 'old', 'old@x.com', 'x', '2024-01-01', '2024-01-01');
        INSERT INTO tasks (student_id, title, subject, due_date, created_at, updated_at)
        VALUES (1, 'T', 'S', '2024-02-01', '2024-01-01', '2024-01-01');
        """
    )
    raw.commit()
    raw.close()

    init_db(dsn)

    with connect(dsn) as conn:
        cols = _table_columns(conn, "students", dialect="sqlite")
        for col in ("bio", "profile_picture", "theme_preference", "monthly_allowance", "last_login_at"):
            assert col in cols
        assert "priority" in _table_columns(conn, "tasks", dialect="sqlite")

        student = conn.execute("SELECT * FROM students WHERE student_id=1").fetchone()
        assert student["theme_preference"] == "light"
        assert student["monthly_allowance"] == 0
        task = conn.execute("SELECT priority FROM tasks WHERE task_id=1").fetchone()
        assert task["priority"] == "medium"
        assert "expense_id" in _table_columns(conn, "expenses", dialect="sqlite")


def test_driver_error_becomes_storage_error(tmp_path):
    dsn = str(tmp_path / "db.sqlite")
    init_db(dsn)
    with pytest.raises(StorageError) as ei:
        with connect(dsn) as conn:
            conn.execute("SELECT nope FROM missing_table")
    assert ei.value.detail == "storage_error"
    assert ei.value.status_code == 500
    assert isinstance(ei.value.__cause__, sqlite3.Error)


def test_failed_block_rolls_back(tmp_path):
    dsn = str(tmp_path / "db.sqlite")
    init_db(dsn)
    with pytest.raises(RuntimeError):
        with connect(dsn) as conn:
            upsert_app_config(conn, "k", "v")
            raise RuntimeError("boom")
    with connect(dsn) as conn:
        assert get_app_config(conn, "k") is None


def test_schema_constraints_reject_bad_rows(tmp_path):
    dsn = str(tmp_path / "db.sqlite")
    init_db(dsn)
    with pytest.raises(StorageError):
        with connect(dsn) as conn:
            conn.execute(
                "INSERT INTO expenses (student_id, amount, category, description, expense_date, created_at) "
                "VALUES (999, 5, 'c', 'd', '2025-01-01', '2025-01-01')"
            )


def test_postgres_schema_uses_serial_keys():
    ddl = get_schema_sql("postgres")
    assert "BIGSERIAL" in ddl
    assert "AUTOINCREMENT" not in ddl
    assert "AUTOINCREMENT" in get_schema_sql("sqlite")


@pytest.mark.parametrize(
    "row_id,expected",
    [(1, True), (MAX_ROW_ID, True), (0, False), (-1, False), (MAX_ROW_ID + 1, False), (2**70, False)],
)
def test_row_id_in_range(row_id, expected):
    assert row_id_in_range(row_id) is expected


@pytest.mark.parametrize("dialect", ["sqlite", "postgres"])
def test_money_columns_are_exact_decimals(dialect):
    ddl = get_schema_sql(dialect)
    assert "amount NUMERIC(12,2)" in ddl
    assert "monthly_allowance NUMERIC(12,2)" in ddl
    assert "DOUBLE PRECISION" not in ddl


def test_money_is_written_rounded_to_cents(tmp_path):
    from studymate.auth.crud import create_student
    from studymate.budget.crud import add_expense, list_expenses, parse_new_expense, set_allowance

    dsn = str(tmp_path / "db.sqlite")
    init_db(dsn)
    with connect(dsn) as conn:
        sid = create_student(conn, full_name="A", username="amy", email="amy@x.com", password="pw123")["student_id"]
        add_expense(
            conn,
            sid,
            parse_new_expense({"amount": "0.105", "category": "c", "description": "d", "date": "2025-01-01"}),
        )
        assert set_allowance(conn, sid, "100.005") == 100.01
    with connect(dsn) as conn:
        budget = list_expenses(conn, sid)
    assert budget["allowance"] == 100.01
    assert [e["amount"] for e in budget["expenses"]] == [0.11]
