from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence
from urllib.parse import urlparse

from studymate.errors import StorageError
from studymate.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def _detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'."""
    s = (dsn or "").strip()
    if not s:
        return "sqlite"
    try:
        scheme = urlparse(s).scheme.lower()
    except Exception:
        scheme = ""
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    # Allow sqlite:///path style, but default is file path.
    return "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Convert SQLite qmark placeholders (?) to psycopg2 placeholders (%s).

    Placeholders inside single/double-quoted string literals are left alone.
    """
    out: List[str] = []
    in_single = False
    in_double = False
    i = 0
    while i < len(sql):
        ch = sql[i]

        if ch == "'" and not in_double:
            out.append(ch)
            if in_single:
                # Escaped single quote: ''
                if i + 1 < len(sql) and sql[i + 1] == "'":
                    out.append("'")
                    i += 2
                    continue
                in_single = False
            else:
                in_single = True
            i += 1
            continue

        if ch == '"' and not in_single:
            out.append(ch)
            if in_double:
                if i + 1 < len(sql) and sql[i + 1] == '"':
                    out.append('"')
                    i += 2
                    continue
                in_double = False
            else:
                in_double = True
            i += 1
            continue

        if ch == "?" and not in_single and not in_double:
            out.append("%s")
            i += 1
            continue

        out.append(ch)
        i += 1

    return "".join(out)


class PGCursor:
    def __init__(self, cur: Any):
        self._cur = cur

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> "PGCursor":
        self._cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return self

    def fetchone(self) -> Any:
        return self._cur.fetchone()

    def fetchall(self) -> Any:
        return self._cur.fetchall()

    @property
    def rowcount(self) -> int:
        try:
            return int(self._cur.rowcount or 0)
        except Exception:
            return 0

    def close(self) -> None:
        try:
            self._cur.close()
        except Exception:
            pass


class PGConnection:
    """A tiny adapter that makes psycopg2 connections look like sqlite3 connections."""

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> PGCursor:
        wrapper = PGCursor(self._conn.cursor())
        wrapper.execute(sql, params)
        return wrapper

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def _driver_errors() -> tuple[type[BaseException], ...]:
    errors: list[type[BaseException]] = [sqlite3.Error]
    try:
        import psycopg2

        errors.append(psycopg2.Error)
    except Exception:
        pass
    return tuple(errors)


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Open one transaction against SQLite or Postgres.

    - SQLite: uses WAL + NORMAL sync.
    - Postgres: uses psycopg2 (RealDictCursor) so rows behave like dicts.

    Commits when the block exits cleanly, rolls back otherwise. Driver errors
    are re-raised as StorageError; the driver text only goes to the server log.
    """
    dsn = (db_dsn or "").strip()
    dialect = _detect_dialect(dsn)
    driver_errors = _driver_errors()

    try:
        conn = _open(dsn, dialect)
    except driver_errors as e:
        _debug(f"Connection failed ({dialect}): {e}")
        raise StorageError() from e

    try:
        yield conn
        conn.commit()
    except driver_errors as e:
        conn.rollback()
        _debug(f"Storage error ({dialect}): {type(e).__name__}: {e}")
        raise StorageError() from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _open(dsn: str, dialect: str) -> Any:
    if dialect == "postgres":
        try:
            import psycopg2
            import psycopg2.extras
        except Exception as e:
            raise RuntimeError(
                "Postgres selected but psycopg2 is not installed. "
                "Install psycopg2-binary and try again."
            ) from e

        raw = psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor)
        return PGConnection(raw)

    # Support sqlite:///path style
    if dsn.lower().startswith("sqlite:///"):
        dsn = dsn[len("sqlite:///") :]

    Path(dsn).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dsn, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")  # 5s
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def insert_returning_id(conn: Any, sql: str, params: Sequence[Any], *, id_column: str) -> int:
    """Run an INSERT and return the new row's integer primary key."""
    if getattr(conn, "dialect", "sqlite") == "postgres":
        row = conn.execute(f"{sql.rstrip().rstrip(';')} RETURNING {id_column}", params).fetchone()
        return int(row[id_column])
    cur = conn.execute(sql, params)
    return int(cur.lastrowid)


# Integer primary keys are signed 64-bit on both engines.
MAX_ROW_ID = 2**63 - 1


def row_id_in_range(row_id: int) -> bool:
    """True if `row_id` could name a stored row (larger values cannot be bound)."""
    return 0 < int(row_id) <= MAX_ROW_ID


def init_db(db_dsn: str) -> None:
    """Create all tables and run lightweight migrations."""
    dialect = _detect_dialect(db_dsn)
    _debug(f"Initializing DB ({dialect}) at {db_dsn}")
    with connect(db_dsn) as conn:
        schema_sql = get_schema_sql(dialect)
        if dialect == "postgres":
            # Serialize DDL across processes.
            conn.execute("SELECT pg_advisory_lock(2147483646);")
            try:
                _exec_schema(conn, schema_sql, dialect=dialect)
            finally:
                conn.execute("SELECT pg_advisory_unlock(2147483646);")
        else:
            _exec_schema(conn, schema_sql, dialect=dialect)

        _migrate(conn, dialect=dialect)


def _exec_schema(conn: Any, ddl: str, *, dialect: str) -> None:
    if dialect == "postgres":
        # Naive split is OK for our schema (no ';' inside literals).
        statements = [s.strip() for s in ddl.split(";") if s.strip()]
        for stmt in statements:
            conn.execute(stmt)
        return

    conn.executescript(ddl)


def _has_column(conn: Any, table: str, col: str, *, dialect: str) -> bool:
    return col in _table_columns(conn, table, dialect=dialect)


def _table_columns(conn: Any, table: str, *, dialect: str) -> List[str]:
    if dialect == "postgres":
        rows = conn.execute(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema='public' AND table_name=?
            ORDER BY ordinal_position
            """,
            (table,),
        ).fetchall()
        return [str(r["column_name"]) for r in rows]

    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [str(r["name"]) for r in rows]


def _migrate(conn: Any, *, dialect: str) -> None:
    """Lightweight forward-only migrations for existing DBs.

    Early databases had a bare students table (no profile/theme/allowance
    columns) and tasks without a priority column.
    """
    student_cols_to_add = [
        ("bio", "TEXT NOT NULL DEFAULT ''"),
        ("profile_picture", "TEXT"),
        ("theme_preference", "TEXT NOT NULL DEFAULT 'light'"),
        ("monthly_allowance", "NUMERIC(12,2) NOT NULL DEFAULT 0"),
        ("last_login_at", "TEXT"),
    ]
    for col, ctype in student_cols_to_add:
        if not _has_column(conn, "students", col, dialect=dialect):
            conn.execute(f"ALTER TABLE students ADD COLUMN {col} {ctype}")

    if not _has_column(conn, "tasks", "priority", dialect=dialect):
        conn.execute("ALTER TABLE tasks ADD COLUMN priority TEXT NOT NULL DEFAULT 'medium'")


def upsert_app_config(conn: Any, key: str, value: str) -> None:
    """Upsert a simple key/value config entry."""
    conn.execute(
        """
        INSERT INTO app_config (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def get_app_config(conn: Any, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM app_config WHERE key=?", (key,)).fetchone()
    if row is None:
        return None
    return str(row["value"])
