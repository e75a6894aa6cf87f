from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_iso_date(value: str | date | None) -> date | None:
    """Parse a YYYY-MM-DD string (a trailing time part is ignored)."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s.split("T", 1)[0])
    except ValueError:
        return None
