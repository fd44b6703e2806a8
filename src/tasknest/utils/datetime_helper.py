# src/tasknest/utils/datetime_helper.py

"""Datetime helpers: everything is stored and compared as aware UTC."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are interpreted as UTC (the wire format always carries an offset,
    so naive values only come from callers).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    return ensure_utc(dt).isoformat()


def parse_iso(raw: str) -> datetime:
    """Parse an ISO-8601 string (accepts a trailing 'Z')."""
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(s))


def calendar_date(dt: datetime) -> date:
    """UTC calendar date of dt."""
    return ensure_utc(dt).date()
