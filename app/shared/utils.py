"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_slot_date(value: date) -> str:
    """Render a date the way customers see it, e.g. ``Monday, 20 January 2026``."""
    return f"{value:%A}, {value.day} {value:%B %Y}"


def format_slot_time(value: time) -> str:
    """Render a start time as ``HH:MM``."""
    return value.strftime("%H:%M")
