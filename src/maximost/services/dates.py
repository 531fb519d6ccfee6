"""Calendar-day helpers shared by the habit services."""

from __future__ import annotations

from datetime import date, datetime, timedelta

WINDOW_DAYS = 7


def today() -> date:
    """Return the viewer's local calendar day."""

    return date.today()


def to_calendar_day(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO-8601 string to a calendar day.

    Aware datetimes are converted to local time first so a browser timestamp
    such as ``2024-04-30T22:00:00.000Z`` (local midnight east of UTC) lands on
    the day the user actually ticked.
    """

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return to_calendar_day(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported date value: {value!r}")


def trailing_window(as_of: date, days: int = WINDOW_DAYS) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` of the rolling window ending at ``as_of``."""

    return as_of - timedelta(days=days - 1), as_of


def iso_week_key(day: date) -> tuple[int, int]:
    year, week, _ = day.isocalendar()
    return year, week


__all__ = ["WINDOW_DAYS", "iso_week_key", "to_calendar_day", "today", "trailing_window"]
