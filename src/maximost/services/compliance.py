"""Weekly compliance and completion-rate calculations."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Iterable

from .dates import WINDOW_DAYS, to_calendar_day, today as local_today, trailing_window
from .frequency import is_every_day, target_count
from .habits import completed_days


def weekly_completion_count(
    habit: Any, completions: Iterable[Any], now: date | None = None
) -> int:
    """Number of completed days for ``habit`` in the trailing 7-day window."""

    start, end = trailing_window(now or local_today())
    return sum(1 for day in completed_days(completions, habit.id) if start <= day <= end)


def has_met_weekly_target(
    habit: Any, completions: Iterable[Any], now: date | None = None
) -> bool:
    """Whether the trailing week holds at least the habit's target completions."""

    return weekly_completion_count(habit, completions, now) >= target_count(habit.frequency)


def completion_percentage(
    habit: Any, completions: Iterable[Any], start: date, end: date
) -> float:
    """Percentage of expected completions achieved between ``start`` and ``end``.

    Daily habits expect every day. Other habits are measured per 7-day block
    from ``start``; completions above the target in a block do not count.
    """

    start = to_calendar_day(start)
    end = to_calendar_day(end)
    if end < start:
        return 0.0

    days = {d for d in completed_days(completions, habit.id) if start <= d <= end}
    total_days = (end - start).days + 1

    if is_every_day(habit):
        return len(days) / total_days * 100

    target = target_count(habit.frequency)
    required = 0
    achieved = 0
    block_start = start
    while block_start <= end:
        block_end = min(block_start + timedelta(days=WINDOW_DAYS - 1), end)
        block_len = (block_end - block_start).days + 1
        block_required = min(target, block_len)
        done = sum(1 for d in days if block_start <= d <= block_end)
        required += block_required
        achieved += min(done, block_required)
        block_start = block_end + timedelta(days=1)

    return achieved / required * 100 if required else 0.0


def completion_rate(
    habits: Iterable[Any],
    completions: Iterable[Any],
    now: date | None = None,
    days: int = WINDOW_DAYS,
) -> int:
    """Dashboard completion rate across all habits over the last ``days`` days."""

    habits = list(habits)
    if not habits or days <= 0:
        return 0

    start, end = trailing_window(now or local_today(), days)
    habit_ids = {habit.id for habit in habits}
    done = {
        (c.habit_id, to_calendar_day(c.completed_on))
        for c in completions
        if c.completed and c.habit_id in habit_ids
    }
    recent = sum(1 for _, day in done if start <= day <= end)

    possible = sum(math.ceil(days * target_count(habit.frequency) / WINDOW_DAYS) for habit in habits)
    if possible == 0:
        return 0
    return min(100, round(recent / possible * 100))


__all__ = [
    "completion_percentage",
    "completion_rate",
    "has_met_weekly_target",
    "weekly_completion_count",
]
