"""Habit streak calculations.

Daily and absolute habits count consecutive calendar days. Every other
frequency counts consecutive rolling weeks in which the weekly target was met,
so a 3x-week habit done Monday, Wednesday and Friday keeps its streak over the
days in between.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Sequence

from .dates import WINDOW_DAYS, to_calendar_day, today as local_today
from .frequency import is_every_day, target_count

DEFAULT_MILESTONES: tuple[int, ...] = (3, 7, 14, 30, 60, 90, 180, 365)


@dataclass(slots=True)
class StreakProgress:
    """Distance from the current streak to the next milestone."""

    next_milestone: int
    progress: int


@dataclass(slots=True)
class StreakSummary:
    """Everything a streak badge needs to render."""

    current: int
    longest: int
    unit: str
    next_milestone: int
    progress: int
    last_completed: date | None = None


def completed_days(completions: Iterable[Any], habit_id: str | None = None) -> set[date]:
    """Return the calendar days with an effective completion.

    Records flagged ``completed=False`` are the same as no record at all.
    """

    days: set[date] = set()
    for completion in completions:
        if habit_id is not None and completion.habit_id != habit_id:
            continue
        if not completion.completed:
            continue
        days.add(to_calendar_day(completion.completed_on))
    return days


def compute_streaks(completions: Iterable[Any], *, today: date | None = None) -> tuple[int, int]:
    """Return (current_streak, longest_streak) in days from a collection of completions."""

    today = today or local_today()
    days = completed_days(completions)
    return daily_streak(days, today), _longest_daily_run(days, today)


def daily_streak(days: set[date], as_of: date) -> int:
    """Count consecutive completed days ending at ``as_of``.

    An unfinished ``as_of`` does not break the streak yet; counting then starts
    from the previous day.
    """

    cursor = as_of
    if cursor not in days:
        cursor -= timedelta(days=1)

    current = 0
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)
    return current


def _longest_daily_run(days: set[date], as_of: date) -> int:
    longest = 0
    run = 0
    last_day: date | None = None
    for day in sorted(d for d in days if d <= as_of):
        if last_day is not None and day == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def _window_met(ordered: Sequence[date], end: date, target: int) -> bool:
    start = end - timedelta(days=WINDOW_DAYS - 1)
    return bisect_right(ordered, end) - bisect_left(ordered, start) >= target


def weekly_streak(days: set[date], target: int, as_of: date) -> int:
    """Count consecutive 7-day windows, newest ending at ``as_of``, that met ``target``."""

    if not days:
        return 0
    ordered = sorted(days)
    end = as_of
    if not _window_met(ordered, end, target):
        end -= timedelta(days=WINDOW_DAYS)

    streak = 0
    while _window_met(ordered, end, target):
        streak += 1
        end -= timedelta(days=WINDOW_DAYS)
    return streak


def _longest_weekly_run(days: set[date], target: int, as_of: date) -> int:
    if not days:
        return 0
    ordered = sorted(days)
    earliest = ordered[0]
    longest = 0
    run = 0
    end = as_of
    while end >= earliest:
        if _window_met(ordered, end, target):
            run += 1
            longest = max(longest, run)
        else:
            run = 0
        end -= timedelta(days=WINDOW_DAYS)
    return longest


def current_streak(habit: Any, completions: Iterable[Any], as_of: date | None = None) -> int:
    """Replay ``completions`` and return the habit's current streak."""

    as_of = as_of or local_today()
    days = completed_days(completions, habit.id)
    if is_every_day(habit):
        return daily_streak(days, as_of)
    return weekly_streak(days, target_count(habit.frequency), as_of)


def longest_streak(habit: Any, completions: Iterable[Any], as_of: date | None = None) -> int:
    as_of = as_of or local_today()
    days = completed_days(completions, habit.id)
    if is_every_day(habit):
        return _longest_daily_run(days, as_of)
    return _longest_weekly_run(days, target_count(habit.frequency), as_of)


def incremental_streak(previous: int, was_completed: bool, now_completed: bool) -> int:
    """Apply a single toggle to a cached streak counter."""

    if now_completed and not was_completed:
        return previous + 1
    if was_completed and not now_completed:
        return max(previous - 1, 0)
    return previous


def streak_progress(
    current: int, milestones: Sequence[int] = DEFAULT_MILESTONES
) -> StreakProgress:
    """Return the next milestone and percentage progress toward it."""

    ordered = sorted(milestones)
    upcoming = [m for m in ordered if m > current]
    if upcoming:
        next_milestone = upcoming[0]
        index = ordered.index(next_milestone)
        previous = ordered[index - 1] if index > 0 else 0
    else:
        # Past the last milestone: keep a rolling one-week goal.
        next_milestone = current + 7
        previous = ordered[-1] if ordered else 0

    span = next_milestone - previous
    progress = min(100, round((current - previous) / span * 100)) if span > 0 else 100
    return StreakProgress(next_milestone=next_milestone, progress=max(progress, 0))


def summarize_streak(
    habit: Any, completions: Iterable[Any], as_of: date | None = None
) -> StreakSummary:
    as_of = as_of or local_today()
    completions = list(completions)
    current = current_streak(habit, completions, as_of)
    milestone = streak_progress(current)
    days = [d for d in completed_days(completions, habit.id) if d <= as_of]
    return StreakSummary(
        current=current,
        longest=longest_streak(habit, completions, as_of),
        unit="days" if is_every_day(habit) else "weeks",
        next_milestone=milestone.next_milestone,
        progress=milestone.progress,
        last_completed=max(days) if days else None,
    )


__all__ = [
    "DEFAULT_MILESTONES",
    "StreakProgress",
    "StreakSummary",
    "completed_days",
    "compute_streaks",
    "current_streak",
    "daily_streak",
    "incremental_streak",
    "longest_streak",
    "streak_progress",
    "summarize_streak",
    "weekly_streak",
]
