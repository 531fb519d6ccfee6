"""Perfect day / perfect week detection and one-shot celebrations."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from ..logging_config import get_logger
from .compliance import has_met_weekly_target
from .dates import iso_week_key, to_calendar_day
from .habits import completed_days

logger = get_logger(__name__)

PERFECT_DAY = "perfect_day"
PERFECT_WEEK = "perfect_week"


def is_perfect_day(habits: Iterable[Any], completions: Iterable[Any], day: date) -> bool:
    """True iff there is at least one habit and every habit was completed on ``day``.

    An empty dashboard is never perfect.
    """

    habits = list(habits)
    if not habits:
        return False
    day = to_calendar_day(day)
    completions = list(completions)
    return all(day in completed_days(completions, habit.id) for habit in habits)


def is_perfect_week(habits: Iterable[Any], completions: Iterable[Any], now: date) -> bool:
    """True iff there is at least one habit and all of them met their weekly target."""

    habits = list(habits)
    if not habits:
        return False
    completions = list(completions)
    return all(has_met_weekly_target(habit, completions, now) for habit in habits)


class CelebrationState(str, Enum):
    IDLE = "idle"
    TRIGGERED = "triggered"


class Celebration:
    """Flag for a celebratory effect: idle -> triggered -> idle."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.state = CelebrationState.IDLE

    @property
    def is_triggered(self) -> bool:
        return self.state is CelebrationState.TRIGGERED

    def trigger(self) -> bool:
        """Move to triggered; returns False when already triggered."""

        if self.is_triggered:
            return False
        self.state = CelebrationState.TRIGGERED
        return True

    def acknowledge(self) -> None:
        self.state = CelebrationState.IDLE


Callback = Callable[[date], None]


class AchievementDetector:
    """Edge-triggered achievement checks run after completion-producing toggles.

    Each day (and each ISO week) celebrates at most once per session, even if
    the user undoes and redoes a completion.
    """

    def __init__(
        self,
        *,
        on_perfect_day: Optional[Callback] = None,
        on_perfect_week: Optional[Callback] = None,
    ) -> None:
        self.celebrations = {
            PERFECT_DAY: Celebration(PERFECT_DAY),
            PERFECT_WEEK: Celebration(PERFECT_WEEK),
        }
        self._callbacks: dict[str, list[Callback]] = {PERFECT_DAY: [], PERFECT_WEEK: []}
        if on_perfect_day is not None:
            self._callbacks[PERFECT_DAY].append(on_perfect_day)
        if on_perfect_week is not None:
            self._callbacks[PERFECT_WEEK].append(on_perfect_week)
        self._celebrated_days: set[date] = set()
        self._celebrated_weeks: set[tuple[int, int]] = set()

    def on_perfect_day(self, callback: Callback) -> Callback:
        self._callbacks[PERFECT_DAY].append(callback)
        return callback

    def on_perfect_week(self, callback: Callback) -> Callback:
        self._callbacks[PERFECT_WEEK].append(callback)
        return callback

    def evaluate(
        self,
        habits: Iterable[Any],
        completions: Iterable[Any],
        *,
        toggled_on: date,
        today: date,
        was_perfect_day: bool = False,
        was_perfect_week: bool = False,
    ) -> list[str]:
        """Return the achievement kinds that fired for this toggle.

        ``was_perfect_day`` and ``was_perfect_week`` describe the state before
        the toggle; a predicate that was already true does not fire again.
        """

        toggled_on = to_calendar_day(toggled_on)
        if toggled_on != today:
            return []

        habits = list(habits)
        completions = list(completions)
        fired: list[str] = []

        if (
            not was_perfect_day
            and today not in self._celebrated_days
            and is_perfect_day(habits, completions, today)
        ):
            self._celebrated_days.add(today)
            if self._fire(PERFECT_DAY, today):
                fired.append(PERFECT_DAY)

        week = iso_week_key(today)
        if (
            not was_perfect_week
            and week not in self._celebrated_weeks
            and is_perfect_week(habits, completions, today)
        ):
            self._celebrated_weeks.add(week)
            if self._fire(PERFECT_WEEK, today):
                fired.append(PERFECT_WEEK)

        return fired

    def _fire(self, kind: str, day: date) -> bool:
        if not self.celebrations[kind].trigger():
            return False
        logger.info("Achievement unlocked", extra={"achievement": kind, "day": day.isoformat()})
        for callback in self._callbacks[kind]:
            callback(day)
        return True

    def acknowledge(self, kind: str) -> None:
        self.celebrations[kind].acknowledge()

    def reset(self) -> None:
        """Forget celebrated days and weeks and return every flag to idle."""

        self._celebrated_days.clear()
        self._celebrated_weeks.clear()
        for celebration in self.celebrations.values():
            celebration.acknowledge()


__all__ = [
    "AchievementDetector",
    "Celebration",
    "CelebrationState",
    "PERFECT_DAY",
    "PERFECT_WEEK",
    "is_perfect_day",
    "is_perfect_week",
]
