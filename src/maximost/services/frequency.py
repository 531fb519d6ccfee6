"""Frequency policy: how many completions a habit needs per rolling week."""

from __future__ import annotations

from enum import Enum
from typing import Any


class HabitFrequency(str, Enum):
    """Supported frequency options for habits."""

    DAILY = "daily"
    ONE_PER_WEEK = "1x-week"
    TWO_PER_WEEK = "2x-week"
    THREE_PER_WEEK = "3x-week"
    FOUR_PER_WEEK = "4x-week"
    FIVE_PER_WEEK = "5x-week"
    SIX_PER_WEEK = "6x-week"
    WEEKLY = "weekly"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Any) -> "HabitFrequency":
        """Return the matching member, falling back to ``CUSTOM``."""

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.CUSTOM
        return cls.CUSTOM


_TARGETS = {
    HabitFrequency.DAILY: 7,
    HabitFrequency.SIX_PER_WEEK: 6,
    HabitFrequency.FIVE_PER_WEEK: 5,
    HabitFrequency.FOUR_PER_WEEK: 4,
    HabitFrequency.THREE_PER_WEEK: 3,
    HabitFrequency.TWO_PER_WEEK: 2,
    HabitFrequency.ONE_PER_WEEK: 1,
    HabitFrequency.WEEKLY: 1,
}


def target_count(frequency: HabitFrequency | str | None) -> int:
    """Return required completions per rolling 7-day window (never zero)."""

    return _TARGETS.get(HabitFrequency.parse(frequency), 1)


def is_daily(frequency: HabitFrequency | str | None) -> bool:
    return HabitFrequency.parse(frequency) is HabitFrequency.DAILY


def is_every_day(habit: Any) -> bool:
    """Whether every calendar day is an expected occurrence for ``habit``."""

    return is_daily(getattr(habit, "frequency", None)) or bool(getattr(habit, "is_absolute", False))


__all__ = ["HabitFrequency", "is_daily", "is_every_day", "target_count"]
