"""Tests for the frequency policy."""

from __future__ import annotations

import pytest

from maximost.services.frequency import HabitFrequency, is_every_day, target_count

from factories import make_habit


@pytest.mark.parametrize(
    "frequency,expected",
    [
        ("daily", 7),
        ("6x-week", 6),
        ("5x-week", 5),
        ("4x-week", 4),
        ("3x-week", 3),
        ("2x-week", 2),
        ("1x-week", 1),
        ("weekly", 1),
        ("custom", 1),
    ],
)
def test_target_count_mapping(frequency, expected):
    assert target_count(frequency) == expected


def test_target_count_accepts_enum_members():
    assert target_count(HabitFrequency.DAILY) == 7
    assert target_count(HabitFrequency.THREE_PER_WEEK) == 3


@pytest.mark.parametrize("value", ["monthly", "", None, 42, "3x/week"])
def test_unrecognized_frequency_defaults_to_one(value):
    """Never zero, so percentage displays can always divide by it."""
    assert target_count(value) == 1


def test_parse_is_case_and_whitespace_tolerant():
    assert HabitFrequency.parse(" Daily ") is HabitFrequency.DAILY
    assert HabitFrequency.parse("nonsense") is HabitFrequency.CUSTOM


def test_every_day_for_daily_and_absolute_habits():
    assert is_every_day(make_habit(frequency="daily"))
    assert is_every_day(make_habit(frequency="3x-week", is_absolute=True))
    assert not is_every_day(make_habit(frequency="3x-week", is_absolute=False))
