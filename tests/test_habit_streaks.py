"""Tests for habit streak calculations.

Covers daily streaks (consecutive days), weekly streaks for N-times-per-week
habits (consecutive rolling weeks meeting the target), longest streaks,
milestone progress and the incremental counter rule.
"""

from __future__ import annotations

from datetime import date, timedelta

from maximost.services import habits as streaks

from factories import TODAY, days_ago, make_completions, make_habit


class TestCompletedDays:
    def test_incomplete_records_are_ignored(self):
        habit = make_habit()
        records = make_completions(habit, [TODAY]) + make_completions(
            habit, [days_ago(1)], completed=False
        )

        assert streaks.completed_days(records) == {TODAY}

    def test_filters_by_habit(self):
        water = make_habit("Water")
        walk = make_habit("Walk")
        records = make_completions(water, [TODAY]) + make_completions(walk, [days_ago(1)])

        assert streaks.completed_days(records, water.id) == {TODAY}

    def test_iso_strings_are_normalized(self):
        habit = make_habit()
        records = make_completions(habit, ["2024-06-16"])

        assert streaks.completed_days(records) == {date(2024, 6, 16)}


class TestDailyStreak:
    def test_no_entries_returns_zero_streak(self):
        habit = make_habit("Exercise")
        assert streaks.current_streak(habit, [], TODAY) == 0

    def test_single_entry_today_returns_one(self):
        habit = make_habit("Exercise")
        assert streaks.current_streak(habit, make_completions(habit, [TODAY]), TODAY) == 1

    def test_consecutive_days_returns_correct_streak(self):
        habit = make_habit("Meditation")
        records = make_completions(habit, [days_ago(i) for i in range(7)])

        assert streaks.current_streak(habit, records, TODAY) == 7

    def test_gap_breaks_streak(self):
        habit = make_habit("Reading")
        records = make_completions(habit, [TODAY, days_ago(1), days_ago(3), days_ago(4)])

        assert streaks.current_streak(habit, records, TODAY) == 2

    def test_unfinished_today_keeps_yesterdays_streak(self):
        """Today is still open, so a run ending yesterday is not broken yet."""
        habit = make_habit("Exercise")
        records = make_completions(habit, [days_ago(i) for i in range(1, 6)])

        assert streaks.current_streak(habit, records, TODAY) == 5

    def test_missing_today_and_yesterday_returns_zero(self):
        habit = make_habit("Exercise")
        records = make_completions(habit, [days_ago(i) for i in range(2, 6)])

        assert streaks.current_streak(habit, records, TODAY) == 0

    def test_incomplete_record_breaks_streak(self):
        habit = make_habit("Running")
        records = make_completions(habit, [TODAY, days_ago(2)]) + make_completions(
            habit, [days_ago(1)], completed=False
        )

        assert streaks.current_streak(habit, records, TODAY) == 1

    def test_absolute_weekly_habit_counts_days(self):
        habit = make_habit("Stretch", frequency="3x-week", is_absolute=True)
        records = make_completions(habit, [TODAY, days_ago(1), days_ago(2)])

        assert streaks.current_streak(habit, records, TODAY) == 3


class TestWeeklyStreak:
    def test_three_times_a_week_counts_weeks(self):
        habit = make_habit("Strength Training", frequency="3x-week")
        days = []
        for week in range(3):
            days += [days_ago(week * 7 + offset) for offset in (0, 2, 4)]

        assert streaks.current_streak(habit, make_completions(habit, days), TODAY) == 3

    def test_current_week_in_progress_keeps_previous_weeks(self):
        habit = make_habit("Strength Training", frequency="3x-week")
        days = [days_ago(7), days_ago(9), days_ago(11), TODAY]

        assert streaks.current_streak(habit, make_completions(habit, days), TODAY) == 1

    def test_missed_week_breaks_weekly_streak(self):
        habit = make_habit("Yoga", frequency="2x-week")
        days = [TODAY, days_ago(1), days_ago(14), days_ago(15)]

        assert streaks.current_streak(habit, make_completions(habit, days), TODAY) == 1

    def test_weekly_streak_helper_empty(self):
        assert streaks.weekly_streak(set(), 3, TODAY) == 0


class TestLongestStreak:
    def test_multiple_daily_runs_returns_longest(self):
        habit = make_habit("Reading")
        start = date(2024, 1, 1)
        days = [start + timedelta(days=i) for i in range(3)]
        days += [date(2024, 1, 10) + timedelta(days=i) for i in range(7)]
        days += [date(2024, 1, 20) + timedelta(days=i) for i in range(4)]

        assert streaks.longest_streak(habit, make_completions(habit, days), TODAY) == 7

    def test_current_streak_can_be_longest(self):
        habit = make_habit("Yoga")
        days = [date(2024, 1, 1), date(2024, 1, 2)] + [days_ago(i) for i in range(14)]
        records = make_completions(habit, days)

        assert streaks.longest_streak(habit, records, TODAY) == 14
        assert streaks.current_streak(habit, records, TODAY) == 14

    def test_weekly_longest_run(self):
        habit = make_habit("Swim", frequency="1x-week")
        days = [days_ago(35), days_ago(28), days_ago(21), TODAY]

        assert streaks.longest_streak(habit, make_completions(habit, days), TODAY) == 3

    def test_compute_streaks_returns_current_and_longest(self):
        habit = make_habit()
        records = make_completions(habit, [TODAY, days_ago(1), days_ago(5), days_ago(6), days_ago(7)])

        assert streaks.compute_streaks(records, today=TODAY) == (2, 3)


class TestIncrementalStreak:
    def test_increment_and_decrement(self):
        assert streaks.incremental_streak(2, False, True) == 3
        assert streaks.incremental_streak(2, True, False) == 1
        assert streaks.incremental_streak(2, True, True) == 2

    def test_never_below_zero(self):
        assert streaks.incremental_streak(0, True, False) == 0

    def test_matches_replay_for_forward_toggling(self):
        habit = make_habit("Drink Water")
        cached = 0
        history = []
        start = days_ago(9)
        for offset in range(10):
            day = start + timedelta(days=offset)
            history += make_completions(habit, [day])
            cached = streaks.incremental_streak(cached, False, True)
            assert cached == streaks.current_streak(habit, history, day)


class TestStreakProgress:
    def test_progress_between_milestones(self):
        progress = streaks.streak_progress(10)
        assert progress.next_milestone == 14
        assert progress.progress == 43  # (10 - 7) / (14 - 7)

    def test_zero_streak_targets_first_milestone(self):
        progress = streaks.streak_progress(0)
        assert progress.next_milestone == 3
        assert progress.progress == 0

    def test_beyond_last_milestone_rolls_weekly(self):
        progress = streaks.streak_progress(400)
        assert progress.next_milestone == 407

    def test_summary_reports_unit_and_last_completion(self):
        habit = make_habit("Walk", frequency="2x-week")
        records = make_completions(habit, [days_ago(1), days_ago(3)])

        summary = streaks.summarize_streak(habit, records, TODAY)

        assert summary.unit == "weeks"
        assert summary.current == 1
        assert summary.last_completed == days_ago(1)
