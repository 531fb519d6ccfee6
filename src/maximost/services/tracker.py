"""Habit tracker: the commands and queries dashboard views call.

Every mutation recomputes the affected streak from completion history and
writes it together with the completion, so the next read is always current.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..domain.repositories.habit import HabitRepository
from ..forms.habit import HabitForm, HabitTemplate
from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion
from . import achievements, compliance, habits as streaks
from .dates import to_calendar_day, today as local_today
from .frequency import HabitFrequency, target_count

logger = get_logger(__name__)

# Fields a caller may never change through edit_habit.
_PROTECTED_FIELDS = {"id", "created_at", "streak", "position"}


@dataclass(slots=True)
class ToggleResult:
    """Outcome of a completion toggle."""

    habit_id: str
    day: date
    completed: bool
    streak: int
    achievements: list[str] = field(default_factory=list)

    @property
    def perfect_day(self) -> bool:
        return achievements.PERFECT_DAY in self.achievements

    @property
    def perfect_week(self) -> bool:
        return achievements.PERFECT_WEEK in self.achievements


@dataclass(slots=True)
class HabitStatus:
    """One dashboard row."""

    habit: Habit
    completed_today: bool
    streak: streaks.StreakSummary
    weekly_count: int
    weekly_target: int
    met_weekly_target: bool


class HabitTracker:
    """Application service over a :class:`HabitRepository`."""

    def __init__(
        self,
        repository: HabitRepository,
        *,
        clock: Callable[[], date] = local_today,
        detector: Optional[achievements.AchievementDetector] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.detector = detector or achievements.AchievementDetector()

    # Queries
    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return self.repository.get_by_id(habit_id)

    def list_habits(self) -> list[Habit]:
        return self.repository.list_all()

    def is_completed_on_date(self, habit_id: str, day: date | str) -> bool:
        record = self.repository.get_completion(habit_id, to_calendar_day(day))
        return bool(record and record.completed)

    def current_streak(self, habit_id: str) -> int:
        habit = self.repository.get_by_id(habit_id)
        if habit is None:
            return 0
        return streaks.current_streak(
            habit, self.repository.list_completions(habit_id), self.clock()
        )

    def has_met_weekly_target(self, habit_id: str) -> bool:
        habit = self.repository.get_by_id(habit_id)
        if habit is None:
            return False
        return compliance.has_met_weekly_target(
            habit, self.repository.list_completions(habit_id), self.clock()
        )

    def streak_summary(self, habit_id: str) -> Optional[streaks.StreakSummary]:
        habit = self.repository.get_by_id(habit_id)
        if habit is None:
            return None
        return streaks.summarize_streak(
            habit, self.repository.list_completions(habit_id), self.clock()
        )

    def dashboard(self) -> list[HabitStatus]:
        """Per-habit status rows in dashboard order."""

        today = self.clock()
        completions = self.repository.list_completions()
        rows: list[HabitStatus] = []
        for habit in self.repository.list_all():
            own = [c for c in completions if c.habit_id == habit.id]
            count = compliance.weekly_completion_count(habit, own, today)
            target = target_count(habit.frequency)
            rows.append(
                HabitStatus(
                    habit=habit,
                    completed_today=today in streaks.completed_days(own),
                    streak=streaks.summarize_streak(habit, own, today),
                    weekly_count=count,
                    weekly_target=target,
                    met_weekly_target=count >= target,
                )
            )
        return rows

    def is_perfect_day(self, day: date | None = None) -> bool:
        return achievements.is_perfect_day(
            self.repository.list_all(), self.repository.list_completions(), day or self.clock()
        )

    def is_perfect_week(self, now: date | None = None) -> bool:
        return achievements.is_perfect_week(
            self.repository.list_all(), self.repository.list_completions(), now or self.clock()
        )

    def completion_rate(self, days: int = 7) -> int:
        return compliance.completion_rate(
            self.repository.list_all(), self.repository.list_completions(), self.clock(), days
        )

    # Commands
    def toggle_completion(self, habit_id: str, day: date | str) -> Optional[ToggleResult]:
        """Flip the completion state of ``habit_id`` on ``day``.

        Unknown habits are ignored and ``None`` is returned.
        """

        habit = self.repository.get_by_id(habit_id)
        if habit is None:
            logger.debug("Toggle ignored for unknown habit", extra={"habit_id": habit_id})
            return None

        day = to_calendar_day(day)
        today = self.clock()
        history = self.repository.list_completions(habit_id)
        was_completed = day in streaks.completed_days(history)
        now_completed = not was_completed

        was_perfect_day = was_perfect_week = False
        celebrate = now_completed and day == today
        if celebrate:
            habits = self.repository.list_all()
            before = self.repository.list_completions()
            was_perfect_day = achievements.is_perfect_day(habits, before, today)
            was_perfect_week = achievements.is_perfect_week(habits, before, today)

        replay = [c for c in history if to_calendar_day(c.completed_on) != day]
        if now_completed:
            replay.append(HabitCompletion(habit_id=habit_id, completed_on=day, completed=True))
        streak = streaks.current_streak(habit, replay, today)

        self.repository.set_completion(habit_id, day, now_completed, streak=streak)
        logger.info(
            "Habit completion toggled",
            extra={
                "habit_id": habit_id,
                "day": day.isoformat(),
                "completed": now_completed,
                "streak": streak,
            },
        )

        fired: list[str] = []
        if celebrate:
            fired = self.detector.evaluate(
                habits,
                self.repository.list_completions(),
                toggled_on=day,
                today=today,
                was_perfect_day=was_perfect_day,
                was_perfect_week=was_perfect_week,
            )

        return ToggleResult(
            habit_id=habit_id,
            day=day,
            completed=now_completed,
            streak=streak,
            achievements=fired,
        )

    def create_habit(self, data: Mapping[str, Any] | HabitForm) -> Habit:
        """Validate and store a new habit; raises ``HabitValidationError``."""

        form = data if isinstance(data, HabitForm) else HabitForm.parse(data)
        habit = Habit(**form.habit_fields(), position=self.repository.next_position())
        habit = self.repository.create(habit)
        logger.info(
            "Habit created",
            extra={"habit_id": habit.id, "frequency": habit.frequency, "is_absolute": habit.is_absolute},
        )
        return habit

    def create_habit_from_template(self, template: HabitTemplate | Mapping[str, Any]) -> Habit:
        if not isinstance(template, HabitTemplate):
            template = HabitTemplate.model_validate(dict(template))
        return self.create_habit(template.to_payload())

    def edit_habit(self, habit_id: str, data: Mapping[str, Any]) -> Optional[Habit]:
        """Apply ``data`` over the stored habit and validate the merged result."""

        habit = self.repository.get_by_id(habit_id)
        if habit is None:
            return None

        previous_frequency = HabitFrequency.parse(habit.frequency)
        previous_absolute = habit.is_absolute

        merged = habit.model_dump(exclude=_PROTECTED_FIELDS)
        if previous_frequency is HabitFrequency.DAILY and not {"is_absolute", "isAbsolute"} & set(data):
            # Absoluteness was forced by the daily frequency, not chosen.
            merged.pop("is_absolute", None)
        merged.update({k: v for k, v in data.items() if k not in _PROTECTED_FIELDS})
        form = HabitForm.parse(merged)
        for key, value in form.habit_fields().items():
            setattr(habit, key, value)

        if form.frequency is not previous_frequency or habit.is_absolute != previous_absolute:
            habit.streak = streaks.current_streak(
                habit, self.repository.list_completions(habit_id), self.clock()
            )

        habit = self.repository.update(habit)
        logger.info("Habit updated", extra={"habit_id": habit_id})
        return habit

    def delete_habit(self, habit_id: str) -> bool:
        """Remove a habit with all its completions; unknown ids are a no-op."""

        deleted = self.repository.delete(habit_id)
        if deleted:
            logger.info("Habit deleted", extra={"habit_id": habit_id})
        return deleted

    def reorder_habits(self, new_order: Sequence[str]) -> list[Habit]:
        """Order habits as listed; unlisted habits follow in their previous order."""

        current = [habit.id for habit in self.repository.list_all()]
        known = set(current)
        listed: list[str] = []
        for habit_id in new_order:
            if habit_id in known and habit_id not in listed:
                listed.append(habit_id)
        ordered = listed + [habit_id for habit_id in current if habit_id not in listed]
        self.repository.set_positions(ordered)
        return self.repository.list_all()

    def audit_streaks(self, *, fix: bool = False) -> dict[str, tuple[int, int]]:
        """Compare cached streaks with a full-history replay.

        Returns ``{habit_id: (cached, replayed)}`` for every habit that drifted;
        with ``fix=True`` the cache is rewritten.
        """

        today = self.clock()
        completions = self.repository.list_completions()
        drift: dict[str, tuple[int, int]] = {}
        for habit in self.repository.list_all():
            replayed = streaks.current_streak(habit, completions, today)
            if replayed != habit.streak:
                drift[habit.id] = (habit.streak, replayed)
                if fix:
                    self.repository.update_streak(habit.id, replayed)
        if drift:
            logger.warning("Streak cache drift detected", extra={"habits": len(drift), "fixed": fix})
        return drift

    def refresh_streaks(self) -> None:
        """Recompute every cached streak, e.g. after the calendar day rolled over."""

        self.audit_streaks(fix=True)

    def acknowledge(self, kind: str) -> None:
        self.detector.acknowledge(kind)

    def import_habits(self, habits: Iterable[Habit], completions: Iterable[HabitCompletion]) -> None:
        """Load externally sourced habits and completions, then rebuild streak caches.

        Known habits keep their dashboard position; new ones are appended after
        the existing habits in their incoming order.
        """

        habits = list(habits)
        existing = {habit.id: habit.position for habit in self.repository.list_all()}
        offset = self.repository.next_position()
        for index, habit in enumerate(habits):
            habit.position = existing.get(habit.id, offset + index)

        self.repository.bulk_load(habits, list(completions))
        self.refresh_streaks()


__all__ = ["HabitStatus", "HabitTracker", "ToggleResult"]
