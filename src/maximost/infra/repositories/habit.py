"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from sqlmodel import Session, func, select

from ...models.habit import Habit, HabitCompletion


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Habit]:
        """List all habits in dashboard order."""
        with self.session_factory() as session:
            statement = select(Habit).order_by(Habit.position, Habit.created_at)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            habit = session.merge(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: str) -> bool:
        """Delete a habit and every completion that references it."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return False
            completions = session.exec(
                select(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
            ).all()
            for completion in completions:
                session.delete(completion)
            session.flush()
            session.delete(habit)
            session.commit()
            return True

    def next_position(self) -> int:
        with self.session_factory() as session:
            highest = session.exec(select(func.max(Habit.position))).one()
            return 0 if highest is None else highest + 1

    def set_positions(self, ordered_ids: Sequence[str]) -> None:
        """Persist the dashboard order given as a full list of habit ids."""
        with self.session_factory() as session:
            habits = {habit.id: habit for habit in session.exec(select(Habit)).all()}
            for index, habit_id in enumerate(ordered_ids):
                habit = habits.get(habit_id)
                if habit is not None:
                    habit.position = index
                    session.add(habit)
            session.commit()

    # Completion operations
    def get_completion(self, habit_id: str, completed_on: date) -> Optional[HabitCompletion]:
        """Get the completion record for a habit on a day."""
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.completed_on == completed_on)
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_completions(
        self,
        habit_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitCompletion]:
        """List completion records, optionally for one habit and a date range."""
        with self.session_factory() as session:
            statement = select(HabitCompletion)
            if habit_id is not None:
                statement = statement.where(HabitCompletion.habit_id == habit_id)
            if start is not None:
                statement = statement.where(HabitCompletion.completed_on >= start)
            if end is not None:
                statement = statement.where(HabitCompletion.completed_on <= end)
            statement = statement.order_by(HabitCompletion.completed_on)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def set_completion(
        self, habit_id: str, completed_on: date, completed: bool, *, streak: Optional[int] = None
    ) -> Optional[HabitCompletion]:
        """Upsert (completed) or remove (not completed) the record for a day.

        The cached streak, when given, is written in the same transaction.
        """
        with self.session_factory() as session:
            existing = session.exec(
                select(HabitCompletion)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.completed_on == completed_on)
            ).first()

            record: Optional[HabitCompletion] = None
            if completed:
                if existing:
                    existing.completed = True
                    record = existing
                else:
                    record = HabitCompletion(habit_id=habit_id, completed_on=completed_on)
                session.add(record)
            elif existing:
                session.delete(existing)

            if streak is not None:
                habit = session.get(Habit, habit_id)
                if habit is not None:
                    habit.streak = streak
                    session.add(habit)

            session.commit()
            if record is not None:
                session.refresh(record)
                session.expunge(record)
            return record

    def update_streak(self, habit_id: str, streak: int) -> None:
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is not None:
                habit.streak = streak
                session.add(habit)
                session.commit()

    def bulk_load(self, habits: Iterable[Habit], completions: Iterable[HabitCompletion]) -> None:
        """Insert or replace habits and completions in one transaction."""
        with self.session_factory() as session:
            for habit in habits:
                session.merge(habit)
            session.flush()
            for completion in completions:
                existing = session.exec(
                    select(HabitCompletion)
                    .where(HabitCompletion.habit_id == completion.habit_id)
                    .where(HabitCompletion.completed_on == completion.completed_on)
                ).first()
                if existing:
                    existing.completed = completion.completed
                    existing.notes = completion.notes
                    session.add(existing)
                else:
                    session.merge(completion)
            session.commit()
