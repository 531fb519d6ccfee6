"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ...models.habit import Habit, HabitCompletion


class HabitRepository(Protocol):
    """Repository for managing habits and their completions."""

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self) -> list[Habit]:
        """List all habits in dashboard order."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: str) -> bool:
        """Delete a habit and its completions; False when the id is unknown."""
        ...

    def next_position(self) -> int:
        """Position for a habit appended at the end of the dashboard."""
        ...

    def set_positions(self, ordered_ids: Sequence[str]) -> None:
        """Persist the dashboard order."""
        ...

    # Completion operations
    def get_completion(self, habit_id: str, completed_on: date) -> Optional[HabitCompletion]:
        """Get the completion record for a habit on a day."""
        ...

    def list_completions(
        self,
        habit_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitCompletion]:
        """List completion records, optionally for one habit and a date range."""
        ...

    def set_completion(
        self, habit_id: str, completed_on: date, completed: bool, *, streak: Optional[int] = None
    ) -> Optional[HabitCompletion]:
        """Upsert or remove a completion, updating the cached streak alongside."""
        ...

    def update_streak(self, habit_id: str, streak: int) -> None:
        """Overwrite the cached streak counter."""
        ...

    def bulk_load(self, habits: Iterable[Habit], completions: Iterable[HabitCompletion]) -> None:
        """Insert habits and completions in one transaction."""
        ...
