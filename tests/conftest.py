"""Pytest configuration and shared fixtures for MaxiMost tests.

This module provides database fixtures, test data factories, and a tracker
wired to a fixed clock so streak and achievement tests are deterministic.
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

from maximost.config import TestConfig
from maximost.context import create_app_context

# Import all models to ensure they're registered with SQLModel metadata
from maximost.models import Habit, HabitCompletion
from maximost.infra.repositories import SQLModelHabitRepository
from maximost.services.achievements import AchievementDetector
from maximost.services.tracker import HabitTracker

from factories import TODAY


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def memory_config(tmp_path, monkeypatch) -> TestConfig:
    """In-memory configuration with its data directory under tmp_path."""
    monkeypatch.setenv("MAXIMOST_DATA_DIR", str(tmp_path))
    return TestConfig()


@pytest.fixture
def app_context(memory_config, clock):
    """Fully wired context over the in-memory database."""
    return create_app_context(memory_config, clock=clock)


# =============================================================================
# Tracker Fixtures
# =============================================================================


class FixedClock:
    """Callable clock that tests can move forward."""

    def __init__(self, current: date):
        self.current = current

    def __call__(self) -> date:
        return self.current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def celebrations() -> list[tuple[str, date]]:
    return []


@pytest.fixture
def tracker(habit_repo, clock, celebrations) -> HabitTracker:
    detector = AchievementDetector(
        on_perfect_day=lambda day: celebrations.append(("perfect_day", day)),
        on_perfect_week=lambda day: celebrations.append(("perfect_week", day)),
    )
    return HabitTracker(habit_repo, clock=clock, detector=detector)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(db_session):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        title: str = "Test Habit",
        frequency: str = "daily",
        is_absolute: bool | None = None,
        position: int = 0,
        streak: int = 0,
    ) -> Habit:
        habit = Habit(
            title=title,
            frequency=frequency,
            is_absolute=frequency == "daily" if is_absolute is None else is_absolute,
            position=position,
            streak=streak,
        )
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def completion_factory(db_session):
    """Factory for persisting completion records."""

    def _create_completion(habit: Habit, day: date, completed: bool = True) -> HabitCompletion:
        completion = HabitCompletion(habit_id=habit.id, completed_on=day, completed=completed)
        db_session.add(completion)
        db_session.commit()
        db_session.refresh(completion)
        return completion

    return _create_completion


