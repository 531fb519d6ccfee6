"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelHabitRepository
from .services.achievements import AchievementDetector
from .services.dates import today
from .services.tracker import HabitTracker


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    session_factory: Callable[[], Session]
    habit_repo: SQLModelHabitRepository
    tracker: HabitTracker
    dev_mode: bool = False


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Callable[[], date] = today,
    detector: Optional[AchievementDetector] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    _engine, session_factory = bootstrap_database(config)

    habit_repo = SQLModelHabitRepository(session_factory)
    tracker = HabitTracker(habit_repo, clock=clock, detector=detector)

    return AppContext(
        config=config,
        session_factory=session_factory,
        habit_repo=habit_repo,
        tracker=tracker,
        dev_mode=config.DEV_MODE,
    )
