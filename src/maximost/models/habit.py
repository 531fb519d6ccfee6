"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


def _new_id() -> str:
    return uuid4().hex


class Habit(SQLModel, table=True):
    """A recurring action the user wants to perform."""

    __tablename__: ClassVar[str] = "habit"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=64)
    title: str = Field(nullable=False, max_length=120, index=True)
    description: str = Field(default="", max_length=400)
    icon: str = Field(default="check-square", max_length=40)
    icon_color: str = Field(default="blue", max_length=20)
    impact: int = Field(default=5, nullable=False)
    effort: int = Field(default=5, nullable=False)
    time_commitment: str = Field(default="5 min", max_length=40)
    frequency: str = Field(default="daily", max_length=16)
    is_absolute: bool = Field(default=True, nullable=False)
    category: str = Field(default="health", max_length=40)
    streak: int = Field(default=0, nullable=False)
    position: int = Field(default=0, nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    completions: list["HabitCompletion"] = Relationship(
        sa_relationship=relationship(
            "HabitCompletion",
            back_populates="habit",
            cascade="all, delete-orphan",
        ),
    )


class HabitCompletion(SQLModel, table=True):
    """Completion state of a habit on one calendar day."""

    __tablename__: ClassVar[str] = "habit_completion"
    __table_args__ = (UniqueConstraint("habit_id", "completed_on", name="uq_habit_day"),)

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=64)
    habit_id: str = Field(foreign_key="habit.id", nullable=False, index=True, max_length=64)
    completed_on: date = Field(nullable=False, index=True)
    completed: bool = Field(default=True, nullable=False)
    notes: Optional[str] = Field(default=None, max_length=400)

    habit: Optional["Habit"] = Relationship(
        sa_relationship=relationship("Habit", back_populates="completions"),
    )
