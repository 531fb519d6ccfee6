"""Input validation for habit payloads."""

from .habit import HabitForm, HabitTemplate, HabitValidationError

__all__ = ["HabitForm", "HabitTemplate", "HabitValidationError"]
