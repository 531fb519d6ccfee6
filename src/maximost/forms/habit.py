"""Habit form and catalog template definitions."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..services.frequency import HabitFrequency


class HabitValidationError(ValueError):
    """Raised when a habit payload is rejected; carries per-field messages."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        summary = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in errors.items())
        super().__init__(summary or "Invalid habit")


def _structure(exc: ValidationError, model: type[BaseModel]) -> dict[str, list[str]]:
    """Group error messages by field name; aliased locations map back to the field."""

    aliases = {info.alias: name for name, info in model.model_fields.items() if info.alias}
    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        key = aliases.get(key, key)
        message = error.get("msg", "Invalid value")
        structured.setdefault(key, []).append(message.removeprefix("Value error, "))
    return structured


class HabitForm(BaseModel):
    """Form model for creating or editing a habit."""

    model_config = ConfigDict(
        validate_default=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    title: str = Field(default="", description="Short label for the habit", max_length=120)
    description: str = Field(default="", description="Optional details about the habit", max_length=400)
    icon: str = Field(default="check-square", max_length=40)
    icon_color: str = Field(default="blue", alias="iconColor", max_length=20)
    impact: int = Field(default=5, ge=1, le=10, description="Expected payoff, 1-10")
    effort: int = Field(default=5, ge=1, le=10, description="Expected effort, 1-10")
    time_commitment: str = Field(default="", alias="timeCommitment", max_length=40)
    frequency: HabitFrequency = Field(default=HabitFrequency.DAILY, description="Habit frequency")
    is_absolute: bool | None = Field(default=None, alias="isAbsolute")
    category: str = Field(default="health", max_length=40)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        """Ensure the habit title is present when validating submissions."""

        if not value or not value.strip():
            raise ValueError("Please provide a habit title.")
        return value

    @field_validator("time_commitment")
    @classmethod
    def validate_time_commitment(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Please provide a time commitment.")
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def coerce_frequency(cls, value: Any) -> HabitFrequency:
        """Unknown frequency strings become ``custom``."""

        return HabitFrequency.parse(value)

    @model_validator(mode="after")
    def enforce_daily_absolute(self) -> "HabitForm":
        """Daily habits are always must-do habits."""

        if self.frequency is HabitFrequency.DAILY:
            self.is_absolute = True
        elif self.is_absolute is None:
            self.is_absolute = False
        return self

    @classmethod
    def parse(cls, payload: Mapping[str, Any]) -> "HabitForm":
        """Validate ``payload`` or raise :class:`HabitValidationError`."""

        try:
            return cls.model_validate(dict(payload))
        except ValidationError as exc:
            raise HabitValidationError(_structure(exc, cls)) from exc

    def validation_errors(self) -> dict[str, list[str]]:
        """Return validation errors for the current payload."""

        try:
            HabitForm.model_validate(self.model_dump())
        except ValidationError as exc:
            return _structure(exc, HabitForm)
        return {}

    def habit_fields(self) -> dict[str, Any]:
        """Column values for a :class:`~maximost.models.habit.Habit`."""

        data = self.model_dump()
        data["frequency"] = self.frequency.value
        return data


class HabitTemplate(BaseModel):
    """Read-only habit record from a suggestion library or habit stack."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str
    description: str = ""
    icon: str = "check-square"
    icon_color: str = Field(default="blue", alias="iconColor")
    frequency: str = "daily"
    is_absolute: bool | None = Field(default=None, alias="isAbsolute")
    impact: int = 5
    effort: int = 5
    time_commitment: str = Field(default="5 min", alias="timeCommitment")
    category: str = "health"

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


__all__ = ["HabitForm", "HabitTemplate", "HabitValidationError"]
