"""JSON snapshots in the browser dashboard's local-storage shape.

The web dashboard keeps two arrays under fixed keys, ``habits`` and
``habitCompletions``, with camelCase fields and ISO-8601 date strings. Loading
is lenient: a malformed record is skipped and counted, never fatal.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion
from .dates import to_calendar_day
from .frequency import HabitFrequency

if TYPE_CHECKING:  # pragma: no cover
    from .tracker import HabitTracker

logger = get_logger(__name__)

HABITS_KEY = "habits"
COMPLETIONS_KEY = "habitCompletions"


@dataclass(slots=True)
class Snapshot:
    """Habits and effective completions recovered from a snapshot."""

    habits: list[Habit] = field(default_factory=list)
    completions: list[HabitCompletion] = field(default_factory=list)
    skipped: int = 0


def _parse_timestamp(value: Any) -> datetime:
    if value in (None, ""):
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise ValueError(f"Unsupported timestamp: {value!r}")


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


def _as_bool(value: Any, default: bool) -> bool:
    """Read a JSON flag; anything but a boolean, 0/1 or a boolean word is rejected."""

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Unsupported flag value: {value!r}")


def _habit_from_record(record: Mapping[str, Any], position: int) -> Habit:
    habit_id = str(record.get("id") or "").strip()
    title = str(record.get("title") or "").strip()
    if not habit_id or not title:
        raise ValueError("Habit record needs an id and a title")

    frequency = HabitFrequency.parse(record.get("frequency"))
    return Habit(
        id=habit_id,
        title=title,
        description=str(record.get("description") or ""),
        icon=str(record.get("icon") or "check-square"),
        icon_color=str(record.get("iconColor") or "blue"),
        impact=_as_int(record.get("impact"), 5),
        effort=_as_int(record.get("effort"), 5),
        time_commitment=str(record.get("timeCommitment") or "5 min"),
        frequency=frequency.value,
        is_absolute=frequency is HabitFrequency.DAILY or _as_bool(record.get("isAbsolute"), False),
        category=str(record.get("category") or "health"),
        streak=max(_as_int(record.get("streak"), 0), 0),
        position=position,
        created_at=_parse_timestamp(record.get("createdAt")),
    )


def parse_snapshot(payload: str | Mapping[str, Any]) -> Snapshot:
    """Build a :class:`Snapshot` from JSON text or an already decoded mapping."""

    data = json.loads(payload) if isinstance(payload, str) else payload
    if not isinstance(data, Mapping):
        raise ValueError("Snapshot must be a JSON object")

    snapshot = Snapshot()
    habit_ids: set[str] = set()
    for record in data.get(HABITS_KEY) or []:
        try:
            if not isinstance(record, Mapping):
                raise ValueError("Habit record is not an object")
            habit = _habit_from_record(record, position=len(snapshot.habits))
        except (TypeError, ValueError) as exc:
            snapshot.skipped += 1
            logger.debug("Skipping malformed habit record", extra={"reason": str(exc)})
            continue
        if habit.id in habit_ids:
            snapshot.skipped += 1
            continue
        habit_ids.add(habit.id)
        snapshot.habits.append(habit)

    # Later records for the same (habit, day) replace earlier ones.
    states: dict[tuple[str, date], tuple[str | None, bool]] = {}
    for record in data.get(COMPLETIONS_KEY) or []:
        try:
            if not isinstance(record, Mapping):
                raise ValueError("Completion record is not an object")
            habit_id = str(record.get("habitId") or "")
            if habit_id not in habit_ids:
                raise ValueError(f"Unknown habit {habit_id!r}")
            day = to_calendar_day(record.get("date"))
            completed = _as_bool(record.get("completed"), True)
        except (TypeError, ValueError) as exc:
            snapshot.skipped += 1
            logger.debug("Skipping malformed completion record", extra={"reason": str(exc)})
            continue
        states[(habit_id, day)] = (record.get("id"), completed)

    for (habit_id, day), (record_id, completed) in sorted(states.items(), key=lambda item: item[0][1]):
        if not completed:
            continue
        completion = HabitCompletion(habit_id=habit_id, completed_on=day, completed=True)
        if record_id:
            completion.id = str(record_id)
        snapshot.completions.append(completion)

    if snapshot.skipped:
        logger.warning("Snapshot loaded with skipped records", extra={"skipped": snapshot.skipped})
    return snapshot


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot file; a missing file yields an empty snapshot."""

    path = Path(path)
    if not path.exists():
        return Snapshot()
    return parse_snapshot(path.read_text(encoding="utf-8"))


def _serialize_habit(habit: Habit) -> dict[str, Any]:
    return {
        "id": habit.id,
        "title": habit.title,
        "description": habit.description,
        "icon": habit.icon,
        "iconColor": habit.icon_color,
        "impact": habit.impact,
        "effort": habit.effort,
        "timeCommitment": habit.time_commitment,
        "frequency": habit.frequency,
        "isAbsolute": habit.is_absolute,
        "category": habit.category,
        "streak": habit.streak,
        "createdAt": habit.created_at.isoformat() if habit.created_at else None,
    }


def _serialize_completion(completion: HabitCompletion) -> dict[str, Any]:
    return {
        "id": completion.id,
        "habitId": completion.habit_id,
        "date": to_calendar_day(completion.completed_on).isoformat(),
        "completed": completion.completed,
    }


def dump_snapshot(
    habits: Iterable[Habit], completions: Iterable[HabitCompletion], output_path: Path
) -> Path:
    """Write habits (in the given order) and completed records to ``output_path``."""

    payload = {
        HABITS_KEY: [_serialize_habit(habit) for habit in habits],
        COMPLETIONS_KEY: [_serialize_completion(c) for c in completions if c.completed],
    }
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return output_path


def import_snapshot(tracker: "HabitTracker", snapshot: Snapshot) -> tuple[int, int]:
    """Load ``snapshot`` through ``tracker``; returns (habits, completions) imported."""

    tracker.import_habits(snapshot.habits, snapshot.completions)
    logger.info(
        "Snapshot imported",
        extra={"habits": len(snapshot.habits), "completions": len(snapshot.completions)},
    )
    return len(snapshot.habits), len(snapshot.completions)


def export_snapshot(tracker: "HabitTracker", output_path: Path) -> Path:
    repo = tracker.repository
    return dump_snapshot(repo.list_all(), repo.list_completions(), output_path)


__all__ = [
    "COMPLETIONS_KEY",
    "HABITS_KEY",
    "Snapshot",
    "dump_snapshot",
    "export_snapshot",
    "import_snapshot",
    "load_snapshot",
    "parse_snapshot",
]
