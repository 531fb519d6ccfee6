"""Service module exports."""

from . import achievements, compliance, dates, frequency, habits, local_storage

__all__ = [
    "achievements",
    "compliance",
    "dates",
    "frequency",
    "habits",
    "local_storage",
]
