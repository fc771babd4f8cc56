"""Interval kinds shared by the settings store and the scheduler."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IntervalType(str, Enum):
    """One timed segment of the cycle. Values match the persisted blob."""

    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_break(self) -> bool:
        return self is not IntervalType.FOCUS


_LABELS = {
    IntervalType.FOCUS: "Focus",
    IntervalType.SHORT_BREAK: "Short break",
    IntervalType.LONG_BREAK: "Long break",
}


@dataclass(frozen=True)
class Interval:
    """Represents one focus or break interval in a plan preview."""

    kind: IntervalType
    label: str
    duration_seconds: int
