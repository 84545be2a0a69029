"""
Action records and event-log helpers.

An action log is an ordered sequence of ActionRecord objects. Timestamps are
virtual: milliseconds elapsed since the recording started, never wall-clock
time. Helpers here are shared by the recording and replay sides.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(str, Enum):
    """Types of recordable actions."""

    CLICK = "click"
    INPUT = "input"
    NAVIGATION = "navigation"
    CONSOLE = "console"
    REQUEST = "request"
    RESPONSE = "response"
    FRAME = "frame"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ActionRecord:
    """A single captured user/browser action.

    ``payload`` holds the type-specific fields (coordinates, target, value,
    url, status, ...). They are opaque to the scheduler and are flattened into
    the JSON object on serialization.
    """

    type: ActionType
    timestamp: int
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.timestamp < 0:
            raise ValueError("timestamp cannot be negative")

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            **self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionRecord:
        payload = {k: v for k, v in data.items() if k not in ("type", "timestamp")}
        return cls(
            type=ActionType(data["type"]),
            timestamp=int(data["timestamp"]),
            payload=payload,
        )

    @classmethod
    def create(cls, type: ActionType | str, timestamp: int, **payload: Any) -> ActionRecord:
        """Build a record from keyword payload fields."""
        return cls(type=ActionType(type), timestamp=int(timestamp), payload=payload)


# =============================================================================
# Event log helpers
# =============================================================================


def sort_actions(actions: Iterable[ActionRecord]) -> tuple[ActionRecord, ...]:
    """Return the actions ordered by timestamp. Ties keep their source order."""
    return tuple(sorted(actions, key=lambda a: a.timestamp))


def find_action_index(actions: Sequence[ActionRecord], timestamp: float) -> int:
    """Index of the first action with ``timestamp >= target``.

    Returns ``len(actions)`` when every action is earlier than the target.
    ``actions`` must be sorted.
    """
    return bisect_left(actions, timestamp, key=lambda a: a.timestamp)


def log_duration(actions: Sequence[ActionRecord]) -> int:
    """Timestamp of the last action, 0 for an empty log."""
    if not actions:
        return 0
    return actions[-1].timestamp


def count_by_type(actions: Iterable[ActionRecord]) -> dict[str, int]:
    """Per-type action counts, in first-seen order."""
    counts: dict[str, int] = {}
    for action in actions:
        counts[action.type.value] = counts.get(action.type.value, 0) + 1
    return counts


def actions_to_json_ready(actions: Iterable[ActionRecord]) -> list[dict[str, Any]]:
    return [a.to_dict() for a in actions]


__all__ = [
    "ActionType",
    "ActionRecord",
    "sort_actions",
    "find_action_index",
    "log_duration",
    "count_by_type",
    "actions_to_json_ready",
]
