"""
Event names published by recorder and player components.

Event Categories:
- player lifecycle: loaded, play, pause, stop, seek, speedChanged
- replayed actions: action, action:<type>
- collector: collectorStarted, collectorStopped, frame
- sink: writerStarted, actionRecorded, writerStopped
- error: error (payload is an ErrorReport)
"""

from __future__ import annotations

from enum import Enum

from ..actions import ActionType


class EventType(str, Enum):
    """Fixed event names. Type-specific action events use ``action_event()``."""

    # Player lifecycle
    LOADED = "loaded"
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    SEEK = "seek"
    SPEED_CHANGED = "speedChanged"

    # Replayed actions
    ACTION = "action"

    # Collector
    COLLECTOR_STARTED = "collectorStarted"
    COLLECTOR_STOPPED = "collectorStopped"
    FRAME = "frame"

    # Sink
    WRITER_STARTED = "writerStarted"
    ACTION_RECORDED = "actionRecorded"
    WRITER_STOPPED = "writerStopped"

    # Errors
    ERROR = "error"


def action_event(action_type: ActionType | str) -> str:
    """Name of the type-specific action event, e.g. ``action:click``."""
    return f"action:{ActionType(action_type).value}"


__all__ = ["EventType", "action_event"]
