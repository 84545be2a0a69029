"""
Recording clock.

Maps real elapsed time since the recording started to the virtual timestamp
stamped on every captured action.
"""

from __future__ import annotations

import time
from typing import Callable


class RecordingClock:
    """Strictly forward millisecond clock anchored at ``start()``.

    There is no pause and no rollback on the record side: ``elapsed()`` only
    grows while the clock is running.
    """

    def __init__(self, time_source: Callable[[], float] = time.monotonic) -> None:
        self._time_source = time_source
        self._start: float | None = None

    @property
    def is_started(self) -> bool:
        return self._start is not None

    def start(self) -> None:
        """Anchor the clock at the current instant."""
        self._start = self._time_source()

    def reset(self) -> None:
        self._start = None

    def elapsed(self) -> int:
        """Milliseconds since ``start()``, or 0 before the clock was started."""
        if self._start is None:
            return 0
        return max(0, int((self._time_source() - self._start) * 1000))


__all__ = ["RecordingClock"]
