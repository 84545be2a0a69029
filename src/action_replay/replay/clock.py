"""
Playback clock.

Maps wall-clock time on the event loop to a virtual position in the
recording (milliseconds since recording start). While running:

    position = (now - start_time) * 1000 * speed

Pausing freezes the position; resuming re-anchors ``start_time`` so that the
position continues from the frozen value regardless of how long the pause
lasted or whether the speed changed in between.
"""

from __future__ import annotations

import math
from typing import Callable

from ..errors import ErrorCode, InvalidArgumentError

# Float noise from re-anchoring; smaller gaps count as "due now".
ROUNDING_MS = 1e-3


class PlaybackClock:
    def __init__(self, time_source: Callable[[], float], speed: float = 1.0) -> None:
        self._time_source = time_source
        self._speed = check_speed(speed)
        self._start_time = 0.0
        self._position = 0.0
        self._running = False

    @property
    def speed(self) -> float:
        return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        value = check_speed(value)
        if self._running:
            # Keep the position continuous across the change.
            self._position = self.current()
            self._speed = value
            self._anchor()
        else:
            self._speed = value

    @property
    def running(self) -> bool:
        return self._running

    @property
    def start_time(self) -> float:
        """Wall-clock anchor, in seconds of the time source."""
        return self._start_time

    @property
    def position(self) -> float:
        """Last frozen virtual position in ms (not advanced while running)."""
        return self._position

    def now(self) -> float:
        return self._time_source()

    def start(self) -> float:
        """Run from the frozen position. Returns the anchoring time reading."""
        now = self._anchor()
        self._running = True
        return now

    def freeze(self) -> float:
        """Stop advancing and keep the current position."""
        self._position = self.current()
        self._running = False
        return self._position

    def reset(self) -> None:
        self._position = 0.0
        self._running = False

    def seek(self, position: float) -> None:
        self._position = float(position)
        if self._running:
            self._anchor()

    def rebase(self) -> float:
        """Restart from position 0 at the current instant (used when looping)."""
        self._position = 0.0
        self._start_time = self.now()
        return self._start_time

    def current(self) -> float:
        """Virtual position in ms."""
        if not self._running:
            return self._position
        return (self.now() - self._start_time) * 1000.0 * self._speed

    def delay_until(self, timestamp: float, now: float | None = None) -> float:
        """Wall-clock ms until the virtual ``timestamp`` is reached (negative if past).

        ``now`` pins the reading, so every action of one scheduling pass is
        measured against the same instant.
        """
        if now is None:
            now = self.now()
        adjusted = timestamp / self._speed
        elapsed_ms = (now - self._start_time) * 1000.0
        delay = adjusted - elapsed_ms
        if abs(delay) < ROUNDING_MS:
            return 0.0
        return delay

    def _anchor(self) -> float:
        now = self.now()
        self._start_time = now - self._position / 1000.0 / self._speed
        return now


def check_speed(speed: float) -> float:
    if isinstance(speed, bool) or not isinstance(speed, (int, float)):
        raise InvalidArgumentError(
            f"Playback speed must be a number, got {type(speed).__name__}",
            code=ErrorCode.INVALID_SPEED,
        )
    if not math.isfinite(speed) or speed <= 0:
        raise InvalidArgumentError(
            f"Playback speed must be positive, got {speed}",
            code=ErrorCode.INVALID_SPEED,
        )
    return float(speed)


__all__ = ["PlaybackClock", "check_speed"]
