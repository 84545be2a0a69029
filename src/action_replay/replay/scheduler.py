"""
Next-wake timer for playback.

Only one timer is ever armed: the one for the next due action. Each armed
callback captures the generation it was armed in; ``cancel_all()`` bumps the
generation, so a callback that was already dequeued by the loop when its
handle got cancelled still does nothing.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Protocol

from ..logging import get_logger

logger = get_logger("action_replay.scheduler")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    """The part of an asyncio event loop the player needs."""

    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class PlaybackScheduler:
    def __init__(self, loop_provider: Callable[[], TimerLoop]) -> None:
        self._loop_provider = loop_provider
        self._handles: dict[int, TimerHandle] = {}
        self._ids = itertools.count()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def scheduled_handles(self) -> frozenset[TimerHandle]:
        return frozenset(self._handles.values())

    @property
    def armed(self) -> bool:
        return bool(self._handles)

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` after ``delay_ms`` unless cancelled first."""
        token = next(self._ids)
        handle = self._loop_provider().call_later(
            max(delay_ms, 0.0) / 1000.0,
            self._fire,
            token,
            self._generation,
            callback,
        )
        self._handles[token] = handle
        return handle

    def cancel_all(self) -> None:
        self._generation += 1
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.cancel()

    def _fire(self, token: int, generation: int, callback: Callable[[], None]) -> None:
        self._handles.pop(token, None)
        if generation != self._generation:
            logger.debug("Dropping stale timer", generation=generation, current=self._generation)
            return
        callback()


__all__ = ["PlaybackScheduler", "TimerLoop", "TimerHandle"]
