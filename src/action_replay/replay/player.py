"""
Action player: replays a recorded action log on the event loop.

Playback is driven by a virtual clock (see ``clock.py``) and a single
next-wake timer (see ``scheduler.py``). Actions are emitted on the player's
event channel as both ``action`` and ``action:<type>``.

Example:
    ```python
    player = ActionPlayer(PlayerConfig(playback_speed=2.0))
    player.events.on("action:click", lambda action: print(action.get("x")))

    await player.load("recordings/checkout_actions.json")
    player.play()
    await player.wait_until_stopped()
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from ..actions import ActionRecord, find_action_index
from ..config import PlayerConfig
from ..errors import ErrorCode, ErrorReport, InvalidArgumentError, LoadError
from ..events import EventChannel, EventType, action_event
from ..logging import get_logger
from ..storage import LogStorage
from ..validation import EntryIssue
from .clock import PlaybackClock, check_speed
from .loader import LoadedLog, build_log, load_action_log
from .scheduler import PlaybackScheduler, TimerLoop

logger = get_logger("action_replay.player")


class PlayerStatus(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of the player, safe to hand to callers."""

    status: PlayerStatus
    current_timestamp: float
    action_index: int
    playback_speed: float
    total_actions: int
    duration: int
    loop: bool
    debug_mode: bool

    @property
    def is_playing(self) -> bool:
        return self.status is not PlayerStatus.STOPPED

    @property
    def is_paused(self) -> bool:
        return self.status is PlayerStatus.PAUSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "current_timestamp": self.current_timestamp,
            "action_index": self.action_index,
            "playback_speed": self.playback_speed,
            "total_actions": self.total_actions,
            "duration": self.duration,
            "loop": self.loop,
            "debug_mode": self.debug_mode,
        }


class ActionPlayer:
    """Plays back an action log with pause, seek, speed and loop control.

    All control methods are synchronous and must be called from the thread
    running the event loop. ``loop`` may be any object with ``time()`` and
    ``call_later()``; by default the running asyncio loop is used.
    """

    def __init__(
        self,
        config: PlayerConfig | None = None,
        *,
        loop: TimerLoop | None = None,
        storage: LogStorage | None = None,
    ):
        self.config = config or PlayerConfig()
        self.events = EventChannel("player")

        self._loop = loop
        self._storage = storage
        self._loop_enabled = self.config.loop
        self._debug_mode = self.config.debug_mode

        self._log = LoadedLog(actions=())
        self._action_index = 0
        self._is_playing = False
        self._is_paused = False
        self._stop_waiters: list[asyncio.Future[None]] = []

        self._clock = PlaybackClock(self._now, self.config.playback_speed)
        self._scheduler = PlaybackScheduler(self._get_loop)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self, path: str | Path) -> LoadedLog:
        """Load the action log at ``path``.

        Raises:
            LoadError: If the file is unreadable or not a JSON array.
        """
        try:
            loaded = await load_action_log(path, self._storage)
        except LoadError as exc:
            logger.log_error(exc, "Failed to load action log", path=str(path))
            self.events.emit(EventType.ERROR, ErrorReport(type="actionLogLoad", error=exc))
            raise

        self._install(loaded)
        return loaded

    def load_actions(self, actions: Iterable[ActionRecord | dict[str, Any]]) -> LoadedLog:
        """Load an in-memory sequence of actions (records or raw dicts)."""
        loaded = build_log(actions)
        self._install(loaded)
        return loaded

    def _install(self, loaded: LoadedLog) -> None:
        if self._is_playing:
            self.stop()

        self._log = loaded
        self._action_index = 0
        self._clock.reset()

        for issue in loaded.skipped:
            error = LoadError(
                f"Invalid action entry at index {issue.index}: {'; '.join(issue.errors)}",
                code=ErrorCode.ACTION_INVALID,
                path=str(loaded.path) if loaded.path else None,
            )
            self.events.emit(EventType.ERROR, ErrorReport(type="actionInvalid", error=error))

        logger.info(
            "Action log loaded",
            total_actions=loaded.total_actions,
            duration=loaded.duration,
            skipped=len(loaded.skipped),
        )
        self.events.emit(
            EventType.LOADED,
            {
                "total_actions": loaded.total_actions,
                "duration": loaded.duration,
                "skipped": len(loaded.skipped),
            },
        )

        if self.config.auto_play:
            self.play()

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def actions(self) -> tuple[ActionRecord, ...]:
        return self._log.actions

    @property
    def skipped_entries(self) -> tuple[EntryIssue, ...]:
        return self._log.skipped

    @property
    def duration(self) -> int:
        return self._log.duration

    @property
    def total_actions(self) -> int:
        return self._log.total_actions

    @property
    def action_index(self) -> int:
        return self._action_index

    @property
    def playback_speed(self) -> float:
        return self._clock.speed

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def status(self) -> PlayerStatus:
        if not self._is_playing:
            return PlayerStatus.STOPPED
        if self._is_paused:
            return PlayerStatus.PAUSED
        return PlayerStatus.PLAYING

    @property
    def scheduled_handles(self):
        return self._scheduler.scheduled_handles

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            status=self.status,
            current_timestamp=self.calculate_current_timestamp(),
            action_index=self._action_index,
            playback_speed=self._clock.speed,
            total_actions=self.total_actions,
            duration=self.duration,
            loop=self._loop_enabled,
            debug_mode=self._debug_mode,
        )

    def get_action_details(self, index: int) -> ActionRecord | None:
        if 0 <= index < len(self._log.actions):
            return self._log.actions[index]
        return None

    def action_counts(self) -> dict[str, int]:
        return self._log.counts()

    def calculate_current_timestamp(self) -> float:
        """Position in the recording, in ms."""
        return self._clock.current()

    def set_loop(self, enabled: bool) -> None:
        self._loop_enabled = bool(enabled)

    def set_debug_mode(self, enabled: bool) -> None:
        self._debug_mode = bool(enabled)

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def play(self) -> None:
        if self._is_playing and not self._is_paused:
            return

        if self._is_paused:
            self._is_paused = False
            now = self._clock.start()
        else:
            self._is_playing = True
            now = self._clock.start()
            self._action_index = find_action_index(self._log.actions, self._clock.position)

        logger.log_transition(
            "playing",
            timestamp=self._clock.position,
            action_index=self._action_index,
            speed=self._clock.speed,
        )
        self.events.emit(
            EventType.PLAY,
            {"timestamp": self._clock.position, "action_index": self._action_index},
        )
        # A play listener may already have paused, stopped or rescheduled.
        if self.status is PlayerStatus.PLAYING and not self._scheduler.armed:
            self._schedule(now)

    def pause(self) -> None:
        if not self._is_playing or self._is_paused:
            return

        position = self._clock.freeze()
        self._scheduler.cancel_all()
        self._is_paused = True

        logger.log_transition("paused", timestamp=position, action_index=self._action_index)
        self.events.emit(
            EventType.PAUSE,
            {"timestamp": position, "action_index": self._action_index},
        )

    def stop(self) -> None:
        if not self._is_playing:
            return

        self._scheduler.cancel_all()
        self._clock.reset()
        self._action_index = 0
        self._is_playing = False
        self._is_paused = False

        logger.log_transition("stopped")
        self.events.emit(EventType.STOP, {"timestamp": 0, "action_index": 0})
        self._release_stop_waiters()

    def seek_to(self, timestamp: float) -> None:
        """Jump to ``timestamp`` ms, clamped to ``[0, duration]``."""
        target = min(max(float(timestamp), 0.0), float(self.duration))

        was_playing = self._is_playing and not self._is_paused
        if was_playing:
            self.pause()

        self._clock.seek(target)
        self._action_index = find_action_index(self._log.actions, target)

        logger.log_transition("seeking", timestamp=target, action_index=self._action_index)
        self.events.emit(
            EventType.SEEK,
            {"timestamp": target, "action_index": self._action_index},
        )

        if was_playing and self._is_paused:
            self.play()

    def set_playback_speed(self, speed: float) -> bool:
        """Change the speed multiplier. Returns False (and changes nothing) if invalid."""
        try:
            speed = check_speed(speed)
        except InvalidArgumentError as exc:
            logger.log_error(exc, "Ignoring playback speed change", level=logging.WARNING)
            return False

        was_playing = self._is_playing and not self._is_paused
        if was_playing:
            self.pause()
        self._clock.speed = speed
        if was_playing and self._is_paused:
            self.play()

        logger.debug("Playback speed changed", speed=self._clock.speed)
        self.events.emit(EventType.SPEED_CHANGED, {"speed": self._clock.speed})
        return True

    async def wait_until_stopped(self) -> None:
        """Wait until playback reaches ``stopped``."""
        if not self._is_playing:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._stop_waiters.append(waiter)
        await waiter

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def _schedule(self, now: float) -> None:
        """Cancel any armed timer, then arm one for the next due action.

        Delays are measured from ``now``, the reading the clock was anchored
        at. Actions whose time already passed are emitted in debug mode and
        skipped otherwise.
        """
        self._scheduler.cancel_all()
        if self.status is not PlayerStatus.PLAYING:
            return

        generation = self._scheduler.generation
        actions = self._log.actions
        while self._action_index < len(actions):
            action = actions[self._action_index]
            delay = self._clock.delay_until(action.timestamp, now)
            if delay >= 0:
                self._scheduler.arm(delay, self._on_timer)
                return

            self._action_index += 1
            if self._debug_mode:
                self._emit_action(action)
                if self._scheduler.generation != generation:
                    return
            else:
                logger.debug(
                    "Skipping late action",
                    type=action.type.value,
                    timestamp=action.timestamp,
                    late_ms=round(-delay, 3),
                )

        self._finish()

    def _on_timer(self) -> None:
        generation = self._scheduler.generation
        actions = self._log.actions

        # The armed action is due even if the loop fired a hair early.
        due = True
        while self._action_index < len(actions):
            action = actions[self._action_index]
            if not due:
                delay = self._clock.delay_until(action.timestamp)
                if delay > 0:
                    self._scheduler.arm(delay, self._on_timer)
                    return
            due = False

            self._action_index += 1
            self._emit_action(action)
            if self._scheduler.generation != generation:
                return

        self._finish()

    def _finish(self) -> None:
        if self._loop_enabled and self._log.actions:
            logger.log_transition("looping", total_actions=self.total_actions)
            self._action_index = 0
            self._schedule(self._clock.rebase())
        else:
            logger.info("Playback finished", total_actions=self.total_actions)
            self.stop()

    def _emit_action(self, action: ActionRecord) -> None:
        self.events.emit(EventType.ACTION, action)
        self.events.emit(action_event(action.type), action)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_loop(self) -> TimerLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _now(self) -> float:
        return self._get_loop().time()

    def _release_stop_waiters(self) -> None:
        waiters, self._stop_waiters = self._stop_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)


__all__ = ["ActionPlayer", "PlaybackState", "PlayerStatus"]
