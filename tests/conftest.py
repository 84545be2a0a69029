"""
Shared test fixtures and fakes for action-replay tests.

This module provides:
- FakeLoop: deterministic stand-in for the asyncio loop's time/call_later
- FakeTime: manual time source for the recording clock
- In-memory storage and frame writer doubles
- A fake capture source
- Sample action logs
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

from action_replay.actions import ActionRecord
from action_replay.config import PlayerConfig
from action_replay.recording.collector import ActionCollector, FrameData
from action_replay.replay import ActionPlayer

# =============================================================================
# Fake event loop
# =============================================================================


class FakeTimerHandle:
    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple[Any, ...]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        self.callback(*self.args)


class FakeLoop:
    """Virtual-time loop: timers only run inside ``advance()``."""

    EPSILON = 1e-9

    def __init__(self, now: float = 0.0):
        self.now = now
        self._timers: list[FakeTimerHandle] = []
        self._seq = 0

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        self._seq += 1
        handle = FakeTimerHandle(self.now + delay, self._seq, callback, args)
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, ms: float) -> None:
        """Move time forward by ``ms`` and run every timer that comes due."""
        target = self.now + ms / 1000.0
        while True:
            due = [t for t in self.pending if t.when <= target + self.EPSILON]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.run()
        self.now = max(self.now, target)


class TickingLoop(FakeLoop):
    """FakeLoop whose clock moves forward a little on every reading, like a real monotonic clock."""

    def __init__(self, now: float = 0.0, tick: float = 0.0001):
        super().__init__(now)
        self.tick = tick

    def time(self) -> float:
        reading = self.now
        self.now += self.tick
        return reading


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


# =============================================================================
# Manual time source
# =============================================================================


class FakeTime:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


# =============================================================================
# Storage / frame doubles
# =============================================================================


@dataclass
class InMemoryStorage:
    """LogStorage keeping files in a dict. Set ``fail_*`` to inject errors."""

    files: dict[str, str] = field(default_factory=dict)
    directories: set[str] = field(default_factory=set)
    fail_mkdir: bool = False
    fail_write: bool = False
    writes: int = 0

    async def ensure_directory(self, path: str | Path) -> None:
        if self.fail_mkdir:
            raise PermissionError(f"cannot create {path}")
        self.directories.add(str(path))

    async def write_text(self, path: str | Path, content: str) -> None:
        if self.fail_write:
            raise OSError("disk full")
        self.writes += 1
        self.files[str(path)] = content

    async def read_text(self, path: str | Path) -> str:
        try:
            return self.files[str(path)]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def load_json(self, path: str | Path) -> Any:
        return json.loads(self.files[str(path)])


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@dataclass
class RecordingFrameWriter:
    opened: Path | None = None
    frames: list[FrameData] = field(default_factory=list)
    closed: bool = False
    fail_write: bool = False

    async def open(self, output_path: Path) -> None:
        self.opened = output_path

    async def write(self, frame: FrameData) -> None:
        if self.fail_write:
            raise OSError("encoder crashed")
        self.frames.append(frame)

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Capture source double
# =============================================================================


class FakeSource:
    """Capture source that remembers the collector it was started with."""

    def __init__(self):
        self.collector: ActionCollector | None = None
        self.started = 0
        self.stopped = 0

    async def start(self, collector: ActionCollector) -> None:
        self.collector = collector
        self.started += 1

    async def stop(self) -> None:
        self.stopped += 1


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


# =============================================================================
# Sample logs
# =============================================================================


def sample_actions() -> list[ActionRecord]:
    """click at 0 ms, input at 1000 ms, navigation at 2500 ms."""
    return [
        ActionRecord.create("click", 0, x=10, y=20, target={"tagName": "button", "id": "go"}),
        ActionRecord.create("input", 1000, value="hello"),
        ActionRecord.create("navigation", 2500, url="https://example.com/next"),
    ]


def sample_entries() -> list[dict[str, Any]]:
    return [a.to_dict() for a in sample_actions()]


@pytest.fixture
def sample_log_file(tmp_path: Path) -> Path:
    path = tmp_path / "session_actions.json"
    path.write_text(json.dumps(sample_entries(), indent=2), encoding="utf-8")
    return path


class PlayerProbe:
    """Collects every player event as ``(wall_time, event, payload)``."""

    EVENTS = ("loaded", "play", "pause", "stop", "seek", "speedChanged", "action", "error")

    def __init__(self, player: ActionPlayer, loop: FakeLoop):
        self.loop = loop
        self.events: list[tuple[float, str, Any]] = []
        for name in self.EVENTS:
            player.events.on(name, self._recorder(name))

    def _recorder(self, name: str):
        def record(payload: Any) -> None:
            self.events.append((self.loop.time(), name, payload))

        return record

    def names(self) -> list[str]:
        return [name for _, name, _ in self.events]

    def actions(self) -> list[ActionRecord]:
        return [payload for _, name, payload in self.events if name == "action"]

    def action_types(self) -> list[str]:
        return [a.type.value for a in self.actions()]

    def action_times(self) -> list[float]:
        return [t for t, name, _ in self.events if name == "action"]


def make_player(
    timer_loop: FakeLoop,
    actions: list[ActionRecord] | None = None,
    **config: Any,
) -> tuple[ActionPlayer, PlayerProbe]:
    player = ActionPlayer(PlayerConfig(**config), loop=timer_loop)
    probe = PlayerProbe(player, timer_loop)
    player.load_actions(sample_actions() if actions is None else actions)
    return player, probe
