"""
Replay side: loading action logs and playing them back on the event loop.
"""

from .clock import PlaybackClock, check_speed
from .loader import LoadedLog, build_log, parse_action_log, load_action_log
from .scheduler import PlaybackScheduler, TimerLoop, TimerHandle
from .player import ActionPlayer, PlaybackState, PlayerStatus

__all__ = [
    # Clock
    "PlaybackClock",
    "check_speed",
    # Loader
    "LoadedLog",
    "build_log",
    "parse_action_log",
    "load_action_log",
    # Scheduler
    "PlaybackScheduler",
    "TimerLoop",
    "TimerHandle",
    # Player
    "ActionPlayer",
    "PlaybackState",
    "PlayerStatus",
]
