"""
Record and replay timestamped browser actions.

The record side turns a stream of captured actions into a durable JSON action
log; the replay side loads that log and re-emits each action on the event
loop at the right moment, with pause, seek, speed and loop control.
"""

from .actions import (
    ActionRecord,
    ActionType,
    count_by_type,
    find_action_index,
    log_duration,
    sort_actions,
)
from .config import (
    LoggingConfig,
    PlayerConfig,
    RecorderConfig,
    Settings,
    configure,
    get_settings,
    load_env,
)
from .errors import (
    ActionReplayError,
    ConfigError,
    DirectoryError,
    ErrorCode,
    ErrorContext,
    ErrorReport,
    InvalidArgumentError,
    LoadError,
    RecorderStateError,
    WriteError,
)
from .events import EventChannel, EventType, action_event
from .logging import configure_logging, get_logger
from .recording import (
    ActionCollector,
    ActionRecorder,
    ActionSink,
    CaptureSource,
    RecordingClock,
    RecordingSession,
    SinkResult,
)
from .replay import (
    ActionPlayer,
    LoadedLog,
    PlaybackState,
    PlayerStatus,
    load_action_log,
)
from .storage import FileLogStorage, LogStorage

__version__ = "0.1.0"

__all__ = [
    # Actions
    "ActionRecord",
    "ActionType",
    "count_by_type",
    "find_action_index",
    "log_duration",
    "sort_actions",
    # Config
    "LoggingConfig",
    "PlayerConfig",
    "RecorderConfig",
    "Settings",
    "configure",
    "get_settings",
    "load_env",
    # Errors
    "ActionReplayError",
    "ConfigError",
    "DirectoryError",
    "ErrorCode",
    "ErrorContext",
    "ErrorReport",
    "InvalidArgumentError",
    "LoadError",
    "RecorderStateError",
    "WriteError",
    # Events
    "EventChannel",
    "EventType",
    "action_event",
    # Logging
    "configure_logging",
    "get_logger",
    # Recording
    "ActionCollector",
    "ActionRecorder",
    "ActionSink",
    "CaptureSource",
    "RecordingClock",
    "RecordingSession",
    "SinkResult",
    # Replay
    "ActionPlayer",
    "LoadedLog",
    "PlaybackState",
    "PlayerStatus",
    "load_action_log",
    # Storage
    "FileLogStorage",
    "LogStorage",
]
