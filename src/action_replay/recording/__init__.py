"""
Record side: clock, collector, sink and the recorder that wires them.
"""

from .clock import RecordingClock
from .collector import ActionCollector, CaptureSource, FrameSource, FrameData, normalize_target
from .sink import ActionSink, SinkResult, FrameWriter, derive_action_log_path
from .recorder import ActionRecorder, RecordingSession

__all__ = [
    # Clock
    "RecordingClock",
    # Collector
    "ActionCollector",
    "CaptureSource",
    "FrameSource",
    "FrameData",
    "normalize_target",
    # Sink
    "ActionSink",
    "SinkResult",
    "FrameWriter",
    "derive_action_log_path",
    # Recorder
    "ActionRecorder",
    "RecordingSession",
]
