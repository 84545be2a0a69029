"""
Recorder: wires a collector to a sink for one recording session.

Example:
    ```python
    recorder = ActionRecorder(source, RecorderConfig(include_network_requests=True))
    session = await recorder.start("recordings/checkout.mp4")

    # ... user interacts with the page ...

    result = await recorder.stop()
    player = await ActionRecorder.create_player(result.action_log_path)
    player.play()
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..actions import ActionRecord
from ..config import PlayerConfig, RecorderConfig
from ..errors import ErrorCode, ErrorReport, RecorderStateError
from ..events import EventType
from ..logging import generate_session_id, get_logger
from .clock import RecordingClock
from .collector import ActionCollector, CaptureSource
from .sink import ActionSink, FrameWriter, SinkResult
from ..storage import LogStorage

logger = get_logger("action_replay.recorder")


@dataclass(frozen=True)
class RecordingSession:
    """Where an active recording is being written."""

    session_id: str
    output_path: Path
    action_log_path: Path
    config: RecorderConfig


class ActionRecorder:
    """Records a capture source into a durable action log.

    Collector ``action`` events are routed to ``ActionSink.record_action``;
    frames are routed to ``ActionSink.record_frame`` when frame capture is
    enabled. Errors from either side are logged and never abort the session.
    """

    def __init__(
        self,
        source: CaptureSource | None = None,
        config: RecorderConfig | None = None,
        *,
        storage: LogStorage | None = None,
        frame_writer: FrameWriter | None = None,
        clock: RecordingClock | None = None,
    ):
        self.config = config or RecorderConfig()
        self.collector = ActionCollector(source, self.config, clock)
        self.sink = ActionSink(self.config, storage, frame_writer)

        self._recording = False
        self._result: SinkResult | None = None

        self._setup_event_routing()

    @property
    def is_recording(self) -> bool:
        return self._recording

    def _setup_event_routing(self) -> None:
        self.collector.events.on(EventType.ACTION, self.sink.record_action)

        if self.config.capture_video:
            self.collector.events.on(EventType.FRAME, self.sink.record_frame)

        self.collector.events.on(EventType.ERROR, self._on_error("collector"))
        self.sink.events.on(EventType.ERROR, self._on_error("sink"))
        self.collector.events.on(EventType.COLLECTOR_STOPPED, self._on_collector_stopped)

    def _on_error(self, component: str):
        def handler(report: ErrorReport) -> None:
            logger.warning(
                f"{component} error: {report.type}",
                component=component,
                **report.to_dict(),
            )

        return handler

    def _on_collector_stopped(self, payload: dict[str, Any]) -> Any:
        # The source closed on its own (e.g. the page went away).
        if payload.get("reason") == "source_closed" and self._recording:
            return self.stop()
        return None

    async def start(self, output_path: str | Path) -> RecordingSession:
        """Start recording.

        Raises:
            RecorderStateError: If a recording is already in progress.
            DirectoryError: If the output directory cannot be created.
        """
        if self._recording:
            raise RecorderStateError("Recording is already in progress", code=ErrorCode.ALREADY_RECORDING)

        self._recording = True
        session_id = generate_session_id()
        logger.set_context(session_id=session_id, component="recorder")

        output_path = Path(output_path)
        suffix = f".{self.config.video_format}"
        if self.config.capture_video and output_path.suffix != suffix:
            output_path = output_path.with_suffix(suffix)

        try:
            await self.sink.start(output_path)
        except Exception:
            self._recording = False
            logger.set_context(session_id=None)
            raise

        await self.collector.start()

        logger.info("Recording started", output_path=str(output_path))
        return RecordingSession(
            session_id=session_id,
            output_path=output_path,
            action_log_path=self.sink.action_log_path,
            config=self.config,
        )

    async def stop(self) -> SinkResult | None:
        """Stop recording and persist the log.

        Returns the previous result (or None) when nothing is being recorded.
        """
        if not self._recording:
            logger.debug("Not recording, nothing to stop")
            return self._result

        self._recording = False

        await self.collector.stop()
        # Let in-flight record_action/record_frame calls finish before the snapshot.
        await self.collector.events.drain()

        self._result = await self.sink.stop()
        logger.info(
            "Recording stopped",
            total_actions=self._result.total_actions if self._result else 0,
        )
        logger.set_context(session_id=None)
        return self._result

    def get_action_log(self) -> list[ActionRecord]:
        return self.sink.get_log()

    @staticmethod
    async def create_player(
        action_log_path: str | Path,
        config: PlayerConfig | None = None,
        **kwargs: Any,
    ):
        """Create a player and load ``action_log_path`` into it."""
        from ..replay import ActionPlayer

        player = ActionPlayer(config, **kwargs)
        await player.load(action_log_path)
        return player


__all__ = ["ActionRecorder", "RecordingSession"]
