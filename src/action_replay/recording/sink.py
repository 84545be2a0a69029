"""
Action sink: buffers captured actions and persists them as a JSON array.

This module provides:
- ActionSink: in-memory action log with optional incremental durable writes
- SinkResult: what a finished recording produced
- FrameWriter: protocol for an external consumer of captured frames
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..actions import ActionRecord, actions_to_json_ready
from ..config import RecorderConfig
from ..errors import DirectoryError, ErrorCode, ErrorReport, WriteError
from ..events import EventChannel, EventType
from ..logging import get_logger
from .collector import FrameData
from ..storage import FileLogStorage, LogStorage

logger = get_logger("action_replay.sink")


class FrameWriter(Protocol):
    """Consumer of captured frames (e.g. a video muxer living outside this package)."""

    async def open(self, output_path: Path) -> None: ...
    async def write(self, frame: FrameData) -> None: ...
    async def close(self) -> None: ...


@dataclass
class SinkResult:
    """Result of a finished recording."""

    output_path: Path | None
    action_log_path: Path | None
    action_log: list[ActionRecord] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.action_log)


def derive_action_log_path(base_path: str | Path, override: str | Path | None = None) -> Path:
    """``<dir>/<stem>_actions.json`` next to ``base_path`` unless overridden."""
    if override:
        return Path(override)
    base = Path(base_path)
    return base.parent / f"{base.stem}_actions.json"


class ActionSink:
    """Buffers actions in arrival order and writes them to durable storage.

    Example:
        ```python
        sink = ActionSink(RecorderConfig(immediate_action_writes=True))
        await sink.start("recordings/session.mp4")
        await sink.record_action(ActionRecord.create("click", 120, x=10, y=20))
        result = await sink.stop()
        print(result.action_log_path)  # recordings/session_actions.json
        ```
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        storage: LogStorage | None = None,
        frame_writer: FrameWriter | None = None,
    ):
        self.config = config or RecorderConfig()
        self.storage = storage or FileLogStorage()
        self.frame_writer = frame_writer
        self.events = EventChannel("sink")

        self._log: list[ActionRecord] = []
        self._output_path: Path | None = None
        self._action_log_path: Path | None = None
        self._writing = False
        self._frames_open = False
        self._result: SinkResult | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_writing(self) -> bool:
        return self._writing

    @property
    def output_path(self) -> Path | None:
        return self._output_path

    @property
    def action_log_path(self) -> Path | None:
        return self._action_log_path

    @property
    def last_result(self) -> SinkResult | None:
        return self._result

    async def start(self, base_path: str | Path) -> None:
        """Start a new session writing next to ``base_path``.

        Raises:
            DirectoryError: If an output directory cannot be created.
        """
        if self._writing:
            return

        self._output_path = Path(base_path)
        self._action_log_path = derive_action_log_path(base_path, self.config.action_log_path)
        self._log = []

        for directory in {self._output_path.parent, self._action_log_path.parent}:
            try:
                await self.storage.ensure_directory(directory)
            except OSError as exc:
                error = DirectoryError(
                    f"Cannot create directory {directory}: {exc}",
                    path=str(directory),
                    cause=exc,
                )
                self._report("directoryCreate", error)
                raise error from exc

        self._writing = True

        if self.config.capture_video and self.frame_writer is not None:
            await self.frame_writer.open(self._output_path)
            self._frames_open = True

        logger.info(
            "Writer started",
            output_path=str(self._output_path),
            action_log_path=str(self._action_log_path),
        )
        self.events.emit(
            EventType.WRITER_STARTED,
            {
                "output_path": self._output_path,
                "action_log_path": self._action_log_path,
            },
        )

    async def record_action(self, action: ActionRecord) -> bool:
        """Append an action; returns False if no session is active."""
        if not self._writing:
            return False

        self._log.append(action)

        if self.config.immediate_action_writes:
            await self._append_to_action_log(action)

        self.events.emit(
            EventType.ACTION_RECORDED,
            {"action": action, "total_actions": len(self._log)},
        )
        return True

    async def record_frame(self, frame: FrameData) -> None:
        """Forward a frame to the frame writer. Failures are reported, not raised."""
        if not self._writing or not self._frames_open or self.frame_writer is None:
            return

        try:
            await self.frame_writer.write(frame)
        except Exception as exc:
            self._report(
                "frameWrite",
                WriteError(
                    f"Frame write failed: {exc}",
                    code=ErrorCode.FRAME_WRITE,
                    path=str(self._output_path),
                    cause=exc,
                ),
            )

    async def stop(self) -> SinkResult | None:
        """Persist the full log and end the session.

        Calling ``stop()`` with no active session returns the previous result.
        """
        if not self._writing:
            return self._result

        if self.config.save_action_log:
            await self._save_action_log()

        if self._frames_open and self.frame_writer is not None:
            try:
                await self.frame_writer.close()
            except Exception as exc:
                self._report(
                    "frameWrite",
                    WriteError(f"Frame writer close failed: {exc}", code=ErrorCode.FRAME_WRITE, cause=exc),
                )
            self._frames_open = False

        self._writing = False
        self._result = SinkResult(
            output_path=self._output_path,
            action_log_path=self._action_log_path,
            action_log=list(self._log),
        )

        logger.info(
            "Writer stopped",
            action_log_path=str(self._action_log_path),
            total_actions=len(self._log),
        )
        self.events.emit(
            EventType.WRITER_STOPPED,
            {
                "output_path": self._output_path,
                "action_log_path": self._action_log_path,
                "total_actions": len(self._log),
            },
        )
        return self._result

    def get_log(self) -> list[ActionRecord]:
        """Copy of the accumulated log, including the latest append."""
        return list(self._log)

    # -------------------------------------------------------------------------
    # Durable writes
    # -------------------------------------------------------------------------

    async def _append_to_action_log(self, action: ActionRecord) -> None:
        """Read the durable snapshot, append ``action``, rewrite the file."""
        path = self._action_log_path
        async with self._write_lock:
            try:
                existing = await self._read_existing(path)
                existing.append(action.to_dict())
                await self.storage.write_text(path, json.dumps(existing, indent=2, ensure_ascii=False))
            except (OSError, TypeError, ValueError) as exc:
                self._report(
                    "actionWrite",
                    WriteError(
                        f"Incremental action write failed: {exc}",
                        code=ErrorCode.ACTION_WRITE,
                        path=str(path),
                        cause=exc,
                    ),
                )

    async def _read_existing(self, path: Path) -> list[Any]:
        try:
            content = await self.storage.read_text(path)
        except FileNotFoundError:
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Existing action log is not valid JSON; starting over", path=str(path))
            return []

        if not isinstance(data, list):
            logger.warning("Existing action log is not a JSON array; starting over", path=str(path))
            return []
        return data

    async def _save_action_log(self) -> None:
        path = self._action_log_path
        async with self._write_lock:
            try:
                content = json.dumps(actions_to_json_ready(self._log), indent=2, ensure_ascii=False)
                await self.storage.write_text(path, content)
            except (OSError, TypeError, ValueError) as exc:
                self._report(
                    "actionLogSave",
                    WriteError(
                        f"Saving action log failed: {exc}",
                        code=ErrorCode.ACTION_LOG_SAVE,
                        path=str(path),
                        cause=exc,
                    ),
                )

    def _report(self, kind: str, error: Exception) -> None:
        logger.log_error(error, f"Sink error ({kind})", kind=kind)
        self.events.emit(EventType.ERROR, ErrorReport(type=kind, error=error))


__all__ = [
    "ActionSink",
    "SinkResult",
    "FrameWriter",
    "derive_action_log_path",
]
