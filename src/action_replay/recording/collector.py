"""
Action collector: the boundary between a capture source and the recorder.

A capture source (a browser driver, a CDP bridge, a test double) is started
with the collector and reports raw interactions through the ``handle_*``
methods. The collector stamps each one with the recording clock and
publishes it as an ActionRecord on its channel.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..actions import ActionRecord, ActionType
from ..config import RecorderConfig
from ..errors import ErrorReport
from ..events import EventChannel, EventType
from ..logging import get_logger
from .clock import RecordingClock

logger = get_logger("action_replay.collector")

TARGET_TEXT_LIMIT = 50


@dataclass(frozen=True)
class FrameData:
    """One captured frame (an encoded screenshot) and its virtual timestamp."""

    timestamp: int
    data: bytes


class CaptureSource(Protocol):
    """Something that can report page interactions to a collector."""

    async def start(self, collector: ActionCollector) -> None: ...
    async def stop(self) -> None: ...


@runtime_checkable
class FrameSource(Protocol):
    """Capture source that can also take screenshots on demand."""

    async def capture_frame(self, quality: int) -> bytes: ...


def normalize_target(target: dict[str, Any] | None) -> dict[str, Any] | None:
    """Element descriptor with a lower-case tag name and bounded text content."""
    if not target:
        return None
    info = dict(target)
    tag = info.get("tagName")
    if isinstance(tag, str):
        info["tagName"] = tag.lower()
    text = info.get("textContent")
    if isinstance(text, str):
        info["textContent"] = text.strip()[:TARGET_TEXT_LIMIT]
    return info


class ActionCollector:
    """Turns raw capture callbacks into timestamped ActionRecords.

    Published events: ``action`` (ActionRecord), ``frame`` (FrameData),
    ``collectorStarted``, ``collectorStopped``, ``error``.
    """

    def __init__(
        self,
        source: CaptureSource | None = None,
        config: RecorderConfig | None = None,
        clock: RecordingClock | None = None,
    ):
        self.source = source
        self.config = config or RecorderConfig()
        self.clock = clock or RecordingClock()
        self.events = EventChannel("collector")

        self._collecting = False
        self._frame_task: asyncio.Task[None] | None = None

    @property
    def is_collecting(self) -> bool:
        return self._collecting

    def elapsed(self) -> int:
        return self.clock.elapsed()

    async def start(self) -> None:
        if self._collecting:
            return

        self._collecting = True
        self.clock.start()

        if self.source is not None:
            await self.source.start(self)

        if self.config.capture_video and isinstance(self.source, FrameSource):
            self._frame_task = asyncio.create_task(self._capture_frames(self.source))

        logger.debug("Collector started")
        self.events.emit(EventType.COLLECTOR_STARTED, {"timestamp": 0})

    async def stop(self, reason: str = "stopped") -> None:
        if not self._collecting:
            return

        self._collecting = False

        if self._frame_task is not None:
            self._frame_task.cancel()
            try:
                await self._frame_task
            except asyncio.CancelledError:
                pass
            self._frame_task = None

        if self.source is not None:
            await self.source.stop()

        logger.debug("Collector stopped", reason=reason)
        self.events.emit(
            EventType.COLLECTOR_STOPPED,
            {"timestamp": self.elapsed(), "reason": reason},
        )

    # -------------------------------------------------------------------------
    # Capture callbacks
    # -------------------------------------------------------------------------

    def handle_click(self, x: float, y: float, target: dict[str, Any] | None = None) -> ActionRecord | None:
        return self._publish(ActionType.CLICK, x=x, y=y, target=normalize_target(target))

    def handle_input(self, value: str | None, target: dict[str, Any] | None = None) -> ActionRecord | None:
        return self._publish(ActionType.INPUT, value=value, target=normalize_target(target))

    def handle_navigation(self, url: str) -> ActionRecord | None:
        return self._publish(ActionType.NAVIGATION, url=url)

    def handle_console(self, message_type: str, text: str) -> ActionRecord | None:
        if not self.config.include_console_messages:
            return None
        return self._publish(ActionType.CONSOLE, messageType=message_type, text=text)

    def handle_request(self, url: str, method: str, resource_type: str | None = None) -> ActionRecord | None:
        if not self.config.include_network_requests:
            return None
        return self._publish(ActionType.REQUEST, url=url, method=method, resourceType=resource_type)

    def handle_response(self, url: str, status: int) -> ActionRecord | None:
        if not self.config.include_network_requests:
            return None
        return self._publish(ActionType.RESPONSE, url=url, status=status)

    def handle_custom(self, name: str, **payload: Any) -> ActionRecord | None:
        return self._publish(ActionType.CUSTOM, name=name, **payload)

    def handle_frame(self, data: bytes) -> FrameData | None:
        if not self._collecting or not self.config.capture_video:
            return None
        frame = FrameData(timestamp=self.elapsed(), data=data)
        self.events.emit(EventType.FRAME, frame)
        return frame

    async def handle_close(self) -> None:
        """The page/source went away: stop collecting."""
        await self.stop(reason="source_closed")

    def _publish(self, action_type: ActionType, **payload: Any) -> ActionRecord | None:
        if not self._collecting:
            return None
        action = ActionRecord(type=action_type, timestamp=self.elapsed(), payload=payload)
        self.events.emit(EventType.ACTION, action)
        return action

    async def _capture_frames(self, source: FrameSource) -> None:
        interval = 1.0 / self.config.fps
        while self._collecting:
            try:
                data = await source.capture_frame(self.config.screenshot_quality)
            except Exception as exc:
                logger.log_error(exc, "Frame capture failed")
                self.events.emit(EventType.ERROR, ErrorReport(type="frameCapture", error=exc))
                return
            self.handle_frame(data)
            await asyncio.sleep(interval)


__all__ = [
    "ActionCollector",
    "CaptureSource",
    "FrameSource",
    "FrameData",
    "normalize_target",
]
