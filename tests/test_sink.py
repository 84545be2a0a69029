"""
Tests for the action sink.
"""
import json
from pathlib import Path

import pytest

from action_replay.actions import ActionRecord
from action_replay.config import RecorderConfig
from action_replay.errors import DirectoryError, ErrorCode
from action_replay.events import EventType
from action_replay.recording import ActionSink, derive_action_log_path
from action_replay.recording.collector import FrameData

from conftest import InMemoryStorage, RecordingFrameWriter, sample_actions


def collect_errors(sink: ActionSink) -> list:
    reports = []
    sink.events.on(EventType.ERROR, reports.append)
    return reports


class TestDeriveActionLogPath:
    """Test log path derivation."""

    def test_next_to_base(self):
        assert derive_action_log_path("out/session.mp4") == Path("out/session_actions.json")

    def test_override(self):
        assert derive_action_log_path("out/session.mp4", "logs/custom.json") == Path("logs/custom.json")


class TestSinkLifecycle:
    """Test start/stop on the real filesystem."""

    @pytest.mark.asyncio
    async def test_writes_snapshot_on_stop(self, tmp_path):
        sink = ActionSink()
        await sink.start(tmp_path / "rec" / "session.mp4")

        for action in sample_actions():
            assert await sink.record_action(action) is True

        result = await sink.stop()

        assert result.action_log_path == tmp_path / "rec" / "session_actions.json"
        assert result.total_actions == 3
        data = json.loads(result.action_log_path.read_text(encoding="utf-8"))
        assert data == [a.to_dict() for a in sample_actions()]
        assert result.action_log_path.read_text(encoding="utf-8").startswith("[\n  {")

    @pytest.mark.asyncio
    async def test_creates_override_directory(self, tmp_path):
        override = tmp_path / "logs" / "nested" / "actions.json"
        sink = ActionSink(RecorderConfig(action_log_path=str(override)))

        await sink.start(tmp_path / "video" / "out.mp4")
        await sink.stop()

        assert override.exists()
        assert (tmp_path / "video").is_dir()

    @pytest.mark.asyncio
    async def test_events(self, memory_storage):
        sink = ActionSink(storage=memory_storage)
        names = []
        for event in (EventType.WRITER_STARTED, EventType.ACTION_RECORDED, EventType.WRITER_STOPPED):
            sink.events.on(event, lambda p, e=event: names.append((e.value, p)))

        await sink.start("out/s.mp4")
        await sink.record_action(ActionRecord.create("click", 5, x=1, y=2))
        await sink.stop()

        assert [n for n, _ in names] == ["writerStarted", "actionRecorded", "writerStopped"]
        assert names[1][1]["total_actions"] == 1
        assert names[2][1]["total_actions"] == 1

    @pytest.mark.asyncio
    async def test_not_writing_initially(self, memory_storage):
        """Actions before start() are ignored."""
        sink = ActionSink(storage=memory_storage)

        assert not sink.is_writing
        assert await sink.record_action(ActionRecord.create("click", 0)) is False
        assert sink.get_log() == []

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, memory_storage):
        sink = ActionSink(storage=memory_storage)

        assert await sink.stop() is None

        await sink.start("out/s.mp4")
        first = await sink.stop()
        writes = memory_storage.writes

        assert await sink.stop() is first
        assert memory_storage.writes == writes

    @pytest.mark.asyncio
    async def test_get_log_is_a_copy(self, memory_storage):
        sink = ActionSink(storage=memory_storage)
        await sink.start("out/s.mp4")
        await sink.record_action(ActionRecord.create("click", 0))

        log = sink.get_log()
        log.clear()

        assert len(sink.get_log()) == 1

    @pytest.mark.asyncio
    async def test_restart_resets_log(self, memory_storage):
        sink = ActionSink(storage=memory_storage)
        await sink.start("out/a.mp4")
        await sink.record_action(ActionRecord.create("click", 0))
        await sink.stop()

        await sink.start("out/b.mp4")
        assert sink.get_log() == []
        await sink.stop()

    @pytest.mark.asyncio
    async def test_save_disabled(self, memory_storage):
        sink = ActionSink(RecorderConfig(save_action_log=False), storage=memory_storage)
        await sink.start("out/s.mp4")
        await sink.record_action(ActionRecord.create("click", 0))
        result = await sink.stop()

        assert memory_storage.files == {}
        assert result.total_actions == 1


class TestImmediateWrites:
    """Test incremental durable writes."""

    @pytest.mark.asyncio
    async def test_file_reflects_each_append(self, memory_storage):
        sink = ActionSink(RecorderConfig(immediate_action_writes=True), storage=memory_storage)
        await sink.start("out/s.mp4")
        path = sink.action_log_path

        actions = sample_actions()
        await sink.record_action(actions[0])
        assert memory_storage.load_json(path) == [actions[0].to_dict()]

        await sink.record_action(actions[1])
        assert memory_storage.load_json(path) == [a.to_dict() for a in actions[:2]]

    @pytest.mark.asyncio
    async def test_recovers_from_corrupt_file(self, memory_storage):
        sink = ActionSink(RecorderConfig(immediate_action_writes=True), storage=memory_storage)
        await sink.start("out/s.mp4")
        memory_storage.files[str(sink.action_log_path)] = "{broken"

        await sink.record_action(ActionRecord.create("click", 3))

        assert memory_storage.load_json(sink.action_log_path) == [{"type": "click", "timestamp": 3}]

    @pytest.mark.asyncio
    async def test_write_failure_reported(self, memory_storage):
        """A failed incremental write is reported and recording continues."""
        sink = ActionSink(RecorderConfig(immediate_action_writes=True), storage=memory_storage)
        reports = collect_errors(sink)
        await sink.start("out/s.mp4")
        memory_storage.fail_write = True

        assert await sink.record_action(ActionRecord.create("click", 0)) is True
        assert await sink.record_action(ActionRecord.create("input", 5)) is True

        assert [r.type for r in reports] == ["actionWrite", "actionWrite"]
        assert reports[0].error.code == ErrorCode.ACTION_WRITE
        assert len(sink.get_log()) == 2


class TestSinkErrors:
    """Test failure reporting."""

    @pytest.mark.asyncio
    async def test_directory_failure_raises(self):
        storage = InMemoryStorage(fail_mkdir=True)
        sink = ActionSink(storage=storage)
        reports = collect_errors(sink)

        with pytest.raises(DirectoryError):
            await sink.start("out/s.mp4")

        assert [r.type for r in reports] == ["directoryCreate"]
        assert not sink.is_writing

    @pytest.mark.asyncio
    async def test_save_failure_reported(self, memory_storage):
        sink = ActionSink(storage=memory_storage)
        reports = collect_errors(sink)
        await sink.start("out/s.mp4")
        await sink.record_action(ActionRecord.create("click", 0))
        memory_storage.fail_write = True

        result = await sink.stop()

        assert [r.type for r in reports] == ["actionLogSave"]
        assert reports[0].error.code == ErrorCode.ACTION_LOG_SAVE
        assert result.total_actions == 1
        assert not sink.is_writing


class TestFrames:
    """Test frame forwarding."""

    @pytest.mark.asyncio
    async def test_frames_forwarded(self, memory_storage):
        writer = RecordingFrameWriter()
        sink = ActionSink(RecorderConfig(capture_video=True), storage=memory_storage, frame_writer=writer)

        await sink.start("out/s.mp4")
        await sink.record_frame(FrameData(timestamp=40, data=b"f"))
        await sink.stop()

        assert writer.opened == Path("out/s.mp4")
        assert [f.timestamp for f in writer.frames] == [40]
        assert writer.closed

    @pytest.mark.asyncio
    async def test_frame_failure_reported(self, memory_storage):
        writer = RecordingFrameWriter(fail_write=True)
        sink = ActionSink(RecorderConfig(capture_video=True), storage=memory_storage, frame_writer=writer)
        reports = collect_errors(sink)

        await sink.start("out/s.mp4")
        await sink.record_frame(FrameData(timestamp=0, data=b"f"))

        assert [r.type for r in reports] == ["frameWrite"]
        assert reports[0].error.code == ErrorCode.FRAME_WRITE
        await sink.stop()

    @pytest.mark.asyncio
    async def test_no_writer_without_video(self, memory_storage):
        writer = RecordingFrameWriter()
        sink = ActionSink(storage=memory_storage, frame_writer=writer)

        await sink.start("out/s.mp4")
        await sink.record_frame(FrameData(timestamp=0, data=b"f"))
        await sink.stop()

        assert writer.opened is None
        assert writer.frames == []
