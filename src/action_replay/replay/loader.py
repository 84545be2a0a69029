"""
Action log loading.

Parses a durable action log (a JSON array of action objects) into an
immutable, timestamp-sorted snapshot. Source order is not trusted: the log is
always re-sorted on load. Individual malformed entries are skipped and
reported instead of failing the whole load.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..actions import ActionRecord, count_by_type, log_duration, sort_actions
from ..errors import ErrorCode, ErrorContext, LoadError
from ..logging import get_logger
from ..storage import FileLogStorage, LogStorage
from ..validation import EntryIssue, validate_action_entry, validate_action_log

logger = get_logger("action_replay.loader")


@dataclass(frozen=True)
class LoadedLog:
    """A sorted, read-only action log and the entries rejected while loading it."""

    actions: tuple[ActionRecord, ...]
    skipped: tuple[EntryIssue, ...] = ()
    path: Path | None = None

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    @property
    def duration(self) -> int:
        return log_duration(self.actions)

    def counts(self) -> dict[str, int]:
        return count_by_type(self.actions)


def build_log(entries: Iterable[ActionRecord | dict[str, Any]], *, path: Path | None = None) -> LoadedLog:
    """Build a sorted log from records or raw dictionaries."""
    records: list[ActionRecord] = []
    issues: list[EntryIssue] = []
    for i, entry in enumerate(entries):
        if isinstance(entry, ActionRecord):
            records.append(entry)
            continue
        result = validate_action_entry(entry)
        if result:
            records.append(ActionRecord.from_dict(entry))
        else:
            issues.append(EntryIssue(index=i, errors=result.errors, entry=entry))

    for issue in issues:
        logger.warning(
            "Skipping invalid action entry",
            index=issue.index,
            errors=issue.errors,
            path=str(path) if path else None,
        )

    return LoadedLog(actions=sort_actions(records), skipped=tuple(issues), path=path)


def parse_action_log(content: str, *, path: Path | None = None) -> LoadedLog:
    """Parse the text of an action log.

    Raises:
        LoadError: If the text is not a JSON array.
    """
    context = ErrorContext(path=str(path) if path else None, operation="parse")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise LoadError(
            f"Failed to load action log: invalid JSON at line {exc.lineno}: {exc.msg}",
            code=ErrorCode.LOG_MALFORMED,
            context=context,
            cause=exc,
        ) from exc

    if not validate_action_log(data):
        raise LoadError(
            f"Failed to load action log: expected a JSON array, got {type(data).__name__}",
            code=ErrorCode.LOG_MALFORMED,
            context=context,
        )

    return build_log(data, path=path)


async def load_action_log(path: str | Path, storage: LogStorage | None = None) -> LoadedLog:
    """Read and parse the action log at ``path``.

    Raises:
        LoadError: If the file cannot be read or is not a JSON array.
    """
    path = Path(path)
    storage = storage or FileLogStorage()

    try:
        content = await storage.read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(
            f"Failed to load action log: {exc}",
            code=ErrorCode.LOG_UNREADABLE,
            path=str(path),
            cause=exc,
        ) from exc

    loaded = parse_action_log(content, path=path)
    logger.debug(
        "Action log loaded",
        path=str(path),
        total_actions=loaded.total_actions,
        skipped=len(loaded.skipped),
    )
    return loaded


__all__ = [
    "LoadedLog",
    "build_log",
    "parse_action_log",
    "load_action_log",
]
