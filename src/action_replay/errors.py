"""
Error taxonomy for action-replay.

This module provides a small exception hierarchy with:
- Error codes for programmatic handling
- Structured context for debugging
- A helper to build the ``error`` channel payload from an exception
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Load errors (1xxx)
    LOAD_ERROR = "ERR_1000"
    LOG_UNREADABLE = "ERR_1001"
    LOG_MALFORMED = "ERR_1002"
    ACTION_INVALID = "ERR_1003"

    # Write errors (2xxx)
    WRITE_ERROR = "ERR_2000"
    ACTION_WRITE = "ERR_2001"
    ACTION_LOG_SAVE = "ERR_2002"
    FRAME_WRITE = "ERR_2003"

    # Directory errors (3xxx)
    DIRECTORY_ERROR = "ERR_3000"

    # Argument errors (4xxx)
    INVALID_ARGUMENT = "ERR_4000"
    INVALID_SPEED = "ERR_4001"

    # State errors (5xxx)
    STATE_ERROR = "ERR_5000"
    ALREADY_RECORDING = "ERR_5001"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    path: str | None = None
    operation: str | None = None
    action_index: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "operation": self.operation,
            "action_index": self.action_index,
            **self.extra,
        }


class ActionReplayError(Exception):
    """
    Base exception for all action-replay errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.path:
            parts.append(f"(path={self.context.path})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Load / Write / Directory Errors
# =============================================================================


class LoadError(ActionReplayError):
    """The action log could not be read or parsed. Fatal to ``load()`` only."""

    code = ErrorCode.LOAD_ERROR

    def __init__(
        self,
        message: str = "Failed to load action log",
        *,
        path: str | None = None,
        **kwargs,
    ):
        if path and "context" not in kwargs:
            kwargs["context"] = ErrorContext(path=path, operation="load")
        super().__init__(message, **kwargs)


class WriteError(ActionReplayError):
    """A durable write failed. Reported on the error channel, never raised into recording."""

    code = ErrorCode.WRITE_ERROR

    def __init__(
        self,
        message: str = "Failed to write action log",
        *,
        path: str | None = None,
        **kwargs,
    ):
        if path and "context" not in kwargs:
            kwargs["context"] = ErrorContext(path=path, operation="write")
        super().__init__(message, **kwargs)


class DirectoryError(ActionReplayError):
    """The output directory could not be created."""

    code = ErrorCode.DIRECTORY_ERROR

    def __init__(
        self,
        message: str = "Failed to create output directory",
        *,
        path: str | None = None,
        **kwargs,
    ):
        if path and "context" not in kwargs:
            kwargs["context"] = ErrorContext(path=path, operation="mkdir")
        super().__init__(message, **kwargs)


class InvalidArgumentError(ActionReplayError, ValueError):
    """An argument was outside its accepted domain (e.g. non-positive speed)."""

    code = ErrorCode.INVALID_ARGUMENT


class RecorderStateError(ActionReplayError):
    """A recorder operation was called in the wrong state."""

    code = ErrorCode.STATE_ERROR


class ConfigError(ActionReplayError, ValueError):
    """Configuration could not be validated."""

    code = ErrorCode.CONFIG_ERROR


# =============================================================================
# Error channel payload
# =============================================================================


@dataclass(frozen=True)
class ErrorReport:
    """Payload of an ``error`` event: where it happened and what was raised."""

    type: str
    error: BaseException

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
        }
        if isinstance(self.error, ActionReplayError):
            data["error_code"] = self.error.code.value
        return data


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "ActionReplayError",
    "LoadError",
    "WriteError",
    "DirectoryError",
    "InvalidArgumentError",
    "RecorderStateError",
    "ConfigError",
    "ErrorReport",
]
