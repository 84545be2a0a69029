"""
Validation utilities for action logs.

Uses jsonschema for validating raw action entries and configuration data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError as JsonSchemaValidationError

from .config_schema import ACTION_LOG_SCHEMA, ACTION_RECORD_SCHEMA


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def error(cls, error: str) -> ValidationResult:
        return cls(valid=False, errors=[error])

    def __bool__(self) -> bool:
        return self.valid


def validate_against_schema(data: Any, schema: dict[str, Any]) -> ValidationResult:
    """Validate data against a JSON schema using jsonschema library."""
    try:
        jsonschema.validate(instance=data, schema=schema)
        return ValidationResult.ok()
    except JsonSchemaValidationError as e:
        path = ".".join(str(p) for p in e.path)
        if path:
            msg = f"Validation failed at '{path}': {e.message}"
        else:
            msg = f"Validation error: {e.message}"

        return ValidationResult.error(msg)


def validate_action_log(data: Any) -> ValidationResult:
    """Check the top-level shape of a parsed action log."""
    return validate_against_schema(data, ACTION_LOG_SCHEMA)


def validate_action_entry(entry: Any) -> ValidationResult:
    """Validate a single raw action entry from a log file."""
    return validate_against_schema(entry, ACTION_RECORD_SCHEMA)


@dataclass
class EntryIssue:
    """A log entry that was rejected during loading."""

    index: int
    errors: list[str]
    entry: Any = None


__all__ = [
    "ValidationResult",
    "EntryIssue",
    "validate_against_schema",
    "validate_action_log",
    "validate_action_entry",
]
