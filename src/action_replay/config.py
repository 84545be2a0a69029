"""
Configuration system for action-replay.

This module provides typed configuration classes with:
- Frozen dataclass settings validated once at construction
- Environment variable loading
- JSON/YAML/TOML file loading validated against CONFIG_SCHEMA
- Sensible defaults with override capability
"""
from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import jsonschema
from dotenv import find_dotenv, load_dotenv

from .config_schema import CONFIG_SCHEMA
from .errors import ConfigError


# =============================================================================
# Recorder Configuration
# =============================================================================

@dataclass(frozen=True)
class RecorderConfig:
    """Configuration for the collector and the action sink."""

    # Frame capture (frames are passed through, never encoded)
    capture_video: bool = False
    fps: int = 25
    video_format: str = "mp4"
    screenshot_quality: int = 80

    # Action log
    save_action_log: bool = True
    immediate_action_writes: bool = False
    action_log_path: Optional[str] = None

    # What to capture
    include_console_messages: bool = True
    include_network_requests: bool = False

    def __post_init__(self):
        if self.fps < 1:
            raise ConfigError("fps must be at least 1")
        if not 0 <= self.screenshot_quality <= 100:
            raise ConfigError("screenshot_quality must be between 0 and 100")
        if not self.video_format:
            raise ConfigError("video_format cannot be empty")


# =============================================================================
# Player Configuration
# =============================================================================

@dataclass(frozen=True)
class PlayerConfig:
    """Configuration for playback."""

    playback_speed: float = 1.0
    auto_play: bool = False
    loop: bool = False

    # Emit actions whose time already passed instead of skipping them
    debug_mode: bool = False

    def __post_init__(self):
        if self.playback_speed <= 0:
            raise ConfigError("playback_speed must be positive")


# =============================================================================
# Logging Configuration
# =============================================================================

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging."""

    level: LogLevel = "INFO"
    format: LogFormat = "text"


# =============================================================================
# Master Configuration
# =============================================================================

def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Master configuration for action-replay.

    Aggregates the recorder, player and logging sections into a single
    object that can be loaded from environment variables, files, or
    constructed programmatically.
    """

    recorder: RecorderConfig = field(default_factory=RecorderConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "ACTION_REPLAY_") -> "Settings":
        """
        Load settings from environment variables.

        Example:
            ACTION_REPLAY_PLAYBACK_SPEED=2.0
            ACTION_REPLAY_LOOP=true
            ACTION_REPLAY_IMMEDIATE_ACTION_WRITES=1
            ACTION_REPLAY_LOG_LEVEL=debug
        """
        recorder: Dict[str, Any] = {}
        player: Dict[str, Any] = {}
        logging_: Dict[str, Any] = {}

        # Recorder settings
        for name in (
            "capture_video",
            "save_action_log",
            "immediate_action_writes",
            "include_console_messages",
            "include_network_requests",
        ):
            if (value := os.getenv(f"{prefix}{name.upper()}")) is not None:
                recorder[name] = _env_bool(value)
        if fps := os.getenv(f"{prefix}FPS"):
            recorder["fps"] = int(fps)
        if log_path := os.getenv(f"{prefix}ACTION_LOG_PATH"):
            recorder["action_log_path"] = log_path

        # Player settings
        if speed := os.getenv(f"{prefix}PLAYBACK_SPEED"):
            player["playback_speed"] = float(speed)
        for name in ("auto_play", "loop", "debug_mode"):
            if (value := os.getenv(f"{prefix}{name.upper()}")) is not None:
                player[name] = _env_bool(value)

        # Logging settings
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            logging_["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            logging_["format"] = log_format.lower()

        return cls(
            recorder=RecorderConfig(**recorder),
            player=PlayerConfig(**player),
            logging=LoggingConfig(**logging_),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a JSON, YAML or TOML file.

        Args:
            path: Path to configuration file (.json, .yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        elif suffix in (".yaml", ".yml"):
            import yaml
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            import tomllib
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from a dictionary validated against CONFIG_SCHEMA."""
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e.message}") from e

        return cls(
            recorder=RecorderConfig(**data.get("recorder", {})),
            player=PlayerConfig(**data.get("player", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return dataclasses.asdict(self)


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating from the environment if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Optional[Settings] = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Replace whole sections (recorder=..., player=..., logging=...)

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if hasattr(_global_settings, key):
            setattr(_global_settings, key, value)

    return _global_settings


def load_env(path: Optional[str] = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = [
    "RecorderConfig",
    "PlayerConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "configure",
    "load_env",
]
