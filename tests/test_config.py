"""
Tests for the configuration system.
"""
import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

import action_replay.config as config_module
from action_replay.config import (
    LoggingConfig,
    PlayerConfig,
    RecorderConfig,
    Settings,
    configure,
    get_settings,
    load_env,
)
from action_replay.errors import ConfigError


class TestRecorderConfig:
    """Test recorder configuration."""

    def test_defaults(self):
        """Test default values."""
        config = RecorderConfig()

        assert config.capture_video is False
        assert config.fps == 25
        assert config.video_format == "mp4"
        assert config.save_action_log is True
        assert config.immediate_action_writes is False
        assert config.include_console_messages is True
        assert config.include_network_requests is False
        assert config.action_log_path is None

    def test_validation(self):
        """Test validation in __post_init__."""
        with pytest.raises(ConfigError, match="fps must be at least 1"):
            RecorderConfig(fps=0)

        with pytest.raises(ConfigError, match="screenshot_quality"):
            RecorderConfig(screenshot_quality=101)

        with pytest.raises(ConfigError, match="video_format"):
            RecorderConfig(video_format="")

    def test_frozen(self):
        config = RecorderConfig()
        with pytest.raises(AttributeError):
            config.fps = 30


class TestPlayerConfig:
    """Test player configuration."""

    def test_defaults(self):
        config = PlayerConfig()

        assert config.playback_speed == 1.0
        assert config.auto_play is False
        assert config.loop is False
        assert config.debug_mode is False

    def test_speed_must_be_positive(self):
        with pytest.raises(ConfigError, match="playback_speed must be positive"):
            PlayerConfig(playback_speed=0)


class TestLoggingConfig:
    """Test logging configuration."""

    def test_defaults(self):
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.format == "text"


class TestSettings:
    """Test the master Settings class."""

    def test_default_settings(self):
        settings = Settings()

        assert isinstance(settings.recorder, RecorderConfig)
        assert isinstance(settings.player, PlayerConfig)
        assert isinstance(settings.logging, LoggingConfig)

    def test_from_env(self, monkeypatch):
        """Test loading from environment variables."""
        monkeypatch.setenv("ACTION_REPLAY_PLAYBACK_SPEED", "2.5")
        monkeypatch.setenv("ACTION_REPLAY_LOOP", "true")
        monkeypatch.setenv("ACTION_REPLAY_IMMEDIATE_ACTION_WRITES", "1")
        monkeypatch.setenv("ACTION_REPLAY_INCLUDE_CONSOLE_MESSAGES", "no")
        monkeypatch.setenv("ACTION_REPLAY_FPS", "10")
        monkeypatch.setenv("ACTION_REPLAY_LOG_LEVEL", "debug")
        monkeypatch.setenv("ACTION_REPLAY_LOG_FORMAT", "JSON")

        settings = Settings.from_env()

        assert settings.player.playback_speed == 2.5
        assert settings.player.loop is True
        assert settings.recorder.immediate_action_writes is True
        assert settings.recorder.include_console_messages is False
        assert settings.recorder.fps == 10
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "json"

    def test_from_env_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("REPLAY_DEBUG_MODE", "yes")

        settings = Settings.from_env(prefix="REPLAY_")

        assert settings.player.debug_mode is True

    def test_from_json_file(self, tmp_path):
        """Test loading from a JSON file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"player": {"playback_speed": 3, "loop": True}}))

        settings = Settings.from_file(path)

        assert settings.player.playback_speed == 3
        assert settings.player.loop is True
        assert settings.recorder == RecorderConfig()

    def test_from_yaml_file(self):
        """Test loading from YAML file."""
        pytest.importorskip("yaml")

        with TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.yaml"
            config_path.write_text("""
recorder:
  capture_video: true
  fps: 12

player:
  debug_mode: true

logging:
  level: DEBUG
""")

            settings = Settings.from_file(config_path)

            assert settings.recorder.capture_video is True
            assert settings.recorder.fps == 12
            assert settings.player.debug_mode is True
            assert settings.logging.level == "DEBUG"

    def test_from_toml_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[recorder]\ninclude_network_requests = true\n')

        settings = Settings.from_file(path)

        assert settings.recorder.include_network_requests is True

    def test_schema_violation(self, tmp_path):
        """Invalid values are rejected with ConfigError."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"player": {"playback_speed": 0}}))

        with pytest.raises(ConfigError, match="validation failed"):
            Settings.from_file(path)

    def test_unknown_section_key(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"recorder": {"frames_per_second": 5}}))

        with pytest.raises(ConfigError):
            Settings.from_file(path)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[player]\n")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            Settings.from_file(path)

    def test_to_dict(self):
        d = Settings().to_dict()

        assert d["player"]["playback_speed"] == 1.0
        assert d["recorder"]["fps"] == 25
        assert d["logging"]["format"] == "text"

    def test_file_not_found(self):
        """Test error for missing file."""
        with pytest.raises(FileNotFoundError):
            Settings.from_file("/nonexistent/config.yaml")


class TestGlobalSettings:
    """Test global settings functions."""

    @pytest.fixture(autouse=True)
    def reset_globals(self, monkeypatch):
        monkeypatch.setattr(config_module, "_global_settings", None)

    def test_get_settings(self, monkeypatch):
        monkeypatch.setenv("ACTION_REPLAY_AUTO_PLAY", "true")

        settings = get_settings()

        assert settings.player.auto_play is True
        assert get_settings() is settings

    def test_configure(self):
        custom = Settings(player=PlayerConfig(loop=True))

        assert configure(custom) is custom
        assert get_settings().player.loop is True

    def test_configure_sections(self):
        settings = configure(player=PlayerConfig(playback_speed=4))

        assert settings.player.playback_speed == 4

    def test_load_env(self, tmp_path, monkeypatch):
        # Registered first so teardown restores the original environment.
        monkeypatch.setenv("ACTION_REPLAY_PLAYBACK_SPEED", "9")
        env_file = tmp_path / ".env"
        env_file.write_text("ACTION_REPLAY_PLAYBACK_SPEED=1.5\n")

        assert load_env(str(env_file), override=True) is True
        assert Settings.from_env().player.playback_speed == 1.5
