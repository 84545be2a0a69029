"""
JSON schemas for configuration and action-log validation.
"""

ACTION_TYPES = [
    "click",
    "input",
    "navigation",
    "console",
    "request",
    "response",
    "frame",
    "custom",
]

ACTION_RECORD_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ACTION_TYPES},
        "timestamp": {"type": "integer", "minimum": 0},
        "x": {"type": ["number", "null"]},
        "y": {"type": ["number", "null"]},
        "url": {"type": ["string", "null"]},
        "method": {"type": ["string", "null"]},
        "status": {"type": ["integer", "null"]},
        "target": {"type": ["object", "null"]},
    },
    "required": ["type", "timestamp"],
    "additionalProperties": True,  # Type-specific payload fields
}

ACTION_LOG_SCHEMA = {
    "type": "array",
}

RECORDER_SCHEMA = {
    "type": "object",
    "properties": {
        "capture_video": {"type": "boolean"},
        "fps": {"type": "integer", "minimum": 1},
        "video_format": {"type": "string"},
        "screenshot_quality": {"type": "integer", "minimum": 0, "maximum": 100},
        "save_action_log": {"type": "boolean"},
        "immediate_action_writes": {"type": "boolean"},
        "include_console_messages": {"type": "boolean"},
        "include_network_requests": {"type": "boolean"},
        "action_log_path": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

PLAYER_SCHEMA = {
    "type": "object",
    "properties": {
        "playback_speed": {"type": "number", "exclusiveMinimum": 0},
        "auto_play": {"type": "boolean"},
        "loop": {"type": "boolean"},
        "debug_mode": {"type": "boolean"},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "recorder": RECORDER_SCHEMA,
        "player": PLAYER_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": True,
}
