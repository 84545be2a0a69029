"""
Command line entry point.

    action-replay info recordings/session_actions.json
    action-replay play recordings/session_actions.json --speed 2 --seek 1500
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from typing import Any, Sequence, TextIO

from .actions import ActionRecord, ActionType
from .config import Settings, load_env
from .errors import ActionReplayError, ConfigError, ErrorReport
from .events import EventType
from .logging import configure_logging, timed
from .replay import ActionPlayer, load_action_log


def describe_action(action: ActionRecord) -> list[str]:
    """Human-readable lines for one replayed action."""
    lines = [f"[{action.timestamp}ms] Action: {action.type.value}"]

    if action.type is ActionType.CLICK:
        lines.append(f"  Click at ({action.get('x')}, {action.get('y')})")
        target = action.get("target")
        if isinstance(target, dict):
            label = str(target.get("tagName") or "")
            if target.get("id"):
                label += f" #{target['id']}"
            if target.get("className"):
                label += f" .{target['className']}"
            lines.append(f"  Target: {label}")
    elif action.type is ActionType.INPUT:
        value = str(action.get("value") or "")
        suffix = "..." if len(value) > 30 else ""
        lines.append(f"  Input: {value[:30]}{suffix}")
    elif action.type is ActionType.NAVIGATION:
        lines.append(f"  Navigated to: {action.get('url')}")
    elif action.type is ActionType.CONSOLE:
        lines.append(f"  Console {action.get('messageType')}: {action.get('text')}")
    elif action.type is ActionType.REQUEST:
        lines.append(f"  {action.get('method', 'GET')} {action.get('url')}")
    elif action.type is ActionType.RESPONSE:
        lines.append(f"  {action.get('status')} {action.get('url')}")

    return lines


def format_breakdown(counts: dict[str, int]) -> str:
    return ", ".join(f"{name}={count}" for name, count in counts.items()) or "(none)"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="action-replay",
        description="Inspect and replay recorded browser action logs.",
    )
    parser.add_argument("--config", help="Settings file (.json, .yaml or .toml)")
    parser.add_argument("--env-file", help="Load environment variables from this .env file")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Print a summary of an action log")
    info.add_argument("log", help="Path to the action log")

    play = sub.add_parser("play", help="Replay an action log in real time")
    play.add_argument("log", help="Path to the action log")
    play.add_argument("--speed", type=float, help="Playback speed multiplier")
    play.add_argument("--loop", action="store_true", default=None, help="Restart after the last action")
    play.add_argument("--debug", action="store_true", default=None, help="Emit actions that are already late")
    play.add_argument("--seek", type=float, default=0.0, metavar="MS", help="Start position in ms")

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    if args.env_file:
        load_env(args.env_file, override=True)
    if args.config:
        return Settings.from_file(args.config)
    return Settings.from_env()


async def _info(args: argparse.Namespace, out: TextIO) -> int:
    with timed() as timer:
        loaded = await load_action_log(args.log)

    print(f"Action log: {args.log}", file=out)
    print(f"- Total actions: {loaded.total_actions}", file=out)
    print(f"- Duration: {loaded.duration} ms", file=out)
    print(f"- Action breakdown: {format_breakdown(loaded.counts())}", file=out)
    if loaded.skipped:
        print(f"- Skipped entries: {len(loaded.skipped)}", file=out)
    print(f"- Loaded in {timer.elapsed_ms:.1f} ms", file=out)
    return 0


async def _play(args: argparse.Namespace, settings: Settings, out: TextIO) -> int:
    overrides: dict[str, Any] = {"auto_play": False}
    if args.speed is not None:
        overrides["playback_speed"] = args.speed
    if args.loop is not None:
        overrides["loop"] = args.loop
    if args.debug is not None:
        overrides["debug_mode"] = args.debug
    try:
        config = dataclasses.replace(settings.player, **overrides)
    except ConfigError as exc:
        print(f"Invalid options: {exc}", file=sys.stderr)
        return 2

    player = ActionPlayer(config)

    def on_loaded(info: dict[str, Any]) -> None:
        print(
            f"Recording loaded: {info['total_actions']} actions, {info['duration']}ms duration",
            file=out,
        )

    def on_action(action: ActionRecord) -> None:
        for line in describe_action(action):
            print(line, file=out)

    def on_error(report: ErrorReport) -> None:
        print(f"Playback error ({report.type}): {report.error}", file=sys.stderr)

    player.events.on(EventType.LOADED, on_loaded)
    player.events.on(EventType.ACTION, on_action)
    player.events.on(EventType.ERROR, on_error)

    print(f"Loading action log from: {args.log}", file=out)
    await player.load(args.log)

    if args.seek:
        player.seek_to(args.seek)

    print("Starting playback...", file=out)
    with timed() as timer:
        player.play()
        await player.wait_until_stopped()

    print("\nPlayback complete. Here are some stats:", file=out)
    print(f"- Total actions: {player.total_actions}", file=out)
    print(f"- Duration: {player.duration} ms", file=out)
    print(f"- Action breakdown: {format_breakdown(player.action_counts())}", file=out)
    print(f"- Wall time: {timer.elapsed_ms:.0f} ms", file=out)
    return 0


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    out = out or sys.stdout

    try:
        settings = _load_settings(args)
    except (ConfigError, FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(
        level=args.log_level or settings.logging.level,
        json_output=args.json_logs or settings.logging.format == "json",
    )

    try:
        if args.command == "info":
            return asyncio.run(_info(args, out))
        return asyncio.run(_play(args, settings, out))
    except ActionReplayError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


__all__ = ["main", "describe_action", "format_breakdown"]
