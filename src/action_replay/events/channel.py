"""
Synchronous publish/subscribe channel.

Each recorder/player component owns one EventChannel and publishes its
outgoing events on it. Integrators wire producers to consumers explicitly by
subscribing handlers to the producer's channel.
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..logging import get_logger

logger = get_logger("action_replay.events")

Listener = Callable[[Any], Any]


def _event_key(event: str | Enum) -> str:
    return event.value if isinstance(event, Enum) else event


@dataclass
class ChannelSubscription:
    """Handle returned by ``EventChannel.on()``; pass it to ``off()``."""

    event: str
    listener: Listener
    once: bool = False
    subscription_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class EventChannel:
    """Typed outgoing-event channel for one component.

    Listeners run synchronously, in subscription order, at the moment
    ``emit()`` is called. A listener that raises is logged and does not
    prevent the remaining listeners from running. A listener that returns a
    coroutine has it scheduled on the running loop; ``drain()`` awaits every
    such pending task.
    """

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._subscriptions: dict[str, list[ChannelSubscription]] = defaultdict(list)
        self._pending: set[asyncio.Task[Any]] = set()

    def on(self, event: str | Enum, listener: Listener) -> ChannelSubscription:
        """Subscribe ``listener`` to ``event``."""
        subscription = ChannelSubscription(event=_event_key(event), listener=listener)
        self._subscriptions[subscription.event].append(subscription)
        return subscription

    def once(self, event: str | Enum, listener: Listener) -> ChannelSubscription:
        """Subscribe ``listener`` for the next emission of ``event`` only."""
        subscription = ChannelSubscription(event=_event_key(event), listener=listener, once=True)
        self._subscriptions[subscription.event].append(subscription)
        return subscription

    def off(self, subscription: ChannelSubscription) -> None:
        """Remove a subscription. Unknown subscriptions are ignored."""
        subs = self._subscriptions.get(subscription.event)
        if not subs:
            return
        self._subscriptions[subscription.event] = [
            s for s in subs if s.subscription_id != subscription.subscription_id
        ]

    def remove_all(self, event: str | Enum | None = None) -> None:
        if event is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(_event_key(event), None)

    def listener_count(self, event: str | Enum) -> int:
        return len(self._subscriptions.get(_event_key(event), ()))

    def emit(self, event: str | Enum, payload: Any = None) -> bool:
        """Deliver ``payload`` to every listener of ``event``.

        Returns True if the event had listeners.
        """
        key = _event_key(event)
        subs = list(self._subscriptions.get(key, ()))
        if not subs:
            return False

        # Drop once-listeners before running them so re-entrant emits skip them.
        if any(s.once for s in subs):
            self._subscriptions[key] = [s for s in self._subscriptions[key] if not s.once]

        for subscription in subs:
            try:
                result = subscription.listener(payload)
            except Exception as exc:
                logger.log_error(
                    exc,
                    f"Listener for '{key}' on {self.name} raised",
                    channel=self.name,
                    event=key,
                )
                continue

            if inspect.isawaitable(result):
                self._track(result, key)

        return True

    def _track(self, awaitable: Any, key: str) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._pending.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.log_error(
                    exc,
                    f"Async listener for '{key}' on {self.name} raised",
                    channel=self.name,
                    event=key,
                )

        task.add_done_callback(_done)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every task started by an async listener has finished.

        The calling task is excluded so a listener may drain its own channel.
        """
        current = asyncio.current_task()
        while True:
            waiting = [t for t in self._pending if t is not current]
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)


__all__ = ["EventChannel", "ChannelSubscription", "Listener"]
