"""
Event channels for recorder and player components.

Every component publishes its outgoing events on its own EventChannel;
wiring between components is explicit subscription.
"""

from .types import EventType, action_event
from .channel import EventChannel, ChannelSubscription, Listener

__all__ = [
    # Event names
    "EventType",
    "action_event",
    # Channel
    "EventChannel",
    "ChannelSubscription",
    "Listener",
]
