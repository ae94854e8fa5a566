"""Event publishing over Azure Storage Queues."""

from .event_bus import EventBus

__all__ = [
    "EventBus",
]
