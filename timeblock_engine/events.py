"""
Event Bus - Synchronous publish/subscribe between the engine and its host.

Events are published right after a mutation has been committed, so a
subscriber always sees a consistent store. Delivery happens on the caller's
stack; there is no deferral.
"""

import logging
from collections.abc import Callable
from enum import StrEnum

logger = logging.getLogger(__name__)


class Topic(StrEnum):
    BLOCKS_CHANGED = "blocks_changed"
    TASK_COMPLETED = "task_completed"
    WINDOWS_CHANGED = "windows_changed"


EventCallback = Callable[..., None]


class EventBus:
    def __init__(self):
        self._subscribers: dict[str, list[EventCallback]] = {}

    def subscribe(self, topic: str, callback: EventCallback) -> None:
        self._subscribers.setdefault(topic, []).append(callback)

    def unsubscribe(self, topic: str, callback: EventCallback) -> None:
        callbacks = self._subscribers.get(topic)
        if not callbacks:
            return
        self._subscribers[topic] = [cb for cb in callbacks if cb is not callback]

    def publish(self, topic: str, **payload) -> int:
        """
        Deliver an event to every subscriber of a topic.

        A failing handler is logged and does not stop delivery to the others.

        Returns:
            Number of handlers that ran without raising.
        """
        delivered = 0
        # Copy so handlers may unsubscribe while being called
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback(**payload)
                delivered += 1
            except Exception:
                logger.exception(f"Error in event handler for {topic}")
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    def clear(self) -> None:
        self._subscribers.clear()
