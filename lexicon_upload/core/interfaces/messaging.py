"""
Messaging interface for upload event publication.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Union

from ..domain.events import Event, EventPriority


class IEventBus(ABC):
    """Publish/subscribe channel for upload events."""

    @abstractmethod
    async def publish(self, event: Union[Event, str], data: Any = None,
                      priority: EventPriority = EventPriority.NORMAL,
                      source: Any = None) -> str:
        """
        Enqueue an event; handlers run later on the bus worker.

        ``data``, ``priority`` and ``source`` are only used when ``event``
        is a name rather than a prebuilt ``Event``.

        Returns:
            The event id
        """

    @abstractmethod
    async def subscribe(self, event_name: str, handler: Callable[[Event], Any],
                        priority: EventPriority = EventPriority.NORMAL) -> str:
        """
        Register ``handler`` for an event name or fnmatch pattern such as ``upload.*``.

        Handlers may be plain functions or coroutines. Higher priority
        handlers run first.

        Returns:
            Subscription id for ``unsubscribe``
        """

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription; returns False if the id is unknown."""
