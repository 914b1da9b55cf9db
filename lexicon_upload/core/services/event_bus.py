"""
Event bus for upload notifications.

Sessions publish lifecycle and progress events without waiting for
subscribers: events go onto a priority queue and a worker task hands them
to every matching handler.
"""

import asyncio
import fnmatch
import itertools
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..domain.events import Event, EventPriority
from ..interfaces.lifecycle import IComponent
from ..interfaces.messaging import IEventBus

logger = logging.getLogger(__name__)

Handler = Callable[[Event], Any]


@dataclass
class Subscription:
    """A handler registered for an event name or fnmatch pattern."""
    subscription_id: str
    pattern: str
    handler: Handler
    priority: EventPriority
    calls: int = 0
    errors: int = 0
    last_called: Optional[float] = None

    @property
    def is_pattern(self) -> bool:
        return any(ch in self.pattern for ch in "*?[")

    def matches(self, event_name: str) -> bool:
        if self.is_pattern:
            return fnmatch.fnmatchcase(event_name, self.pattern)
        return event_name == self.pattern


class EventBus(IComponent, IEventBus):
    """
    In-process event bus.

    Higher priority events are delivered first; events of equal priority
    keep their publish order. With the default single worker, handlers see
    the events of a session in the order the session produced them.
    """

    def __init__(self, max_workers: int = 1, queue_size: int = 1000):
        self._subscriptions: List[Subscription] = []
        self._queue: "asyncio.PriorityQueue[Tuple[int, int, Event]]" = \
            asyncio.PriorityQueue(maxsize=queue_size)
        self._sequence = itertools.count()
        self._max_workers = max_workers
        self._workers: List["asyncio.Task[None]"] = []
        self._running = False

        self._published = 0
        self._delivered = 0
        self._failed = 0

    @property
    def name(self) -> str:
        return "EventBus"

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._workers = [
            asyncio.create_task(self._deliver_forever())
            for _ in range(self._max_workers)
        ]
        logger.debug(f"Event bus running with {self._max_workers} worker(s)")

    async def stop(self) -> None:
        """Deliver whatever is queued, then shut the workers down."""
        if not self._running:
            return

        await self.join()
        self._running = False

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        self._subscriptions.clear()

        logger.debug("Event bus stopped")

    async def join(self) -> None:
        """Wait until every queued event has been delivered."""
        await self._queue.join()

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "details": {
                "workers_count": len(self._workers),
                "queue_size": self._queue.qsize(),
                "subscriptions_count": len(self._subscriptions),
                "events_published": self._published,
                "events_processed": self._delivered,
                "events_failed": self._failed,
            }
        }

    async def publish(self, event: Union[Event, str], data: Any = None,
                      priority: EventPriority = EventPriority.NORMAL,
                      source: Any = None) -> str:
        """
        Queue an event.

        Raises:
            RuntimeError: If the bus is stopped or its queue is full
        """
        if not self._running:
            raise RuntimeError("Event bus is not running")

        if isinstance(event, str):
            event = Event(name=event, data=data, priority=priority, source=source)

        try:
            self._queue.put_nowait((-event.priority.value, next(self._sequence), event))
        except asyncio.QueueFull:
            logger.error(f"Event queue full, dropping {event.name}")
            raise RuntimeError("Event queue is full")

        self._published += 1
        return event.event_id

    async def subscribe(self, event_name: str, handler: Handler,
                        priority: EventPriority = EventPriority.NORMAL) -> str:
        subscription = Subscription(
            subscription_id=str(uuid.uuid4()),
            pattern=event_name,
            handler=handler,
            priority=priority
        )
        self._subscriptions.append(subscription)
        # Stable sort keeps registration order within a priority.
        self._subscriptions.sort(key=lambda s: s.priority.value, reverse=True)

        logger.debug(f"Subscribed to '{event_name}' ({subscription.subscription_id})")
        return subscription.subscription_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        for i, subscription in enumerate(self._subscriptions):
            if subscription.subscription_id == subscription_id:
                del self._subscriptions[i]
                return True
        return False

    async def _deliver_forever(self) -> None:
        while True:
            _, _, event = await self._queue.get()
            try:
                await self._deliver(event)
            finally:
                self._queue.task_done()

    async def _deliver(self, event: Event) -> None:
        failed = False
        for subscription in [s for s in self._subscriptions if s.matches(event.name)]:
            try:
                result = subscription.handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                subscription.errors += 1
                failed = True
                logger.error(f"Handler for {event.name} raised: {e}")
            else:
                subscription.calls += 1
                subscription.last_called = time.time()

        self._delivered += 1
        if failed:
            self._failed += 1
