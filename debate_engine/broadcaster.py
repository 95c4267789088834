"""Live event fan-out to discussion listeners."""

import asyncio
import logging
import threading
from collections.abc import AsyncIterator

from .models import Discussion, DiscussionLog
from .types import DiscussionEvent

logger = logging.getLogger(__name__)

SUBSCRIBER_BUFFER_SIZE = 10

_CLOSED = object()


class Subscription:
    """A listener's handle: a bounded queue of events for one discussion."""

    def __init__(self, discussion_id: int, maxsize: int = SUBSCRIBER_BUFFER_SIZE):
        self.discussion_id = discussion_id
        self.queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, event: DiscussionEvent) -> bool:
        """Enqueue without blocking. Returns False when the event was dropped."""
        if self.closed:
            return False
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # events() also stops on the flag once the buffer drains
            pass

    async def get(self) -> DiscussionEvent | None:
        """Next event, or None once the subscription is closed and drained."""
        if self.closed and self.queue.empty():
            return None
        item = await self.queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    async def events(self) -> AsyncIterator[DiscussionEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class EventBroadcaster:
    """Registry of live listeners per discussion.

    Subscribe and unsubscribe are serialized by a lock; broadcasting works
    on a snapshot of the registry so fan-out never holds the lock while
    delivering. Delivery never blocks: a listener whose buffer is full
    misses that event.
    """

    def __init__(self, buffer_size: int = SUBSCRIBER_BUFFER_SIZE):
        self._buffer_size = buffer_size
        self._subscribers: dict[int, set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, discussion_id: int) -> Subscription:
        subscription = Subscription(discussion_id, self._buffer_size)
        with self._lock:
            self._subscribers.setdefault(discussion_id, set()).add(subscription)
        logger.debug(f"Listener subscribed to discussion {discussion_id}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._subscribers.get(subscription.discussion_id)
            if listeners is not None:
                listeners.discard(subscription)
                if not listeners:
                    del self._subscribers[subscription.discussion_id]
        subscription.close()
        logger.debug(f"Listener unsubscribed from discussion {subscription.discussion_id}")

    def subscriber_count(self, discussion_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(discussion_id, ()))

    def broadcast(self, discussion_id: int, event: DiscussionEvent) -> int:
        """Deliver an event to every listener of a discussion. Returns deliveries made."""
        with self._lock:
            listeners = list(self._subscribers.get(discussion_id, ()))

        delivered = 0
        for subscription in listeners:
            if subscription.offer(event):
                delivered += 1
            else:
                logger.debug(f"Dropped {event['type']} event for a slow listener of {discussion_id}")
        return delivered

    def publish_log(self, log: DiscussionLog) -> int:
        return self.broadcast(log.discussion_id, {"type": "log", "data": log.to_dict()})

    def publish_discussion(self, discussion: Discussion) -> int:
        if discussion.id is None:
            return 0
        return self.broadcast(
            discussion.id, {"type": "discussion", "data": discussion.to_dict()}
        )

    def close(self) -> None:
        """Close every subscription. Called on process shutdown."""
        with self._lock:
            subscriptions = [s for listeners in self._subscribers.values() for s in listeners]
            self._subscribers.clear()
        for subscription in subscriptions:
            subscription.close()
