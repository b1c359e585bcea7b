"""In-process change feed for wallet and transaction rows."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import AsyncIterator, Dict, Optional, Set

from .events import LedgerEvent, ResyncRequired

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Bounded per-observer queue; iterate it to receive events.

    Delivery is best effort: when the queue overflows the backlog is dropped
    and replaced by a single ``ResyncRequired``.
    """

    def __init__(self, feed: "LedgerFeed", user_id: str, maxsize: int) -> None:
        self.feed = feed
        self.user_id = user_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def push(self, event: LedgerEvent) -> None:
        if self.closed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Subscriber queue for %s overflowed, requesting resync", self.user_id)
            self._drain()
            self._queue.put_nowait(ResyncRequired(user_id=self.user_id))

    async def get(self, timeout: Optional[float] = None) -> Optional[LedgerEvent]:
        """Next event, or ``None`` once the subscription is closed."""
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            return None
        return item

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        if self.closed:
            return
        self.feed.unsubscribe(self)
        self.closed = True
        self._drain()
        self._queue.put_nowait(_CLOSED)

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()

    def __aiter__(self) -> AsyncIterator[LedgerEvent]:
        return self

    async def __anext__(self) -> LedgerEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class LedgerFeed:
    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)

    def subscribe(self, user_id: str) -> Subscription:
        subscription = Subscription(self, user_id, self.queue_size)
        self._subscribers[user_id].add(subscription)
        logger.debug("Observer subscribed to wallet %s", user_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.user_id)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            self._subscribers.pop(subscription.user_id, None)
        logger.debug("Observer unsubscribed from wallet %s", subscription.user_id)

    def publish(self, event: LedgerEvent) -> int:
        subscribers = list(self._subscribers.get(event.user_id, ()))
        for subscription in subscribers:
            subscription.push(event)
        return len(subscribers)

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))


feed = LedgerFeed()
