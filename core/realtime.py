# core/realtime.py
"""In-process change feed for new notifications and chat messages.

Route handlers run in worker threads while WebSocket subscribers wait on
the event loop, so publishing hands each event to the subscriber's loop
with call_soon_threadsafe. Events queued on a session are only published
once that session commits.
"""
import asyncio
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_PENDING_KEY = "realtime_pending_events"


def notifications_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


def messages_channel(request_id: str) -> str:
    return f"messages:{request_id}"


@dataclass(eq=False)
class Subscription:
    channel: str
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class ChangeFeed:
    def __init__(self):
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, channel: str) -> Subscription:
        """Subscribe from inside a running event loop"""
        subscription = Subscription(channel=channel, loop=asyncio.get_running_loop())
        with self._lock:
            self._subscribers[channel].add(subscription)
        logger.debug("Subscribed to %s", channel)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.channel)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.channel]

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    def publish(self, channel: str, payload: Dict[str, Any]) -> int:
        """Deliver an event to every subscriber of a channel.

        Safe to call from any thread. Subscribers whose loop has closed are dropped.

        Returns:
            Number of subscribers the event was handed to
        """
        with self._lock:
            subscribers = list(self._subscribers.get(channel, ()))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, payload)
                delivered += 1
            except RuntimeError:
                logger.debug("Dropping subscriber on %s, its event loop is closed", channel)
                self.unsubscribe(subscription)
        return delivered


feed = ChangeFeed()


def publish_after_commit(session: Session, channel: str, payload: Dict[str, Any]) -> None:
    """Queue an event that is published when the session commits"""
    session.info.setdefault(_PENDING_KEY, []).append((channel, payload))


@event.listens_for(Session, "after_commit")
def _publish_pending(session):
    for channel, payload in session.info.pop(_PENDING_KEY, []):
        feed.publish(channel, payload)


@event.listens_for(Session, "after_rollback")
def _discard_pending(session):
    session.info.pop(_PENDING_KEY, None)
