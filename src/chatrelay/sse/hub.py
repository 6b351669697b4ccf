"""
=============================================================================
BROADCAST HUB
=============================================================================

Fans chat messages out from POST handlers to every open event stream.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   POST /chat ──► broadcast(frame)                                    │
    │                      │                                               │
    │                      │  with lock:                                   │
    │                      ▼                                               │
    │            ┌───────────────────┐                                     │
    │            │ registry (list)   │                                     │
    │            │  sub#1  ──send──► queue ──► EventStreamWriter ──► peer  │
    │            │  sub#2  ──send──► queue ──► EventStreamWriter ──► peer  │
    │            │  sub#3  ──send──✗ dropped → pruned in this same pass    │
    │            └───────────────────┘                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
OWNERSHIP
=============================================================================

A Subscription has two ends:

- the hub holds it to SEND (send() returns False once the receiver is gone)
- the stream writer holds it to RECEIVE, and calls drop() when it exits

There is no unsubscribe(). A writer that exits just drops its end, and the
next broadcast notices the failed send and removes the entry. Nothing
else ever scans the registry.

The frame itself is an immutable str built once per POST; every queue
gets a reference to the same object, so only the registry needs the lock.

=============================================================================
ORDERING
=============================================================================

broadcast() holds the lock for the whole scan, so two broadcasts never
interleave: every subscriber sees messages in global broadcast order.
Queues are unbounded FIFOs, so a send never blocks while the lock is held.

=============================================================================
"""

import logging
import queue
import threading
import uuid
from typing import List, Optional


logger = logging.getLogger(__name__)


class ChannelClosed(Exception):
    """The hub was closed; the receiver should stop."""


# Marker put on a queue by BroadcastHub.close()
_CLOSED = object()


class Subscription:
    """
    One subscriber's message channel.

    Usage (receiving side):

        subscription = hub.subscribe()
        try:
            while True:
                try:
                    frame = subscription.receive(timeout=10.0)
                except queue.Empty:
                    ...  # idle - send a keep-alive
                except ChannelClosed:
                    break
        finally:
            subscription.drop()
    """

    def __init__(self):
        self.id = str(uuid.uuid4())[:8]
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._dropped = threading.Event()
        self._closed = False

    @property
    def dropped(self) -> bool:
        """True once the receiving end has gone away."""
        return self._dropped.is_set()

    def send(self, message: str) -> bool:
        """
        Queue a message for the receiver.

        Returns:
            False if the receiver has dropped its end (the hub prunes us).
        """
        if self._dropped.is_set():
            return False
        self._queue.put(message)
        return True

    def receive(self, timeout: Optional[float] = None) -> str:
        """
        Wait for the next message.

        Raises:
            queue.Empty: Nothing arrived within timeout.
            ChannelClosed: The hub was closed.
        """
        if self._closed:
            raise ChannelClosed()
        return self._unwrap(self._queue.get(timeout=timeout))

    def try_receive(self) -> Optional[str]:
        """
        Return an already-queued message without waiting, or None.

        Raises:
            ChannelClosed: The hub was closed.
        """
        if self._closed:
            raise ChannelClosed()
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        return self._unwrap(item)

    def _unwrap(self, item: object) -> str:
        if item is _CLOSED:
            self._closed = True
            raise ChannelClosed()
        return item

    def drop(self) -> None:
        """Receiver is gone. Later sends fail, which prunes this entry."""
        self._dropped.set()

    def _close(self) -> None:
        self._queue.put(_CLOSED)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id!r}, dropped={self.dropped})"


class BroadcastHub:
    """
    Registry of live subscriptions, guarded by a single lock.

    Owned by the ChatServer and passed to the chat handlers; nothing here
    is global, so tests can build one and drive it directly:

        hub = BroadcastHub()
        sub = hub.subscribe()
        hub.broadcast("data: hi\\n\\n")
        assert sub.receive(timeout=1) == "data: hi\\n\\n"
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        """Registry size, including dropped entries not yet pruned."""
        with self._lock:
            return len(self._subscriptions)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self) -> Subscription:
        """
        Register a new subscriber. Never fails.

        After close(), returns a subscription that is already closed, so
        the caller's receive loop ends immediately.
        """
        subscription = Subscription()

        with self._lock:
            registered = not self._closed
            if registered:
                self._subscriptions.append(subscription)
            count = len(self._subscriptions)

        if not registered:
            subscription._close()
        else:
            logger.debug(f"Subscriber {subscription.id} joined ({count} registered)")
        return subscription

    def broadcast(self, message: str) -> int:
        """
        Deliver a message to every live subscriber, pruning dead ones.

        Args:
            message: An immutable, fully framed event.

        Returns:
            Number of subscribers the message was queued for.
        """
        with self._lock:
            live = []
            for subscription in self._subscriptions:
                if subscription.send(message):
                    live.append(subscription)
                else:
                    logger.debug(f"Pruned subscriber {subscription.id}")
            pruned = len(self._subscriptions) - len(live)
            self._subscriptions = live
            delivered = len(live)

        logger.debug(f"Broadcast to {delivered} subscriber(s), pruned {pruned}")
        return delivered

    def close(self) -> None:
        """
        Tell every subscriber the channel is closed and empty the registry.

        Called on server shutdown so stream writers exit cleanly.
        """
        with self._lock:
            self._closed = True
            subscriptions, self._subscriptions = self._subscriptions, []

        for subscription in subscriptions:
            subscription._close()
        logger.debug(f"Hub closed, released {len(subscriptions)} subscriber(s)")
