"""
Unit tests for BroadcastHub and Subscription.
"""

import queue
import threading

import pytest

from chatrelay.sse.hub import BroadcastHub, ChannelClosed, Subscription


class TestSubscription:
    """Tests for a single subscriber channel."""

    def test_send_and_receive(self):
        subscription = Subscription()

        assert subscription.send("data: a\n\n") is True
        assert subscription.receive(timeout=1) == "data: a\n\n"

    def test_receive_timeout(self):
        with pytest.raises(queue.Empty):
            Subscription().receive(timeout=0.01)

    def test_try_receive_empty(self):
        assert Subscription().try_receive() is None

    def test_send_after_drop_fails(self):
        subscription = Subscription()
        subscription.drop()

        assert subscription.dropped
        assert subscription.send("x") is False

    def test_close_ends_receive(self):
        subscription = Subscription()
        subscription.send("last")
        subscription._close()

        assert subscription.receive(timeout=1) == "last"
        with pytest.raises(ChannelClosed):
            subscription.receive(timeout=1)
        # Stays closed
        with pytest.raises(ChannelClosed):
            subscription.try_receive()


class TestBroadcastHub:
    """Tests for the hub registry."""

    def test_subscribe_registers(self):
        hub = BroadcastHub()
        hub.subscribe()
        hub.subscribe()

        assert hub.subscriber_count == 2

    def test_broadcast_reaches_every_subscriber(self):
        hub = BroadcastHub()
        subscriptions = [hub.subscribe() for _ in range(3)]

        delivered = hub.broadcast("data: hello\n\n")

        assert delivered == 3
        for subscription in subscriptions:
            assert subscription.receive(timeout=1) == "data: hello\n\n"

    def test_broadcast_without_subscribers(self):
        assert BroadcastHub().broadcast("data: x\n\n") == 0

    def test_dropped_subscriber_pruned_on_next_broadcast(self):
        hub = BroadcastHub()
        alive = hub.subscribe()
        gone = hub.subscribe()
        gone.drop()

        # Not pruned until a broadcast notices
        assert hub.subscriber_count == 2

        assert hub.broadcast("data: x\n\n") == 1
        assert hub.subscriber_count == 1
        assert alive.receive(timeout=1) == "data: x\n\n"
        assert gone.try_receive() is None

    def test_order_preserved(self):
        hub = BroadcastHub()
        subscription = hub.subscribe()

        for i in range(50):
            hub.broadcast(f"data: {i}\n\n")

        received = [subscription.receive(timeout=1) for _ in range(50)]
        assert received == [f"data: {i}\n\n" for i in range(50)]

    def test_concurrent_broadcasts_same_order_for_everyone(self):
        """Every subscriber sees the same global order."""
        hub = BroadcastHub()
        subscriptions = [hub.subscribe() for _ in range(4)]

        def sender(prefix: str):
            for i in range(100):
                hub.broadcast(f"{prefix}{i}")

        threads = [threading.Thread(target=sender, args=(p,)) for p in "abc"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        orders = [[s.receive(timeout=1) for _ in range(300)] for s in subscriptions]
        assert all(order == orders[0] for order in orders)
        # Each sender's own messages stay in sequence
        assert [m for m in orders[0] if m.startswith("a")] == [f"a{i}" for i in range(100)]

    def test_close_signals_subscribers(self):
        hub = BroadcastHub()
        subscription = hub.subscribe()

        hub.close()

        assert hub.is_closed
        assert hub.subscriber_count == 0
        with pytest.raises(ChannelClosed):
            subscription.receive(timeout=1)

    def test_subscribe_after_close(self):
        hub = BroadcastHub()
        hub.close()

        subscription = hub.subscribe()

        assert hub.subscriber_count == 0
        with pytest.raises(ChannelClosed):
            subscription.receive(timeout=1)

    def test_close_wakes_blocked_receiver(self):
        hub = BroadcastHub()
        subscription = hub.subscribe()
        outcome = []

        def receiver():
            try:
                subscription.receive(timeout=5)
            except ChannelClosed:
                outcome.append("closed")

        thread = threading.Thread(target=receiver)
        thread.start()
        hub.close()
        thread.join(timeout=2)

        assert outcome == ["closed"]
