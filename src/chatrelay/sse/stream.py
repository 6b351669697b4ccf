"""
=============================================================================
EVENT STREAM WRITER
=============================================================================

Runs for the lifetime of one GET /chat connection, copying frames from
its Subscription to the socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   entry: write 200 + stream headers, flush                          │
    │                     │                                                │
    │                     ▼                                                │
    │           ┌───────────────────┐                                      │
    │     ┌────►│     STREAMING     │                                      │
    │     │     └─────────┬─────────┘                                      │
    │     │               │ receive(keepalive_interval)                    │
    │     │     ┌─────────┼──────────────────┬──────────────────┐          │
    │     │     ▼         ▼                  ▼                  │          │
    │     │  message   timeout         ChannelClosed            │          │
    │     │  + drain   ping frame            │                  │          │
    │     │  queued                          ▼                  │          │
    │     │  flush     flush           ┌──────────┐             │          │
    │     └──┴─────────┘               │  CLOSED  │             │          │
    │                                  └──────────┘             │          │
    │   exit (any reason): subscription.drop()                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A burst of broadcasts costs one flush: after the first message arrives,
everything already queued is written before flushing.

The ping doubles as dead-peer detection. Once the client is gone, the
next flush raises (BrokenPipeError, ConnectionResetError or a write
timeout) and the exception travels up to the server, which treats it as
an ordinary disconnect.

=============================================================================
"""

import logging
import queue
from enum import Enum

from ..core.connection import Connection, ConnectionState
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus
from .frames import PING_FRAME, stream_headers
from .hub import ChannelClosed, Subscription


logger = logging.getLogger(__name__)


class StreamState(Enum):
    STREAMING = "streaming"
    CLOSED = "closed"


class EventStreamWriter:
    """
    Per-subscriber loop: Subscription → Connection.

    Args:
        connection: The client connection.
        subscription: This client's channel from BroadcastHub.subscribe().
        keepalive_interval: Idle seconds before a ping frame is sent.
        version: Protocol prefix for the status line.
        server_name: Value of the Server header.
    """

    def __init__(
        self,
        connection: Connection,
        subscription: Subscription,
        keepalive_interval: float = 10.0,
        version: str = "HTTP/1.1",
        server_name: str = "chatrelay",
    ):
        self.connection = connection
        self.subscription = subscription
        self.keepalive_interval = keepalive_interval
        self.version = version
        self.server_name = server_name

        self.state = StreamState.STREAMING
        self.messages_sent = 0
        self.pings_sent = 0

    def run(self) -> None:
        """
        Stream until the hub closes the channel.

        Returns normally on ChannelClosed; write errors propagate.
        """
        try:
            self._write_head()

            while self.state is StreamState.STREAMING:
                try:
                    message = self.subscription.receive(timeout=self.keepalive_interval)
                except queue.Empty:
                    self._ping()
                    continue
                except ChannelClosed:
                    self.state = StreamState.CLOSED
                    break

                self._write_batch(message)
        finally:
            self.state = StreamState.CLOSED
            self.subscription.drop()
            logger.debug(
                f"[{self.connection.id}] Stream ended: "
                f"{self.messages_sent} message(s), {self.pings_sent} ping(s)"
            )

    def _write_head(self) -> None:
        """Send the 200 header block before any message arrives."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers=stream_headers(self.server_name),
            version=self.version,
        )
        self.connection.state = ConnectionState.STREAMING
        self.connection.write(response.to_bytes())
        self.connection.flush()

    def _write_batch(self, first: str) -> None:
        """Write one message plus everything already queued, flush once."""
        self.connection.write(first.encode("utf-8"))
        self.messages_sent += 1

        try:
            while True:
                message = self.subscription.try_receive()
                if message is None:
                    break
                self.connection.write(message.encode("utf-8"))
                self.messages_sent += 1
        except ChannelClosed:
            # Deliver what we have, then stop
            self.state = StreamState.CLOSED

        self.connection.flush()

    def _ping(self) -> None:
        self.connection.write(PING_FRAME.encode("utf-8"))
        self.connection.flush()
        self.pings_sent += 1
        logger.debug(f"[{self.connection.id}] Keep-alive ping")
