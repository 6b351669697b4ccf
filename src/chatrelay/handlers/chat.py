"""
=============================================================================
CHAT HANDLERS
=============================================================================

The three behaviours of /chat:

    HEAD /chat  → 200 + stream headers, then close
    GET  /chat  → 200 + stream headers, then stream until disconnect
    POST /chat  → read body, frame it, broadcast, 204

=============================================================================
INGESTION
=============================================================================

    POST /chat HTTP/1.1\r\n
    Content-Length: 11\r\n
    \r\n
    hello\nworld
          │
          ▼  decode (invalid UTF-8 replaced), split lines
    "data: hello\n"
    "data: world\n"
    "\n"                 ← blank line ends the event
          │
          ▼
    hub.broadcast(frame) → 204 No Content

A POST without Content-Length is refused with 411: without it we can't
tell where the body ends short of the peer closing.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest, LengthRequired
from ..http.response import HTTPResponse, no_content
from ..http.status_codes import HTTPStatus
from ..sse.frames import format_message, stream_headers
from ..sse.hub import BroadcastHub
from ..sse.stream import EventStreamWriter


logger = logging.getLogger(__name__)


class ChatHandler:
    """
    Handlers for /chat, sharing one BroadcastHub.

    Args:
        hub: The server's hub.
        keepalive_interval: Idle seconds before a stream gets a ping.
        server_name: Value of the Server header on streams.
    """

    def __init__(self, hub: BroadcastHub, keepalive_interval: float = 10.0, server_name: str = "chatrelay"):
        self.hub = hub
        self.keepalive_interval = keepalive_interval
        self.server_name = server_name

    def head(self, request: HTTPRequest) -> HTTPResponse:
        """Stream headers only; the connection closes right after."""
        return HTTPResponse(
            status=HTTPStatus.OK,
            headers=stream_headers(self.server_name),
            version=request.response_version,
        )

    def stream(self, request: HTTPRequest) -> None:
        """
        Subscribe and stream until the hub closes or the peer goes away.

        Blocks this connection's thread for the whole stream. Returns None:
        the response has already been written.
        """
        subscription = self.hub.subscribe()
        logger.info(f"[{request.connection.id}] Listener connected ({self.hub.subscriber_count} registered)")

        writer = EventStreamWriter(
            request.connection,
            subscription,
            keepalive_interval=self.keepalive_interval,
            version=request.response_version,
            server_name=self.server_name,
        )
        writer.run()
        return None

    def post(self, request: HTTPRequest) -> HTTPResponse:
        """
        Broadcast the posted message.

        Raises:
            LengthRequired: No Content-Length header.
            PayloadTooLarge: Body doesn't fit the connection buffer.
            IncompleteRequest: Peer closed before sending the whole body.
        """
        if request.head.content_length is None:
            raise LengthRequired("POST /chat requires Content-Length", version=request.response_version)

        body = request.read_body()
        frame = format_message(body)
        delivered = self.hub.broadcast(frame)

        logger.info(f"[{request.connection.id}] Message of {len(body)} bytes relayed to {delivered} listener(s)")
        return no_content(request.response_version)
