"""
=============================================================================
SERVER-SENT EVENTS
=============================================================================

    frames.py   Wire encoding: message frames, ping frame, stream headers
    hub.py      BroadcastHub - process-wide registry of subscriptions
    stream.py   EventStreamWriter - one per GET /chat connection

=============================================================================
"""

from .frames import PING_FRAME, STREAM_CONTENT_TYPE, format_message, stream_headers
from .hub import BroadcastHub, ChannelClosed, Subscription
from .stream import EventStreamWriter, StreamState

__all__ = [
    "PING_FRAME",
    "STREAM_CONTENT_TYPE",
    "format_message",
    "stream_headers",
    "BroadcastHub",
    "ChannelClosed",
    "Subscription",
    "EventStreamWriter",
    "StreamState",
]
