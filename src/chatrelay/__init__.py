"""
=============================================================================
CHATRELAY - BROADCAST CHAT OVER SERVER-SENT EVENTS
=============================================================================

A tiny chat relay on top of a raw-socket HTTP/1.x server:

    GET  /       the chat page
    GET  /chat   event stream of every message posted from now on
    POST /chat   broadcast the request body to every open stream

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    chatrelay/
    ├── __init__.py        ← You are here
    ├── __main__.py        CLI entry point (python -m chatrelay)
    ├── config.py          ServerConfig
    ├── server.py          ChatServer - thread per connection, dispatch
    ├── browser.py         Open the page in the default browser
    ├── core/
    │   ├── socket_server.py   TCP listener and accept loop
    │   └── connection.py      Bounded read buffer, buffered writes
    ├── http/
    │   ├── request.py         Head parser, version negotiation, errors
    │   ├── response.py        Response serialisation
    │   ├── router.py          Exact-path router
    │   └── status_codes.py    HTTPStatus
    ├── sse/
    │   ├── frames.py          Event-stream encoding
    │   ├── hub.py             BroadcastHub and Subscription
    │   └── stream.py          EventStreamWriter
    ├── handlers/
    │   ├── index.py           GET/HEAD /
    │   └── chat.py            HEAD/GET/POST /chat
    └── static/
        └── index.html

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import ChatServer, create_server
from .sse.hub import BroadcastHub

__all__ = [
    "ChatServer",
    "create_server",
    "ServerConfig",
    "BroadcastHub",
    "__version__",
]
