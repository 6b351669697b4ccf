"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the chat relay.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Binds IP:PORT, runs the accept() loop on the main thread         │
    │  • Stops on SIGTERM / SIGINT                                        │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One thread per accepted connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Fixed-size read buffer, resumable header-terminator search       │
    │  • Explicit write buffer + flush (batches event-stream frames)      │
    │  • Read/write timeouts, graceful close                              │
    └─────────────────────────────────────────────────────────────────────┘

There is no thread pool: event-stream subscribers hold their thread for
as long as they stay connected, so a bounded pool would starve new
clients. Thread-per-connection keeps every blocking point bounded by a
timeout instead.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # TCP listener + accept loop
    "Connection",       # Client socket wrapper - buffered I/O
    "ConnectionState",  # Connection lifecycle states
]
