"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The "ears" of the relay: binds one TCP address, accepts connections, and
hands each one to a callback. It knows nothing about HTTP.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a TCP socket
    2. bind()      Reserve IP:PORT
    3. listen()    Start queueing incoming connections
    4. accept()    Returns a NEW socket per client; the listener keeps listening
    5. close()     Release the listener

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ GET /chat │         │ GET /chat │         │ POST /chat│
    │ (stream)  │         │ (stream)  │         │ (one-shot)│
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) stop the accept loop.
Python only lets the main thread install signal handlers, so when the
server runs in a background thread (tests) the handlers are skipped.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │    bind()            Create socket, bind, listen                     │
    │    serve_forever()   Accept loop (blocks here!)                      │
    │        └──► while running:                                           │
    │                accept()       Wait for connection (1s poll)          │
    │                Connection()   Wrap client socket                     │
    │                callback(conn) Hand off to the chat server            │
    │    shutdown()        Stop the loop (any thread, idempotent)          │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.bind()
        server.serve_forever(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the listener is bound, and again when the loop exits
        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). Reflects the real port when the config asked
        for port 0 (let the OS pick).
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening socket with the options we rely on."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Avoid "Address already in use" while old sockets sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Event-stream frames are tiny; don't let Nagle hold them back
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up every second to check the running flag
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and listen.

        Separate from serve_forever() so the caller can act once the port
        is really open (e.g. launch a browser on it).

        Returns:
            The bound (host, port).

        Raises:
            OSError: Address in use, permission denied (ports < 1024), ...
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._running = True
        self._shutdown_event.clear()
        self._ready_event.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return host, port

    def serve_forever(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Args:
            connection_handler: Called with each new Connection, on the
                                accept thread. Must not block.
        """
        if self._socket is None:
            self.bind()

        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll the running flag
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    max_request_size=self.config.max_request_size,
                    read_timeout=self.config.read_timeout,
                    write_timeout=self.config.write_timeout,
                )
                connection_handler(conn)
            except Exception:
                # Drop this client, keep accepting
                logger.exception(f"Failed to hand off connection from {client_address}")
                client_socket.close()

    def shutdown(self):
        """Stop the accept loop. Safe to call from any thread, more than once."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until bind() has succeeded. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the server stops. Returns False on timeout."""
        return self._shutdown_event.wait(timeout)
