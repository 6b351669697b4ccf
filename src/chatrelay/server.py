"""
=============================================================================
CHAT RELAY SERVER
=============================================================================

Ties the pieces together: the socket server accepts, one thread per
connection reads and parses a single request, the router dispatches it,
and the BroadcastHub connects POST senders to GET /chat listeners.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌──────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer.accept()                                              │
    │         │                                                            │
    │         ▼                                                            │
    │   Thread per connection ──► _process_connection(conn)                │
    │         │                                                            │
    │         ├─ conn.read_head()          413 / 400 on failure            │
    │         ├─ parse_head()              400 on bad request line/length  │
    │         ├─ negotiate_version()       426 / 505                       │
    │         ├─ router.handle()                                           │
    │         │     ├─ GET/HEAD /      → IndexHandler                      │
    │         │     ├─ HEAD /chat      → stream headers                    │
    │         │     ├─ GET  /chat      → EventStreamWriter (long-lived)    │
    │         │     ├─ POST /chat      → hub.broadcast() → 204             │
    │         │     └─ otherwise       → 404 / 405                         │
    │         └─ write response, close                                     │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY ONE THREAD PER CONNECTION?
=============================================================================

A listener on GET /chat holds its thread for as long as it stays
connected. A fixed pool of N workers would be exhausted by N open
browser tabs, after which nobody could POST. An unbounded thread per
connection never starves; every place a thread can block (read, write,
waiting for a message) has a timeout, so a vanished client frees its
thread within one timeout.

One request per connection: after the response the connection is
closed. There is no keep-alive loop.

=============================================================================
"""

import logging
import socket
import threading
from typing import Optional, Tuple

from .browser import open_browser
from .config import ServerConfig
from .core.connection import Connection, ConnectionState
from .core.socket_server import SocketServer
from .handlers.chat import ChatHandler
from .handlers.index import IndexHandler
from .http.request import (
    HTTPParseError,
    HTTPRequest,
    IncompleteRequest,
    negotiate_version,
    parse_head,
)
from .http.response import HTTPResponse, error_response
from .http.router import Router
from .sse.hub import BroadcastHub


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("chatrelay.access")


class ChatServer:
    """
    The chat relay.

    Usage:
        server = ChatServer(ServerConfig(port=8080, open_browser=True))
        server.run()  # Blocks until Ctrl+C / SIGTERM / shutdown()

    From another thread (tests):
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready()
        host, port = server.address
    """

    def __init__(self, config: Optional[ServerConfig] = None, index: Optional[IndexHandler] = None):
        """
        Args:
            config: Server configuration. Defaults if not provided.
            index: Handler for "/". Loads the bundled page if not provided.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._socket_server = SocketServer(self.config)
        self._router = Router()

        # The only state shared between connections
        self.hub = BroadcastHub()

        # ─────────────────────────────────────────────────────────────────
        # ROUTES
        # ─────────────────────────────────────────────────────────────────

        self._index = index or IndexHandler.from_file()
        self._chat = ChatHandler(
            self.hub,
            keepalive_interval=self.config.keepalive_interval,
            server_name=self.config.server_name,
        )
        self._register_routes()

    def _register_routes(self):
        # Registration order is the order of the Allow header
        self._router.add_route("/", self._index.get, method="GET", name="index")
        self._router.add_route("/", self._index.head, method="HEAD", name="index_head")
        self._router.add_route("/chat", self._chat.stream, method="GET", name="chat_stream")
        self._router.add_route("/chat", self._chat.head, method="HEAD", name="chat_head")
        self._router.add_route("/chat", self._chat.post, method="POST", name="chat_post")

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port)."""
        return self._socket_server.address

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Bind, optionally open a browser, and serve until shut down (blocking).

        On exit the hub is closed, so every open stream ends cleanly.
        """
        self._setup_logging()

        self._socket_server.bind()
        # Port 0 means "any free port": report the real one from here on
        self.config.port = self.address[1]

        logger.info(f"Starting chat relay on {self.config.host}:{self.config.port}")
        self._print_startup_banner()

        if self.config.open_browser:
            open_browser(self.config.url)

        try:
            self._socket_server.serve_forever(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting connections and end every stream. Any thread."""
        self._socket_server.shutdown()
        self.hub.close()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _shutdown(self):
        logger.info("Shutting down chat relay...")
        self.hub.close()
        logger.info("Server stopped")

    def _print_startup_banner(self):
        """Print server startup information."""
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"║  {self.config.server_name} running".ljust(63) + "║")
        print(f"║  {self.config.url}".ljust(63) + "║")
        print("║  Press Ctrl+C to stop".ljust(63) + "║")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

        self._router.print_routes()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("chatrelay").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a worker thread for a new connection.

        Called on the accept thread by SocketServer, so it must return
        immediately.
        """
        worker = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()

    def _process_connection(self, conn: Connection):
        """
        Serve one request on a connection (runs in its own thread).

        Failures stay local to this connection: they are logged and the
        connection is closed, nothing else is affected.
        """
        with conn:  # Context manager ensures connection is closed
            try:
                self._serve_request(conn)
            except socket.timeout:
                logger.info(f"[{conn.id}] Timed out while {conn.state.value} ({conn.peer})")
            except ConnectionError as e:
                logger.debug(f"[{conn.id}] Peer went away while {conn.state.value}: {e}")
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _serve_request(self, conn: Connection):
        # ─────────────────────────────────────────────────────────────────
        # READ & PARSE HEAD
        # ─────────────────────────────────────────────────────────────────
        try:
            terminator = conn.read_head()
            head = parse_head(conn.buffer, terminator)
            version = negotiate_version(head.version)
        except HTTPParseError as e:
            logger.info(f"[{conn.id}] Rejected request from {conn.peer}: {e}")
            self._send_error(conn, e)
            return

        request = HTTPRequest(head=head, response_version=version, connection=conn)
        conn.state = ConnectionState.PROCESSING

        # ─────────────────────────────────────────────────────────────────
        # DISPATCH
        # ─────────────────────────────────────────────────────────────────
        try:
            response = self._router.handle(request)
        except IncompleteRequest as e:
            # Nothing sensible to answer a sender that hung up mid-body
            logger.info(f"[{conn.id}] {e}")
            return
        except HTTPParseError as e:
            logger.info(f"[{conn.id}] Rejected {head.request_line!r}: {e}")
            self._send_error(conn, e, request)
            return

        if response is None:
            # The handler wrote to the connection itself (event stream)
            self._log_access(conn, request, 200)
            return

        # ─────────────────────────────────────────────────────────────────
        # SEND RESPONSE
        # ─────────────────────────────────────────────────────────────────
        self._send(conn, response, include_body=head.method != "HEAD")
        self._log_access(conn, request, response.status.value)

    def _send(self, conn: Connection, response: HTTPResponse, include_body: bool = True):
        conn.send_response(response.to_bytes(self.config.server_name, include_body=include_body))

    def _send_error(self, conn: Connection, error: HTTPParseError, request: Optional[HTTPRequest] = None):
        """
        Answer a request that failed to read or parse.

        The error carries its own status, protocol prefix and headers.
        """
        response = error_response(error.status_code, error.version, error.headers)
        self._send(conn, response)
        if request is not None:
            self._log_access(conn, request, response.status.value)
        else:
            access_logger.info(f"{conn.client_ip} - -> {response.status.value}")

    def _log_access(self, conn: Connection, request: HTTPRequest, status: int):
        access_logger.info(f"{conn.client_ip} {request.method} {request.path} -> {status}")


def create_server(config: Optional[ServerConfig] = None) -> ChatServer:
    """Create a chat relay with the given (or default) configuration."""
    return ChatServer(config)
