"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chatrelay import ChatServer, ServerConfig
from chatrelay.handlers import IndexHandler


INDEX_DOCUMENT = "<!DOCTYPE html><title>relay</title><p>café</p>"


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST /chat request with a two-line body."""
    body = b"hello\nworld"
    return (
        b"POST /chat HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: text/plain\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration with short timeouts."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        read_timeout=2.0,
        write_timeout=2.0,
        keepalive_interval=0.3,
        log_level="WARNING",
    )


@pytest.fixture
def socket_pair() -> Generator[tuple, None, None]:
    """A connected (server_side, client_side) socket pair."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


class LiveServer:
    """Chat relay running in a background thread."""

    def __init__(self, server: ChatServer, index_document: bytes = b""):
        self.server = server
        self.index_document = index_document
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    @property
    def hub(self):
        return self.server.hub

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        self.server.wait_for_shutdown(timeout=5.0)

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def connect(self, timeout: float = 3.0) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=timeout)
        return sock

    def request(self, data: bytes, timeout: float = 3.0) -> bytes:
        """Send raw bytes and return everything received until close."""
        with self.connect(timeout) as sock:
            sock.sendall(data)
            return self.read_until_close(sock)

    def open_stream(self, version: str = "HTTP/1.1") -> "StreamClient":
        """Open GET /chat and wait for the response head."""
        sock = self.connect()
        sock.sendall(f"GET /chat {version}\r\nHost: localhost\r\n\r\n".encode())
        client = StreamClient(sock)
        client.read_head()
        return client

    def post(self, body: bytes) -> bytes:
        return self.request(
            b"POST /chat HTTP/1.1\r\n"
            + f"Content-Length: {len(body)}\r\n\r\n".encode()
            + body
        )

    @staticmethod
    def read_until_close(sock: socket.socket) -> bytes:
        data = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                return data
            data += chunk

    @staticmethod
    def wait_for(predicate, timeout: float = 3.0, interval: float = 0.05) -> bool:
        """Poll `predicate` until it returns True or the timeout passes."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()


class StreamClient:
    """Reads an event stream from a raw socket."""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.head = b""
        self._pending = b""

    def read_head(self) -> bytes:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = self.sock.recv(4096)
            if not chunk:
                raise ConnectionError("Stream closed before head")
            data += chunk
        self.head, _, self._pending = data.partition(b"\r\n\r\n")
        return self.head

    def read_until(self, marker: bytes, timeout: float = 3.0) -> bytes:
        """Read until `marker` has been seen; return everything read so far."""
        deadline = time.monotonic() + timeout
        while marker not in self._pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"{marker!r} not received, got {self._pending!r}")
            self.sock.settimeout(remaining)
            chunk = self.sock.recv(4096)
            if not chunk:
                raise ConnectionError(f"Stream closed, got {self._pending!r}")
            self._pending += chunk
        data, self._pending = self._pending, b""
        return data

    def close(self):
        self.sock.close()


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    """A running chat relay serving a small fixed index page."""
    server = ChatServer(config, index=IndexHandler(INDEX_DOCUMENT))

    live = LiveServer(server, index_document=INDEX_DOCUMENT.encode("utf-8"))
    live.start()

    yield live

    live.stop()
