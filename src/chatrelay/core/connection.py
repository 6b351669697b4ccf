"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the two things the HTTP layer
needs: a bounded read buffer that knows when a request head is complete,
and a write buffer that is flushed explicitly.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        POST /chat HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello

    Server might receive:
        recv() → "POST /chat HTTP/1.1\r\nContent-Le"
        recv() → "ngth: 5\r\n\r"                    ← terminator split!
        recv() → "\nhel"
        recv() → "lo"

We buffer what arrives and look for the header terminator (\r\n\r\n)
after every read, then keep reading until Content-Length body bytes are
in the same buffer.

=============================================================================
THE FIXED BUFFER
=============================================================================

    ┌──────────────────────────────────────────────────────────────────┐
    │ POST /chat HTTP/1.1\r\n...\r\n\r\nhello│░░░░░░░░░░░░░░░░░░░░░░░░░│
    └──────────────────────────────────────────────────────────────────┘
    0                          body_offset ▲  filled ▲          capacity ▲

- One bytearray per connection, allocated up front (64 KiB default).
- recv_into() writes straight into the free tail - no concatenation.
- When filled == capacity and we still need more: 413 Payload Too Large.

=============================================================================
RESUMABLE TERMINATOR SEARCH
=============================================================================

After a read that grew the buffer from `previous` to `filled` bytes, the
terminator can only END inside the new bytes. It is 4 bytes long, so it
can START at most 3 bytes before them:

    previous scan covered ....................│
                                     ┌────────┤ new bytes ───────────┐
    buffer:   ...Content-Length: 5\r\n\r│\n...                       │
                                  ▲     │
                   previous - 3 ──┘     previous

So each search starts at max(previous - 3, 0) and never re-scans the
whole buffer.

=============================================================================
"""

import socket
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from ..http.request import (
    HEADER_TERMINATOR,
    IncompleteRequest,
    PayloadTooLarge,
    RequestHead,
)


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64 * 1024


class ConnectionState(Enum):
    """
    Connection lifecycle states, for logging and debugging.

    A connection carries one request, so the lifecycle is linear:

        NEW → READING → PROCESSING → WRITING/STREAMING → CLOSING → CLOSED
    """

    NEW = "new"                # Just accepted
    READING = "reading"        # Reading head or body
    PROCESSING = "processing"  # Head parsed, handler running
    WRITING = "writing"        # Sending a response
    STREAMING = "streaming"    # Long-lived event stream
    CLOSING = "closing"        # Shutdown sequence
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        max_request_size: Capacity of the read buffer in bytes.
        read_timeout: Seconds a single recv() may block.
        write_timeout: Seconds a single flush() may block.
        id: Short unique id for log lines.
        state: Current ConnectionState.
        created_at: Accept timestamp.
    """

    socket: socket.socket
    address: tuple

    max_request_size: int = DEFAULT_CAPACITY
    read_timeout: float = 10.0
    write_timeout: float = 10.0

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    _buffer: bytearray = field(init=False, repr=False)
    _filled: int = field(default=0, init=False, repr=False)
    _out: bytearray = field(default_factory=bytearray, init=False, repr=False)

    def __post_init__(self):
        self._buffer = bytearray(self.max_request_size)
        self.socket.setblocking(True)
        self.socket.settimeout(self.read_timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def peer(self) -> str:
        """"ip:port" for log lines."""
        if isinstance(self.address, tuple) and len(self.address) >= 2:
            return f"{self.address[0]}:{self.address[1]}"
        return str(self.address)

    @property
    def buffered(self) -> int:
        """Number of request bytes read so far."""
        return self._filled

    @property
    def buffer(self) -> memoryview:
        """Read-only view of the bytes read so far."""
        return memoryview(self._buffer)[:self._filled].toreadonly()

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_head(self) -> int:
        """
        Read until the header terminator is in the buffer.

        ┌─────────────────────────────────────────────────────────────────┐
        │   loop:                                                          │
        │     buffer full?        ── yes ──► PayloadTooLarge               │
        │     recv_into(free tail)                                         │
        │     got 0 bytes?        ── yes ──► IncompleteRequest             │
        │     search from previous-3 ─ found ─► return terminator offset  │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            Offset of "\\r\\n\\r\\n" in the buffer.

        Raises:
            PayloadTooLarge: Buffer filled before the terminator arrived.
            IncompleteRequest: Peer closed before the terminator arrived.
            socket.timeout: A read exceeded read_timeout.
            ConnectionError: Peer reset the connection.
        """
        self.state = ConnectionState.READING

        while True:
            if self._filled == len(self._buffer):
                raise PayloadTooLarge(f"Request head exceeds {len(self._buffer)} bytes")

            previous = self._filled
            received = self._recv_into()
            if received == 0:
                raise IncompleteRequest("Connection closed before request head was complete")
            self._filled += received

            search_start = max(previous - (len(HEADER_TERMINATOR) - 1), 0)
            index = self._buffer.find(HEADER_TERMINATOR, search_start, self._filled)
            if index != -1:
                return index

    def read_body(self, head: RequestHead, version: str = "HTTP/1.1") -> bytes:
        """
        Read until Content-Length body bytes follow the head.

        Uses the same buffer as read_head(), so head + body together are
        bounded by max_request_size. Bytes beyond Content-Length are
        ignored (one request per connection).

        Args:
            head: The parsed request head (content_length must be set).
            version: Protocol prefix for a 413 answer.

        Returns:
            Exactly head.content_length bytes.

        Raises:
            PayloadTooLarge: Buffer filled before the body was complete.
            IncompleteRequest: Peer closed before the body was complete.
        """
        self.state = ConnectionState.READING
        end = head.body_offset + (head.content_length or 0)

        while self._filled < end:
            if self._filled == len(self._buffer):
                raise PayloadTooLarge(
                    f"Body of {head.content_length} bytes does not fit in {len(self._buffer)} byte buffer",
                    version=version,
                )

            received = self._recv_into()
            if received == 0:
                raise IncompleteRequest(
                    f"Connection closed after {self._filled - head.body_offset} "
                    f"of {head.content_length} body bytes"
                )
            self._filled += received

        self.state = ConnectionState.PROCESSING
        return bytes(self._buffer[head.body_offset:end])

    def _recv_into(self) -> int:
        """recv() straight into the free tail of the buffer."""
        self.socket.settimeout(self.read_timeout)
        return self.socket.recv_into(memoryview(self._buffer)[self._filled:])

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> None:
        """Queue bytes for the next flush()."""
        self._out += data

    def flush(self) -> None:
        """
        Send everything queued by write().

        sendall() blocks until all bytes are handed to the kernel, bounded
        by write_timeout.

        Raises:
            socket.timeout: The peer stopped reading.
            ConnectionError / OSError: The peer is gone.
        """
        if not self._out:
            return

        self.socket.settimeout(self.write_timeout)
        try:
            self.socket.sendall(self._out)
        finally:
            self._out.clear()

    def send_response(self, data: bytes) -> None:
        """Write and flush in one go."""
        self.state = ConnectionState.WRITING
        self.write(data)
        self.flush()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, linger: float = 0.5):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR) - send FIN, the client sees end of response
        2. drain what the client still sends, for at most `linger` seconds,
           so an unread request body doesn't turn our FIN into a RST
        3. close() - release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        deadline = time.monotonic() + linger
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(4096):
                    break
        except OSError:
            pass  # Timeout or reset - we're closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.2f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
