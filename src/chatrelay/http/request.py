"""
=============================================================================
HTTP REQUEST HEAD PARSER
=============================================================================

Turns the bytes buffered by a Connection into a structured RequestHead.
Implements just enough of RFC 7230 to route a request and find its body.

=============================================================================
WHAT WE PARSE (AND WHAT WE DON'T)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  REQUEST LINE                                                       │
    │    POST /chat HTTP/1.1\r\n                                          │
    │    ─┬── ──┬── ───┬────                                              │
    │     │     │      └── version token  → negotiate_version()           │
    │     │     └───────── target path    → Router (exact match)          │
    │     └─────────────── method token   → Router (method table)         │
    ├─────────────────────────────────────────────────────────────────────┤
    │  HEADERS                                                            │
    │    Host: localhost\r\n              ← ignored                       │
    │    Content-Length: 5\r\n            ← the ONLY header we read       │
    │    \r\n                             ← header terminator             │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BODY                                                               │
    │    hello                            ← body_offset points here       │
    └─────────────────────────────────────────────────────────────────────┘

Everything else (Transfer-Encoding, Expect, Connection...) is ignored.
Each connection carries exactly one request, so there is no keep-alive
bookkeeping either.

=============================================================================
VERSION NEGOTIATION
=============================================================================

    HTTP/0.9          → 426 Upgrade Required
    HTTP/1.0          → answer with "HTTP/1.0"
    HTTP/1.<anything> → answer with "HTTP/1.1"
    HTTP/<anything>   → answer with "HTTP/1.1"
    anything else     → 505 HTTP Version Not Supported

=============================================================================
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from .status_codes import HTTPStatus

if TYPE_CHECKING:
    from ..core.connection import Connection


HEADER_TERMINATOR = b"\r\n\r\n"
LINE_TERMINATOR = b"\r\n"

# Unsigned 64-bit decimal: optional "+", then ASCII digits. No whitespace.
_CONTENT_LENGTH_PATTERN = re.compile(r"\+?[0-9]+")
MAX_CONTENT_LENGTH = 2**64 - 1


# =============================================================================
# ERRORS
# =============================================================================

class HTTPParseError(Exception):
    """
    Raised when a request cannot be read or parsed.

    Carries everything the server needs to answer: the status code, the
    protocol prefix to answer with, and any extra headers. Errors raised
    before the version is known answer as HTTP/1.0, since the client's
    version token cannot be trusted at that point.
    """

    status_code: HTTPStatus = HTTPStatus.BAD_REQUEST
    version: str = "HTTP/1.0"

    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message)
        if version is not None:
            self.version = version
        self.headers: Dict[str, str] = {}


class BadRequest(HTTPParseError):
    """Unparsable Content-Length or similar syntax error."""


class MalformedRequestLine(BadRequest):
    """The request line has no method/target separator."""


class IncompleteRequest(HTTPParseError):
    """The peer closed the connection before the message was complete."""


class PayloadTooLarge(HTTPParseError):
    """The request does not fit in the connection buffer."""

    status_code = HTTPStatus.PAYLOAD_TOO_LARGE
    version = "HTTP/1.1"


class LengthRequired(HTTPParseError):
    """A request that needs a body did not say how long it is."""

    status_code = HTTPStatus.LENGTH_REQUIRED


class UpgradeRequired(HTTPParseError):
    """HTTP/0.9 clients are told to come back with HTTP/1.x."""

    status_code = HTTPStatus.UPGRADE_REQUIRED

    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message, version)
        self.headers["Upgrade"] = "HTTP/1.1, HTTP/1.0"


class VersionNotSupported(HTTPParseError):
    """The version token is not an HTTP/x.y token at all."""

    status_code = HTTPStatus.HTTP_VERSION_NOT_SUPPORTED


# =============================================================================
# REQUEST HEAD
# =============================================================================

class ProtocolVersion(Enum):
    """Classification of the raw version token."""

    HTTP_0_9 = "HTTP/0.9"
    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_X = "HTTP/1.x"
    UNKNOWN = "unknown"

    @classmethod
    def classify(cls, token: str) -> "ProtocolVersion":
        if token == "HTTP/0.9":
            return cls.HTTP_0_9
        if token == "HTTP/1.0":
            return cls.HTTP_1_0
        if token.startswith("HTTP/"):
            return cls.HTTP_1_X
        return cls.UNKNOWN


def negotiate_version(token: str) -> str:
    """
    Pick the protocol prefix for the response status line.

    Args:
        token: The raw version token from the request line.

    Returns:
        "HTTP/1.0" or "HTTP/1.1".

    Raises:
        UpgradeRequired: For HTTP/0.9.
        VersionNotSupported: For anything that is not "HTTP/...".
    """
    protocol = ProtocolVersion.classify(token)
    if protocol is ProtocolVersion.HTTP_0_9:
        raise UpgradeRequired(f"Refusing {token} client")
    if protocol is ProtocolVersion.HTTP_1_0:
        return "HTTP/1.0"
    if protocol is ProtocolVersion.HTTP_1_X:
        return "HTTP/1.1"
    raise VersionNotSupported(f"Unsupported HTTP version: {token!r}")


@dataclass(frozen=True)
class RequestHead:
    """
    The parsed head of one request.

    Built once, after the header terminator shows up in the buffer, and
    never modified afterwards.

    Attributes:
        method:         Method token, e.g. "GET". Not validated.
        target:         Request target, matched verbatim by the router.
        version:        Raw version token ("" when the request line had none).
        content_length: Parsed Content-Length, None when absent.
        body_offset:    Index in the connection buffer where the body starts.
    """

    method: str
    target: str
    version: str
    content_length: Optional[int]
    body_offset: int

    @property
    def request_line(self) -> str:
        if self.version:
            return f"{self.method} {self.target} {self.version}"
        return f"{self.method} {self.target}"


# =============================================================================
# PARSER
# =============================================================================

def parse_head(buffer: bytes, terminator_offset: int) -> RequestHead:
    """
    Parse the request line and headers that precede the terminator.

    =====================================================================
    PARSING ALGORITHM
    =====================================================================

    1. Request line = everything up to the first CRLF
    2. Header block = between that CRLF and the terminator
    3. Scan headers for Content-Length (400 if unparsable)
    4. Split the request line into method / target / version

    The header block is scanned first, so an unparsable Content-Length
    wins over a broken request line.

    =====================================================================

    Args:
        buffer: The connection buffer (bytes, bytearray or memoryview).
        terminator_offset: Index of the "\\r\\n\\r\\n" sequence in buffer.

    Returns:
        RequestHead for the buffered request.

    Raises:
        BadRequest: If Content-Length is not an unsigned 64-bit integer.
        MalformedRequestLine: If the request line has no space at all.
    """
    data = bytes(buffer[:terminator_offset + len(HEADER_TERMINATOR)])

    # The first CRLF always exists: the terminator itself starts with one.
    line_end = data.find(LINE_TERMINATOR)
    request_line = data[:line_end].decode("utf-8", errors="replace")

    header_start = line_end + len(LINE_TERMINATOR)
    header_block = data[header_start:max(header_start, terminator_offset)]
    content_length = _parse_headers(header_block.decode("utf-8", errors="replace"))

    method, target, version = _split_request_line(request_line)

    return RequestHead(
        method=method,
        target=target,
        version=version,
        content_length=content_length,
        body_offset=terminator_offset + len(HEADER_TERMINATOR),
    )


def _split_request_line(line: str) -> Tuple[str, str, str]:
    """
    Split "METHOD SP TARGET SP VERSION".

    Only the first two single spaces separate fields, so a target with a
    space in it ends up partly in the version token (and gets a 505).
    """
    method, sep, rest = line.partition(" ")
    if not sep:
        raise MalformedRequestLine(f"Invalid request line: {line!r}")

    target, sep, version = rest.partition(" ")
    if not sep:
        # "GET /" - no version token at all
        return method, rest, ""
    return method, target, version


def _parse_headers(block: str) -> Optional[int]:
    """Return the Content-Length value, if any. Other headers are skipped."""
    content_length = None

    for line in block.split("\r\n"):
        name, sep, value = line.partition(": ")
        if not sep:
            continue  # Lenient: skip lines that aren't "Name: Value"

        if name.lower() != "content-length":
            continue

        if not _CONTENT_LENGTH_PATTERN.fullmatch(value):
            raise BadRequest(f"Invalid Content-Length: {value!r}")
        content_length = int(value)
        if content_length > MAX_CONTENT_LENGTH:
            raise BadRequest(f"Content-Length out of range: {value!r}")

    return content_length


# =============================================================================
# REQUEST (head + where to answer)
# =============================================================================

@dataclass
class HTTPRequest:
    """
    What a handler receives: the parsed head, the protocol prefix it must
    answer with, and the connection the request arrived on.

    Handlers that stream (GET /chat) or need the body (POST /chat) work
    with the connection directly; the rest just return an HTTPResponse.
    """

    head: RequestHead
    response_version: str
    connection: "Connection"

    @property
    def method(self) -> str:
        return self.head.method

    @property
    def path(self) -> str:
        return self.head.target

    def read_body(self) -> bytes:
        """Read exactly Content-Length body bytes from the connection."""
        return self.connection.read_body(self.head, version=self.response_version)
