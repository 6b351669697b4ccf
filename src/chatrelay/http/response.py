"""
=============================================================================
HTTP RESPONSE SERIALISATION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\\r\\n                          ← status line         │
    │  Server: chatrelay\\r\\n                        ← always present      │
    │  Content-Type: text/html; charset=UTF-8\\r\\n   ← handler headers     │
    │  Content-Length: 1234\\r\\n                                           │
    │  \\r\\n                                         ← end of head         │
    │  <!DOCTYPE html>...                           ← body (not for HEAD) │
    └─────────────────────────────────────────────────────────────────────┘

Unlike a general-purpose server we do NOT add Content-Length or Date
automatically: an event stream has no length, and error responses are
deliberately bare. Handlers set exactly the headers they mean to send.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response waiting to be written to a connection.

    Attributes:
        status:  Status code.
        headers: Response headers in the order they will be sent.
        body:    Response body bytes.
        version: Protocol prefix for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 204 No Content"."""
        return f"{self.version} {self.status.value} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, returning self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body, encoding str as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def to_bytes(self, server_name: Optional[str] = None, include_body: bool = True) -> bytes:
        """
        Serialise the response.

        Args:
            server_name: Value for the Server header. Put first, ahead of
                         the handler's own headers.
            include_body: False for HEAD requests - same head, no body.

        Returns:
            Complete response bytes ready for Connection.write().
        """
        lines = [self.status_line]

        if server_name and "Server" not in self.headers:
            lines.append(f"Server: {server_name}")

        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates head from body
        head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
        return head + self.body if include_body else head


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes] = b"", content_type: Optional[str] = None, version: str = "HTTP/1.1") -> HTTPResponse:
    """200 OK with an explicit Content-Length."""
    response = HTTPResponse(status=HTTPStatus.OK, version=version).set_body(body)
    if content_type:
        response.set_header("Content-Type", content_type)
    response.set_header("Content-Length", str(len(response.body)))
    return response


def no_content(version: str = "HTTP/1.1") -> HTTPResponse:
    """204 No Content."""
    return HTTPResponse(status=HTTPStatus.NO_CONTENT, version=version)


def not_found(version: str = "HTTP/1.1") -> HTTPResponse:
    """404 Not Found."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND, version=version)


def method_not_allowed(allowed_methods: Iterable[str], version: str = "HTTP/1.1") -> HTTPResponse:
    """
    405 Method Not Allowed.

    RFC 7231 requires the Allow header listing what the resource accepts.
    """
    return HTTPResponse(
        status=HTTPStatus.METHOD_NOT_ALLOWED,
        headers={"Allow": ", ".join(allowed_methods)},
        version=version,
    )


def error_response(status: HTTPStatus, version: str = "HTTP/1.0", headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
    """A bare error response: status line, Server and any extra headers."""
    return HTTPResponse(status=status, headers=dict(headers or {}), version=version)
