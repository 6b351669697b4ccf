"""
=============================================================================
HTTP STATUS CODES (RFC 7231, RFC 6585)
=============================================================================

The status codes this server can actually answer with, plus their reason
phrases.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK            - Index page, event stream opened       │
    │        │ 204 No Content    - Chat message accepted                 │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request   - Unparsable request line or length     │
    │        │ 404 Not Found     - Unknown path                          │
    │        │ 405 Method Not Allowed - Known path, wrong method         │
    │        │ 411 Length Required    - POST without Content-Length      │
    │        │ 413 Payload Too Large  - Request overflowed the buffer    │
    │        │ 426 Upgrade Required   - HTTP/0.9 client                  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 505 HTTP Version Not Supported - Not an HTTP/x.y token    │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the chat relay.

    IntEnum lets a member be compared and formatted like the plain integer:

        HTTPStatus.NOT_FOUND == 404          # True
        f"{HTTPStatus.NOT_FOUND}"            # "404"
    """

    # ─────────────────────────────────────────────────────────────────────
    # 2xx SUCCESS
    # ─────────────────────────────────────────────────────────────────────
    OK = 200                            # Standard success response
    NO_CONTENT = 204                    # Accepted, nothing to send back

    # ─────────────────────────────────────────────────────────────────────
    # 4xx CLIENT ERRORS
    # ─────────────────────────────────────────────────────────────────────
    BAD_REQUEST = 400                   # Malformed request syntax
    NOT_FOUND = 404                     # Resource doesn't exist
    METHOD_NOT_ALLOWED = 405            # HTTP method not supported for resource
    LENGTH_REQUIRED = 411               # Missing Content-Length header
    PAYLOAD_TOO_LARGE = 413             # Request does not fit the buffer
    UPGRADE_REQUIRED = 426              # Must upgrade protocol

    # ─────────────────────────────────────────────────────────────────────
    # 5xx SERVER ERRORS
    # ─────────────────────────────────────────────────────────────────────
    HTTP_VERSION_NOT_SUPPORTED = 505    # HTTP version not supported

    def __str__(self) -> str:
        return str(self.value)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.LENGTH_REQUIRED: "Length Required",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.UPGRADE_REQUIRED: "Upgrade Required",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
