"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       Request head parsing, version negotiation, errors
    response.py      Response serialisation and helpers
    router.py        Exact-path router
    status_codes.py  HTTPStatus enum

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestHead,
    ProtocolVersion,
    parse_head,
    negotiate_version,
    HTTPParseError,
    BadRequest,
    MalformedRequestLine,
    IncompleteRequest,
    PayloadTooLarge,
    LengthRequired,
    UpgradeRequired,
    VersionNotSupported,
)
from .response import (
    HTTPResponse,
    ok,
    no_content,
    not_found,
    method_not_allowed,
    error_response,
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestHead",
    "ProtocolVersion",
    "parse_head",
    "negotiate_version",

    # Errors
    "HTTPParseError",
    "BadRequest",
    "MalformedRequestLine",
    "IncompleteRequest",
    "PayloadTooLarge",
    "LengthRequired",
    "UpgradeRequired",
    "VersionNotSupported",

    # Responses
    "HTTPResponse",
    "ok",
    "no_content",
    "not_found",
    "method_not_allowed",
    "error_response",

    # Routing
    "Router",
    "Route",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
]
