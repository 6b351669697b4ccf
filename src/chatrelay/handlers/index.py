"""
=============================================================================
INDEX DOCUMENT HANDLER
=============================================================================

Serves the single static page at "/". The document is read once at
startup and kept in memory - it's a few KB, and serving it is then just
a sendall().

    GET  /   → 200, Content-Type: text/html; charset=UTF-8, body
    HEAD /   → 200, identical headers, no body
    other    → 405, Allow: GET, HEAD   (router)

Content-Length is the byte length of the encoded document, not the
character count, so it stays right for non-ASCII pages.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT = Path(__file__).resolve().parent.parent / "static" / "index.html"

HTML_CONTENT_TYPE = "text/html; charset=UTF-8"


class IndexHandler:
    """
    Handler for the static document.

    Usage:
        index = IndexHandler.from_file()          # bundled page
        router.add_route("/", index.get, method="GET")
        router.add_route("/", index.head, method="HEAD")
    """

    def __init__(self, document: Union[str, bytes]):
        self.document = document.encode("utf-8") if isinstance(document, str) else document

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "IndexHandler":
        """Load the document from disk (the bundled page by default)."""
        path = Path(path) if path else DEFAULT_DOCUMENT
        document = path.read_bytes()
        logger.debug(f"Loaded index document {path} ({len(document)} bytes)")
        return cls(document)

    def get(self, request: HTTPRequest) -> HTTPResponse:
        return ok(self.document, HTML_CONTENT_TYPE, version=request.response_version)

    def head(self, request: HTTPRequest) -> HTTPResponse:
        """
        Same response as GET; the server leaves the body out for HEAD.
        """
        return self.get(request)
