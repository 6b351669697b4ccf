"""
Unit tests for URL router.
"""

import pytest

from chatrelay.http.router import Router
from chatrelay.http.request import HTTPRequest, RequestHead
from chatrelay.http.response import HTTPResponse, no_content, ok
from chatrelay.http.status_codes import HTTPStatus


def make_request(method: str, path: str, version: str = "HTTP/1.1") -> HTTPRequest:
    """Helper to create a request for testing."""
    head = RequestHead(method=method, target=path, version=version, content_length=None, body_offset=0)
    return HTTPRequest(head=head, response_version=version, connection=None)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ok(request.path, "text/plain", version=request.response_version)


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        """Test adding routes."""
        router = Router()
        route = router.add_route("/chat", dummy_handler, method="POST")

        assert route.path == "/chat"
        assert route.method == "POST"
        assert route.name == "dummy_handler"
        assert router.routes == [route]

    def test_duplicate_route_rejected(self):
        router = Router()
        router.add_route("/chat", dummy_handler, method="GET")

        with pytest.raises(ValueError):
            router.add_route("/chat", dummy_handler, method="GET")

    def test_match_exact_path(self):
        """Paths are matched exactly, with no normalisation."""
        router = Router()
        router.add_route("/chat", dummy_handler, method="GET")

        assert router.match("GET", "/chat") is not None
        assert router.match("GET", "/chat/") is None
        assert router.match("GET", "/chat?x=1") is None
        assert router.match("GET", "/CHAT") is None

    def test_match_with_method(self):
        """Test method-based routing."""
        router = Router()
        router.add_route("/chat", dummy_handler, method="GET")
        router.add_route("/chat", dummy_handler, method="POST")

        assert router.match("GET", "/chat").route.method == "GET"
        assert router.match("POST", "/chat").route.method == "POST"
        assert router.match("PUT", "/chat") is None

    def test_allowed_methods_in_registration_order(self):
        router = Router()
        router.add_route("/chat", dummy_handler, method="GET")
        router.add_route("/chat", dummy_handler, method="HEAD")
        router.add_route("/chat", dummy_handler, method="POST")

        assert router.get_allowed_methods("/chat") == ["GET", "HEAD", "POST"]
        assert router.get_allowed_methods("/nope") == []


class TestRouterHandle:
    """Tests for Router.handle() dispatch."""

    @pytest.fixture
    def router(self) -> Router:
        router = Router()
        router.add_route("/", dummy_handler, method="GET")
        router.add_route("/", dummy_handler, method="HEAD")
        return router

    def test_dispatch_to_handler(self, router: Router):
        response = router.handle(make_request("GET", "/"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"/"

    def test_unknown_path_is_404_for_any_method(self, router: Router):
        for method in ("GET", "POST", "BREW"):
            response = router.handle(make_request(method, "/missing"))
            assert response.status == HTTPStatus.NOT_FOUND

    def test_wrong_method_is_405_with_allow(self, router: Router):
        response = router.handle(make_request("DELETE", "/"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"

    def test_error_uses_negotiated_version(self, router: Router):
        response = router.handle(make_request("POST", "/", version="HTTP/1.0"))

        assert response.version == "HTTP/1.0"
        assert response.to_bytes().startswith(b"HTTP/1.0 405 Method Not Allowed\r\n")

    def test_handler_returning_none(self):
        """Streaming handlers return None; the router passes that through."""
        router = Router()
        router.add_route("/chat", lambda request: None, method="GET")

        assert router.handle(make_request("GET", "/chat")) is None


class TestDecorators:
    """Tests for decorator-based route registration."""

    def test_decorators(self):
        router = Router()

        @router.get("/")
        def index(request):
            return ok("hi")

        @router.head("/")
        def index_head(request):
            return ok("hi")

        @router.post("/chat")
        def post(request):
            return no_content()

        assert [(r.method, r.path) for r in router.routes] == [
            ("GET", "/"),
            ("HEAD", "/"),
            ("POST", "/chat"),
        ]
        assert router.handle(make_request("POST", "/chat")).status == HTTPStatus.NO_CONTENT

    def test_decorator_returns_original_function(self):
        router = Router()

        def handler(request):
            return ok()

        assert router.route("/", "GET")(handler) is handler

    def test_print_routes(self, capsys):
        router = Router()
        router.add_route("/chat", dummy_handler, method="POST", name="chat_post")

        router.print_routes()

        out = capsys.readouterr().out
        assert "POST" in out
        assert "chat_post" in out
