"""
Unit tests for HTTP response serialisation.
"""

from chatrelay.http.response import (
    HTTPResponse,
    error_response,
    method_not_allowed,
    no_content,
    not_found,
    ok,
)
from chatrelay.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        response = HTTPResponse(status=HTTPStatus.NO_CONTENT, version="HTTP/1.0")
        assert response.status_line == "HTTP/1.0 204 No Content"

    def test_to_bytes_server_header_first(self):
        """Server comes right after the status line."""
        response = ok("hi", "text/plain")

        raw = response.to_bytes(server_name="chatrelay")

        assert raw == (
            b"HTTP/1.1 200 OK\r\n"
            b"Server: chatrelay\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b"hi"
        )

    def test_explicit_server_header_not_duplicated(self):
        response = HTTPResponse(headers={"Server": "other"})

        raw = response.to_bytes(server_name="chatrelay")

        assert raw.count(b"Server:") == 1
        assert b"Server: other\r\n" in raw

    def test_head_omits_body_keeps_length(self):
        response = ok(b"<html></html>", "text/html")

        raw = response.to_bytes("chatrelay", include_body=False)

        assert raw.endswith(b"\r\n\r\n")
        assert b"Content-Length: 13\r\n" in raw
        assert b"<html>" not in raw

    def test_no_automatic_content_length(self):
        """Responses carry only the headers they were given."""
        raw = HTTPResponse(status=HTTPStatus.NO_CONTENT).to_bytes("chatrelay")
        assert raw == b"HTTP/1.1 204 No Content\r\nServer: chatrelay\r\n\r\n"

    def test_set_body_encodes_utf8(self):
        response = HTTPResponse().set_body("café")
        assert response.body == "café".encode("utf-8")

    def test_set_header_chaining(self):
        response = HTTPResponse().set_header("A", "1").set_header("B", "2")
        assert list(response.headers) == ["A", "B"]


class TestHelpers:
    """Tests for the convenience constructors."""

    def test_ok_content_length_is_byte_length(self):
        response = ok("héllo", "text/plain; charset=UTF-8")

        assert response.headers["Content-Length"] == str(len("héllo".encode("utf-8")))
        assert response.headers["Content-Length"] == "6"

    def test_no_content(self):
        response = no_content("HTTP/1.0")

        assert response.status == HTTPStatus.NO_CONTENT
        assert response.version == "HTTP/1.0"
        assert response.body == b""

    def test_not_found(self):
        assert not_found().status == HTTPStatus.NOT_FOUND

    def test_method_not_allowed(self):
        response = method_not_allowed(["GET", "HEAD", "POST"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers == {"Allow": "GET, HEAD, POST"}

    def test_error_response_defaults_to_http_1_0(self):
        raw = error_response(HTTPStatus.BAD_REQUEST).to_bytes("chatrelay")
        assert raw == b"HTTP/1.0 400 Bad Request\r\nServer: chatrelay\r\n\r\n"

    def test_error_response_headers_copied(self):
        headers = {"Upgrade": "HTTP/1.1, HTTP/1.0"}
        response = error_response(HTTPStatus.UPGRADE_REQUIRED, headers=headers)

        response.set_header("X", "y")
        assert headers == {"Upgrade": "HTTP/1.1, HTTP/1.0"}


class TestHTTPStatus:
    """Tests for the status code enum."""

    def test_phrases(self):
        assert HTTPStatus.PAYLOAD_TOO_LARGE.phrase == "Payload Too Large"
        assert HTTPStatus.UPGRADE_REQUIRED.phrase == "Upgrade Required"
        assert HTTPStatus.HTTP_VERSION_NOT_SUPPORTED.phrase == "HTTP Version Not Supported"

    def test_int_behaviour(self):
        assert HTTPStatus.NOT_FOUND == 404
        assert str(HTTPStatus.NOT_FOUND) == "404"
