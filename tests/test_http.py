"""Tests for arbor.http: the request and the mutable response writer."""

import pytest

from arbor.errors import HTTPError, ResponseAlreadySent
from arbor.http.headers import Headers
from arbor.http.request import Request
from arbor.http.response import HTML, JSON, TEXT, Response


def _make_request(
    *,
    body: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    query_string: bytes = b"",
    max_content_length: int | None = None,
) -> Request:
    sent = False

    async def receive() -> dict[str, object]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "post",
        "path": "/orders",
        "query_string": query_string,
        "headers": headers or [],
        "client": ("10.0.0.1", 1234),
    }
    return Request.from_asgi(scope, receive, max_content_length=max_content_length)


class TestRequest:
    def test_from_asgi(self) -> None:
        request = _make_request(
            headers=[(b"Content-Type", b"application/json"), (b"cookie", b"sid=abc")],
            query_string=b"page=2&empty=",
        )
        assert request.method == "POST"
        assert request.content_type == "application/json"
        assert request.headers["content-type"] == "application/json"
        assert request.cookies == {"sid": "abc"}
        assert request.query == {"page": "2", "empty": ""}
        assert request.client == ("10.0.0.1", 1234)

    def test_headers_get_list(self) -> None:
        headers = Headers(((b"accept", b"text/html"), (b"Accept", b"application/json")))
        assert headers.get_list("ACCEPT") == ["text/html", "application/json"]
        assert len(headers) == 1

    async def test_body_is_cached(self) -> None:
        request = _make_request(body=b"hello")
        assert await request.body() == b"hello"
        assert await request.text() == "hello"

    async def test_malformed_json_is_400(self) -> None:
        request = _make_request(body=b"{nope")
        with pytest.raises(HTTPError) as exc_info:
            await request.json()
        assert exc_info.value.status == 400

    async def test_body_too_large_is_413(self) -> None:
        request = _make_request(body=b"x" * 20, max_content_length=10)
        with pytest.raises(HTTPError) as exc_info:
            await request.body()
        assert exc_info.value.status == 413

    async def test_form_is_utf8(self) -> None:
        request = _make_request(body="name=Cr%C3%A8me&qty=2".encode())
        assert await request.form() == {"name": "Crème", "qty": "2"}

    async def test_invalid_utf8_text_is_400(self) -> None:
        request = _make_request(body=b"\xff\xfe")
        with pytest.raises(HTTPError) as exc_info:
            await request.text()
        assert exc_info.value.status == 400

    async def test_invalid_utf8_form_is_400(self) -> None:
        request = _make_request(body=b"user=\xff\xfe")
        with pytest.raises(HTTPError) as exc_info:
            await request.form()
        assert exc_info.value.status == 400

    def test_state_is_per_request(self) -> None:
        first, second = _make_request(), _make_request()
        first.state.user = "ada"
        assert not hasattr(second.state, "user")


class TestResponse:
    def test_defaults(self) -> None:
        response = Response()
        assert response.status_code == 200
        assert response.finished is False

    def test_send_str_defaults_to_html(self) -> None:
        response = Response()
        response.send("<p>hi</p>")
        assert response.content_type == HTML
        assert response.body == b"<p>hi</p>"
        assert response.finished is True

    def test_send_keeps_explicit_type(self) -> None:
        response = Response()
        response.type(TEXT).send("plain")
        assert response.content_type == TEXT

    def test_send_dict_is_json(self) -> None:
        response = Response()
        response.status(201).send({"id": 1})
        assert response.status_code == 201
        assert response.content_type == JSON
        assert response.body == b'{"id": 1}'

    def test_send_twice_raises(self) -> None:
        response = Response()
        response.send("first")
        with pytest.raises(ResponseAlreadySent):
            response.send("second")
        with pytest.raises(ResponseAlreadySent):
            response.json({})

    def test_set_header_replaces(self) -> None:
        response = Response()
        response.set_header("X-Trace", "a").set_header("x-trace", "b")
        assert response.headers == [("x-trace", "b")]
        assert response.get_header("X-TRACE") == "b"

    def test_add_header_appends(self) -> None:
        response = Response()
        response.add_header("Vary", "Accept").add_header("Vary", "Cookie")
        assert response.headers == [("Vary", "Accept"), ("Vary", "Cookie")]

    def test_redirect(self) -> None:
        response = Response()
        response.redirect("/login")
        assert response.status_code == 302
        assert response.get_header("location") == "/login"
        assert response.finished is True

    def test_cookies(self) -> None:
        response = Response()
        response.set_cookie("sid", "abc", max_age=60).clear_cookie("old")
        first, second = (cookie.to_header_value() for cookie in response.cookies)
        assert first == "sid=abc; Max-Age=60; Path=/; HttpOnly; SameSite=lax"
        assert second.startswith("old=; Max-Age=0")
