"""HTTP response writer.

Handlers and middleware share one ``Response`` per request and write to
it in place. Nothing reaches the client until the pipeline finishes;
the server then flushes the buffered status, headers, and body.

Every setter returns the response so calls chain::

    response.status(201).json({"id": order_id})
"""

import json as json_module
from typing import Any

from arbor.errors import ResponseAlreadySent
from arbor.http.cookies import SetCookie

TEXT = "text/plain; charset=utf-8"
HTML = "text/html; charset=utf-8"
JSON = "application/json"


class Response:
    """A mutable, buffered HTTP response."""

    __slots__ = ("body", "content_type", "cookies", "finished", "headers", "status_code")

    def __init__(self) -> None:
        self.status_code: int = 200
        self.content_type: str | None = None
        self.headers: list[tuple[str, str]] = []
        self.cookies: list[SetCookie] = []
        self.body: bytes = b""
        self.finished: bool = False

    def __repr__(self) -> str:
        state = "finished" if self.finished else "pending"
        return f"<Response {self.status_code} {state}>"

    # -- Metadata --

    def status(self, code: int) -> "Response":
        """Set the status code."""
        self.status_code = code
        return self

    def set_header(self, name: str, value: str) -> "Response":
        """Replace any existing header called *name*."""
        lowered = name.lower()
        self.headers = [(k, v) for k, v in self.headers if k.lower() != lowered]
        self.headers.append((name, value))
        return self

    def add_header(self, name: str, value: str) -> "Response":
        """Append a header, keeping existing values for the same name."""
        self.headers.append((name, value))
        return self

    def get_header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def set_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> "Response":
        self.cookies.append(
            SetCookie(
                name=name,
                value=value,
                max_age=max_age,
                path=path,
                domain=domain,
                secure=secure,
                httponly=httponly,
                samesite=samesite,
            )
        )
        return self

    def clear_cookie(self, name: str, path: str = "/") -> "Response":
        """Expire a cookie on the client (Max-Age=0)."""
        self.cookies.append(SetCookie(name=name, value="", max_age=0, path=path))
        return self

    # -- Body --

    def send(self, body: str | bytes | dict[str, Any] | list[Any] | None = None) -> None:
        """Finish the response with *body*.

        ``dict`` and ``list`` bodies are serialized as JSON. ``str`` bodies
        default to ``text/html`` unless a content type was already set.
        """
        if isinstance(body, (dict, list)):
            self.json(body)
            return
        self._check_not_finished()
        if body is None:
            self.body = b""
        elif isinstance(body, str):
            self.body = body.encode("utf-8")
            if self.content_type is None:
                self.content_type = HTML
        else:
            self.body = bytes(body)
            if self.content_type is None:
                self.content_type = "application/octet-stream"
        self.finished = True

    def text(self, body: str) -> None:
        self.type(TEXT).send(body)

    def json(self, data: Any) -> None:
        """Finish the response with *data* serialized as JSON."""
        self._check_not_finished()
        self.content_type = JSON
        self.body = json_module.dumps(data, default=str).encode("utf-8")
        self.finished = True

    def type(self, content_type: str) -> "Response":
        """Set the content type."""
        self.content_type = content_type
        return self

    def redirect(self, location: str, status: int = 302) -> None:
        self.status(status).set_header("Location", location).end()

    def end(self) -> None:
        """Finish the response with whatever body has been set."""
        self._check_not_finished()
        self.finished = True

    def _check_not_finished(self) -> None:
        if self.finished:
            msg = "Response has already been sent"
            raise ResponseAlreadySent(msg)
