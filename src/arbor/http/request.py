"""The request object every layer receives.

Scope metadata is copied in when the request is created. The body is
pulled from ASGI ``receive`` on first use and kept for later layers.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any
from urllib.parse import parse_qsl

from arbor._internal.asgi import Receive, Scope
from arbor.errors import HTTPError
from arbor.http.cookies import parse_cookies
from arbor.http.headers import Headers


def _parse_query(raw: str) -> dict[str, str]:
    return dict(parse_qsl(raw, keep_blank_values=True))


@dataclass(slots=True)
class Request:
    """One HTTP request on its way through middleware to a handler.

    ``path_params`` is filled once the router has matched. While a
    middleware mounted under a prefix runs, ``mount_path`` holds that
    prefix and ``relative_path`` the remainder. ``state`` is where a
    middleware leaves values (the current user, say) for later layers.
    """

    method: str
    path: str
    headers: Headers
    query: Mapping[str, str]
    cookies: Mapping[str, str]
    http_version: str = "1.1"
    client: tuple[str, int] | None = None
    path_params: dict[str, Any] = field(default_factory=dict)
    state: SimpleNamespace = field(default_factory=SimpleNamespace)
    mount_path: str = ""
    max_content_length: int | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _body: bytes | None = field(default=None, repr=False, compare=False)
    _form: dict[str, str] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        *,
        max_content_length: int | None = None,
    ) -> Request:
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            headers=headers,
            query=_parse_query(scope.get("query_string", b"").decode("latin-1")),
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            max_content_length=max_content_length,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def relative_path(self) -> str:
        """``path`` minus ``mount_path``, always starting with ``/``."""
        if not self.mount_path:
            return self.path
        rest = self.path.removeprefix(self.mount_path)
        return "/" + rest.lstrip("/")

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield body chunks as ASGI delivers them. Not cached."""
        if self._receive is None:
            return
        more = True
        while more:
            message = await self._receive()
            if chunk := message.get("body", b""):
                yield chunk
            more = message.get("more_body", False)

    async def body(self) -> bytes:
        """The whole body. Exceeding ``max_content_length`` is a 413."""
        if self._body is None:
            limit = self.max_content_length
            received = bytearray()
            async for chunk in self.stream():
                received += chunk
                if limit is not None and len(received) > limit:
                    raise HTTPError(status=413, detail="Request body too large")
            self._body = bytes(received)
        return self._body

    async def text(self) -> str:
        """The body decoded as UTF-8; undecodable bytes are a 400."""
        raw = await self.body()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPError(status=400, detail="Request body is not valid UTF-8") from exc

    async def json(self) -> Any:
        """Decode the body as JSON; a malformed body is a 400."""
        try:
            return json_module.loads(await self.body())
        except ValueError as exc:
            raise HTTPError(status=400, detail=f"Malformed JSON body: {exc}") from exc

    async def form(self) -> dict[str, str]:
        """Fields of an ``application/x-www-form-urlencoded`` body."""
        if self._form is None:
            self._form = _parse_query(await self.text())
        return self._form
