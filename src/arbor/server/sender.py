"""ASGI response sending: flushes a buffered Response through send()."""

from arbor._internal.asgi import Send
from arbor.http.response import TEXT, Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a finished Response into ASGI send() calls.

    For ``HEAD`` requests the Content-Length of the full body is sent
    but the body itself is not.
    """
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", (response.content_type or TEXT).encode("latin-1")),
    ]
    for name, value in response.headers:
        if name.lower() in ("content-type", "content-length"):
            continue
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1"))
        for cookie in response.cookies
    )

    body = response.body if _body_allowed(response.status_code) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status_code,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )
