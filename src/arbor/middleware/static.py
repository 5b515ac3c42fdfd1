"""Static file serving middleware.

``static_files()`` builds a middleware class bound to one directory.
Mount it under a prefix and it serves files relative to that prefix::

    class Storefront(Server):
        middleware = {"public": static_files("./public")}

Requests that do not resolve to a file fall through with ``proceed()``.
"""

import mimetypes
from pathlib import Path

import anyio.to_thread

from arbor._internal.types import Proceed
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.middleware.base import AsyncMiddleware


def static_files(
    directory: str | Path,
    *,
    index: str = "index.html",
    cache_control: str = "public, max-age=3600",
) -> type[AsyncMiddleware]:
    """Create a middleware class serving files from *directory*.

    Each call returns a distinct class. Its name embeds the directory so
    that name-based middleware identity keeps two directories apart.

    Security: resolves symlinks and verifies the final path is inside
    *directory* to prevent path traversal.
    """
    root = Path(directory).resolve()

    class StaticFiles(AsyncMiddleware):
        async def run(self, request: Request, response: Response, proceed: Proceed) -> None:
            if request.method not in ("GET", "HEAD"):
                proceed()
                return

            relative = request.relative_path.lstrip("/")
            file_path = (root / relative).resolve() if relative else root
            if not file_path.is_relative_to(root):
                response.status(403).text("Forbidden")
                return

            if file_path.is_dir():
                file_path = file_path / index
            if not file_path.is_file():
                proceed()
                return

            body = await anyio.to_thread.run_sync(file_path.read_bytes)
            content_type, _ = mimetypes.guess_type(str(file_path))
            response.type(content_type or "application/octet-stream")
            response.set_header("Cache-Control", cache_control)
            response.send(body)

    StaticFiles.__name__ = StaticFiles.__qualname__ = f"StaticFiles[{root}]"
    return StaticFiles
