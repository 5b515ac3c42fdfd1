"""ASGI handler: translates ASGI scope/messages to arbor types.

The only component that touches raw HTTP ASGI messages. Builds the
Request, runs prefix middleware and the matched route through the
layer pipeline, routes any error down the error path, and flushes the
Response through ASGI send().
"""

import logging
from collections.abc import Mapping, Sequence
from contextlib import nullcontext

import anyio

from arbor._internal.asgi import Receive, Scope, Send
from arbor._internal.types import ErrorHandler, RequestHandler
from arbor.errors import HandlerTimeout, HTTPError, NotFound
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.routing.router import Router
from arbor.server.errors import handle_error
from arbor.server.pipeline import run_layers
from arbor.server.sender import send_response

logger = logging.getLogger("arbor.server")


def prefix_matches(prefix: str, path: str) -> bool:
    """Whether a middleware mounted at *prefix* sees *path*.

    ``/public`` matches ``/public`` and ``/public/app.js`` but not
    ``/publication``. The root prefix ``""`` matches everything.
    """
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


async def dispatch(
    request: Request,
    response: Response,
    *,
    router: Router,
    mounted: Sequence[tuple[str, RequestHandler]],
) -> BaseException | None:
    """Run one request through prefix middleware and the matched route."""
    layers = [(prefix, layer) for prefix, layer in mounted if prefix_matches(prefix, request.path)]
    error = await run_layers(layers, request, response)
    if error is not None or response.finished:
        return error

    try:
        match = router.match(request.method, request.path)
    except HTTPError as exc:
        return exc

    request.path_params = match.path_params
    error = await run_layers([("", layer) for layer in match.route.layers], request, response)
    if error is None and not response.finished:
        # The leaf itself called proceed(); nothing is left to answer
        return NotFound(f"No handler answered {request.method} {request.path!r}")
    return error


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    mounted: Sequence[tuple[str, RequestHandler]],
    error_handlers: Mapping[int | type, ErrorHandler],
    debug: bool = False,
    request_timeout: float | None = None,
    max_content_length: int | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, max_content_length=max_content_length)
    response = Response()

    deadline = anyio.fail_after(request_timeout) if request_timeout else nullcontext()
    try:
        with deadline:
            error = await dispatch(request, response, router=router, mounted=mounted)
    except TimeoutError:
        logger.warning("%s %s timed out after %ss", request.method, request.path, request_timeout)
        error = HandlerTimeout(request_timeout or 0)

    if error is not None:
        await handle_error(error, request, response, error_handlers, debug=debug)

    await send_response(response, send, head=request.method == "HEAD")
