"""Error path for arbor requests.

Every error a layer raises or passes to ``proceed(error)`` lands here.
Application error handlers get the first chance; otherwise ``HTTPError``
becomes its own status and anything else becomes a logged 500.
"""

import logging
import traceback
from collections.abc import Mapping

from arbor._internal.invoke import invoke, positional_arity
from arbor._internal.types import ErrorHandler
from arbor.dispatch import send_result
from arbor.errors import HTTPError
from arbor.http.request import Request
from arbor.http.response import Response

logger = logging.getLogger("arbor.server")


def find_error_handler(
    exc: BaseException,
    error_handlers: Mapping[int | type, ErrorHandler],
) -> ErrorHandler | None:
    """Look up a handler by exception type (most specific first), then status."""
    for cls in type(exc).__mro__:
        handler = error_handlers.get(cls)
        if handler is not None:
            return handler
    status = exc.status if isinstance(exc, HTTPError) else 500
    return error_handlers.get(status)


async def call_error_handler(
    handler: ErrorHandler,
    request: Request,
    response: Response,
    exc: BaseException,
) -> None:
    """Invoke a user-registered error handler.

    Error handlers may accept ``(request, response, error)``, or a prefix
    of it. A returned value is sent when the handler didn't finish the
    response itself.
    """
    arity = positional_arity(handler)
    args = (request, response, exc)
    if arity is not None:
        args = args[:arity]
    result = await invoke(handler, *args)
    if result is not None and not response.finished:
        send_result(response, result)


async def handle_error(
    exc: BaseException,
    request: Request,
    response: Response,
    error_handlers: Mapping[int | type, ErrorHandler],
    *,
    debug: bool,
) -> None:
    """Turn *exc* into a finished response."""
    if response.finished:
        # A layer sent a response and then failed; the client already
        # has an answer, so only the log sees this.
        logger.error(
            "Error after response was sent for %s %s",
            request.method,
            request.path,
            exc_info=exc,
        )
        return

    handler = find_error_handler(exc, error_handlers)
    if handler is not None:
        try:
            await call_error_handler(handler, request, response, exc)
        except Exception:
            logger.exception("Error handler failed for %s %s", request.method, request.path)
            _reset(response)
        if response.finished:
            return

    if isinstance(exc, HTTPError):
        render_http_error(exc, request, response)
    else:
        render_internal_error(exc, request, response, debug=debug)


def render_http_error(exc: HTTPError, request: Request, response: Response) -> None:
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    response.status(exc.status)
    for name, value in exc.headers:
        response.set_header(name, value)
    response.text(exc.detail or f"Error {exc.status}")


def render_internal_error(
    exc: BaseException,
    request: Request,
    response: Response,
    *,
    debug: bool,
) -> None:
    logger.error("500 %s %s", request.method, request.path, exc_info=exc)
    response.status(500)
    if debug:
        body = "".join(traceback.format_exception(exc))
        response.text(f"Internal Server Error\n\n{body}")
    else:
        response.text("Internal Server Error")


def _reset(response: Response) -> None:
    response.status_code = 200
    response.content_type = None
    response.body = b""
    response.finished = False
