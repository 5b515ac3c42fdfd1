"""Async dispatch adapter: one calling convention for every handler.

Route handlers and async middleware can be ``def`` or ``async def`` and
can take one, two, or three positional arguments. ``wrap()`` turns any
of them into the layer shape the HTTP layer calls::

    async def layer(request, response, proceed) -> None

Whatever the handler does wrong (raising synchronously, or raising
from a coroutine) ends up as ``proceed(error)``. Nothing escapes the
adapter, so the pipeline has a single error channel.
"""

import functools
import inspect
import types
from typing import Any

from arbor._internal.invoke import invoke, positional_arity
from arbor._internal.types import Handler, Proceed, RequestHandler
from arbor.http.request import Request
from arbor.http.response import Response


def bind(handler: Handler, receiver: object | None) -> Handler:
    """Bind *handler* to *receiver* when it is a method of the receiver's class.

    Route trees declared in a class body hold plain functions; those get
    bound to the controller instance. Bound methods, free functions, and
    static methods are returned unchanged.
    """
    if receiver is None or not inspect.isfunction(handler):
        return handler
    owner_attr = inspect.getattr_static(type(receiver), handler.__name__, None)
    if owner_attr is handler:
        return types.MethodType(handler, receiver)
    return handler


def wrap(handler: Handler, receiver: object | None = None) -> RequestHandler:
    """Adapt *handler* into a ``(request, response, proceed)`` coroutine.

    A non-``None`` return value is sent when the handler did not finish
    the response itself: ``str`` and ``bytes`` as the body, ``dict`` and
    ``list`` as JSON.
    """
    bound = bind(handler, receiver)
    arity = positional_arity(bound)

    @functools.wraps(bound)
    async def adapted(request: Request, response: Response, proceed: Proceed) -> None:
        args: tuple[Any, ...] = (request, response, proceed)
        if arity is not None:
            args = args[:arity]
        try:
            result = await invoke(bound, *args)
            if result is not None and not response.finished:
                send_result(response, result)
        except Exception as exc:
            proceed(exc)

    return adapted


def send_result(response: Response, result: Any) -> None:
    """Finish *response* with a handler's return value."""
    if isinstance(result, (str, bytes, bytearray, dict, list)):
        response.send(result)
        return
    msg = (
        f"Handler returned {type(result).__name__}; return str, bytes, dict, "
        "or list, or write to the response directly."
    )
    raise TypeError(msg)
