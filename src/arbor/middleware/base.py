"""Middleware base classes.

A middleware is any class whose instances expose ``run``::

    class RequestId(Middleware):
        def run(self, request, response, proceed):
            request.state.request_id = uuid4().hex
            proceed()

No base class is required; the resolver checks the shape, not the
lineage. ``run`` may be ``async def``; async middleware is wrapped by the
dispatch adapter so a raised exception becomes ``proceed(error)``.

One instance is built per middleware type and shared by every route
that lists it. Per-request data belongs on ``request.state``, not on
``self``.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from arbor._internal.types import Proceed
from arbor.http.request import Request
from arbor.http.response import Response


class Middleware(ABC):
    """Synchronous middleware."""

    inject: ClassVar[Sequence[str]] = ()

    @abstractmethod
    def run(self, request: Request, response: Response, proceed: Proceed) -> None: ...


class AsyncMiddleware(ABC):
    """Asynchronous middleware."""

    inject: ClassVar[Sequence[str]] = ()

    @abstractmethod
    async def run(self, request: Request, response: Response, proceed: Proceed) -> None: ...


type MiddlewareType = type[Middleware] | type[AsyncMiddleware] | type
