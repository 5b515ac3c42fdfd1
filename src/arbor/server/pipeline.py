"""Layer pipeline: runs layers in order, each gated on ``proceed()``.

A layer is ``(request, response, proceed)``. After it returns, the
pipeline looks at what it did:

- called ``proceed(error)``, or raised  -> stop, hand the error back
- finished the response                 -> stop, nothing more to run
- called ``proceed()``                  -> run the next layer
- none of the above                     -> ``HandlerStalled``
"""

import logging
from collections.abc import Iterable

from arbor._internal.invoke import invoke
from arbor._internal.types import RequestHandler
from arbor.errors import HandlerStalled
from arbor.http.request import Request
from arbor.http.response import Response

logger = logging.getLogger("arbor.server")


class Continuation:
    """The ``proceed`` callable handed to one layer."""

    __slots__ = ("called", "error")

    def __init__(self) -> None:
        self.called = False
        self.error: BaseException | None = None

    def __call__(self, error: BaseException | None = None) -> None:
        if self.called:
            logger.debug("proceed() called more than once; ignoring the repeat")
            return
        self.called = True
        self.error = error


async def run_layers(
    layers: Iterable[tuple[str, RequestHandler]],
    request: Request,
    response: Response,
) -> BaseException | None:
    """Run ``(mount_path, layer)`` pairs until one stops the chain.

    Returns the error that stopped the chain, or ``None`` when every
    layer proceeded or one finished the response.
    """
    for mount_path, layer in layers:
        proceed = Continuation()
        request.mount_path = mount_path
        try:
            await invoke(layer, request, response, proceed)
        except Exception as exc:
            return exc
        finally:
            request.mount_path = ""

        if proceed.error is not None:
            return proceed.error
        if response.finished:
            return None
        if not proceed.called:
            return HandlerStalled(layer)
    return None
