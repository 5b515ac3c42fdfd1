"""Invoke helpers: call sync or async callables uniformly.

Service initializers, middleware ``run`` methods, and route handlers
can be ``def`` or ``async def``. Any code that calls one of them must
handle both cases. This module keeps the sync/async check in one place.

Usage::

    from arbor._internal.invoke import invoke

    result = await invoke(service.initialize)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def positional_arity(func: Any) -> int | None:
    """Return how many positional arguments *func* accepts.

    ``None`` means "any number" (``*args``). Bound methods report their
    arity without ``self``.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count
