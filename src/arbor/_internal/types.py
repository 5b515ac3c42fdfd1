"""Shared type aliases used across arbor modules."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

# The continuation handed to every layer: proceed() or proceed(error)
Proceed: TypeAlias = Callable[..., None]

# User-defined route handler or middleware ``run``: sync or async,
# accepting (request), (request, response) or (request, response, proceed)
Handler: TypeAlias = Callable[..., Any]

# A normalized layer, as installed on the HTTP layer
RequestHandler: TypeAlias = Callable[[Any, Any, Proceed], Awaitable[None] | None]

# Error handler: receives (request, response, error) and writes a response
ErrorHandler: TypeAlias = Callable[..., Any]
