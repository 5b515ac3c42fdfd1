"""Middleware: classes exposing ``run(request, response, proceed)``.

One instance per middleware type is built at startup, injected with the
services it declares, and shared by every route that lists it.

Built-in middleware:
    static_files -- Serve files from a directory under a mount prefix
"""

from arbor.middleware.base import AsyncMiddleware, Middleware, MiddlewareType
from arbor.middleware.resolver import MiddlewareDescriptor, MiddlewareResolver
from arbor.middleware.static import static_files

__all__ = [
    "AsyncMiddleware",
    "Middleware",
    "MiddlewareDescriptor",
    "MiddlewareResolver",
    "MiddlewareType",
    "static_files",
]
