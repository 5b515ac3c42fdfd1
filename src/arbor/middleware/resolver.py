"""Middleware resolver: one shared handler per middleware type.

The first time a middleware type is referenced, the resolver builds an
instance, injects its services, and turns ``run`` into a layer. Every
later reference to the same identity gets the cached layer back, with
no re-construction and no re-injection.

Identity is a policy (``ServerConfig.middleware_identity``):

- ``"type"``: the class object. Two unrelated classes never share.
- ``"name"``: the class ``__name__``. Identically named classes
  collapse into one entry, whichever is resolved first.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Literal

from arbor._internal.types import RequestHandler
from arbor.dispatch import wrap
from arbor.errors import InvalidMiddlewareType
from arbor.injector import DependencyInjector

logger = logging.getLogger("arbor.middleware")


@dataclass(frozen=True, slots=True)
class MiddlewareDescriptor:
    """A resolved middleware: its identity, instance, and installed layer."""

    identity: object
    instance: Any
    handler: RequestHandler


class MiddlewareResolver:
    """Builds, injects, and caches middleware layers."""

    __slots__ = ("_cache", "_identity", "_injector")

    def __init__(
        self,
        injector: DependencyInjector,
        *,
        identity: Literal["type", "name"] = "type",
    ) -> None:
        self._injector = injector
        self._identity = identity
        self._cache: dict[object, MiddlewareDescriptor] = {}

    def identity_of(self, middleware_type: type) -> object:
        if self._identity == "name":
            return middleware_type.__name__
        return middleware_type

    @property
    def descriptors(self) -> tuple[MiddlewareDescriptor, ...]:
        return tuple(self._cache.values())

    def resolve(self, middleware_type: type) -> RequestHandler:
        """Return the shared layer for *middleware_type*, building it on first use."""
        if not isinstance(middleware_type, type):
            msg = f"Middleware must be a class, got {middleware_type!r}"
            raise InvalidMiddlewareType(msg)

        identity = self.identity_of(middleware_type)
        cached = self._cache.get(identity)
        if cached is not None:
            if cached.instance.__class__ is not middleware_type:
                logger.debug(
                    "Middleware %s shares a cache entry with %s (identity %r)",
                    middleware_type.__qualname__,
                    type(cached.instance).__qualname__,
                    identity,
                )
            return cached.handler

        instance = middleware_type()
        run = getattr(instance, "run", None)
        if not callable(run):
            msg = f"{middleware_type.__qualname__} does not define a run() method"
            raise InvalidMiddlewareType(msg)

        self._injector.inject(instance)

        handler: RequestHandler = wrap(run) if inspect.iscoroutinefunction(run) else run

        self._cache[identity] = MiddlewareDescriptor(
            identity=identity, instance=instance, handler=handler
        )
        logger.debug("Resolved middleware %s", middleware_type.__qualname__)
        return handler
