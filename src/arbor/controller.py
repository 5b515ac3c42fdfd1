"""Controllers: declarative route trees and controller trees.

A *simple* controller owns a route tree and a middleware list::

    class CartController(SimpleController):
        inject = ("cart_service",)
        middleware = [Authenticate, RequireUser]

        async def get_cart(self, request, response):
            response.json(await self.cart_service.get(request.state.user.cart_id))

        async def update_cart(self, request, response): ...

        async def purchase(self, request, response): ...

        routes = {
            "": MethodDispatcher(get=get_cart, put=update_cart),
            "purchase": MethodDispatcher(post=purchase),
        }

A *compound* controller owns no routes; it mounts other controllers::

    class ApiController(CompoundController):
        controllers = {"cart": CartController, "item": ItemController}

An empty segment means "at the parent's exact path".
"""

import enum
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, TypeAlias

from arbor._internal.types import Handler
from arbor.errors import ConfigurationError, InvalidControllerType
from arbor.routing.route import HTTP_METHODS


class MethodDispatcher:
    """Maps HTTP verbs to handlers for a single path.

    ``MethodDispatcher(get=show, post=create)`` or
    ``MethodDispatcher({"get": show, "post": create})``. The ``all``
    verb matches any method not claimed by a more specific route.
    """

    __slots__ = ("handlers",)

    def __init__(self, handlers: Mapping[str, Handler] | None = None, **by_verb: Handler) -> None:
        merged = {**(handlers or {}), **by_verb}
        for verb, handler in merged.items():
            if verb.lower() not in HTTP_METHODS:
                allowed = ", ".join(HTTP_METHODS)
                msg = f"Unsupported HTTP verb {verb!r} in MethodDispatcher (allowed: {allowed})"
                raise ConfigurationError(msg)
            if not callable(handler):
                msg = f"Handler for {verb!r} is not callable: {handler!r}"
                raise ConfigurationError(msg)
        self.handlers: dict[str, Handler] = {verb.lower(): h for verb, h in merged.items()}

    def __repr__(self) -> str:
        return f"MethodDispatcher({', '.join(self.handlers)})"

    def items(self) -> list[tuple[str, Handler]]:
        """(installed method, handler) pairs in declaration order."""
        return [(HTTP_METHODS[verb], handler) for verb, handler in self.handlers.items()]


RouteTreeNode: TypeAlias = Handler | MethodDispatcher | Mapping[str, Any]
RouteTree: TypeAlias = Mapping[str, RouteTreeNode]
CompoundConfig: TypeAlias = Mapping[str, Any] | Sequence[Any]


class SimpleController:
    """A controller that owns a route tree and a middleware list.

    Subclasses set ``routes`` (class attribute or property) and
    optionally ``middleware`` and ``inject``.
    """

    routes: ClassVar[RouteTree] = {}
    middleware: ClassVar[Sequence[type]] = ()


class CompoundController:
    """A controller that only nests other controllers or configs."""

    controllers: ClassVar[CompoundConfig] = {}


type ControllerType = type[SimpleController] | type[CompoundController] | type


class ControllerKind(enum.Enum):
    """Which install routine a controller instance takes."""

    SIMPLE = "simple"
    COMPOUND = "compound"


def classify(controller: object) -> ControllerKind:
    """Determine a controller's kind from what it exposes.

    A ``routes`` mapping makes it simple; a ``controllers`` mapping or
    list makes it compound. Exposing both, or neither, is an error.
    """
    routes = getattr(controller, "routes", None)
    nested = getattr(controller, "controllers", None)
    has_routes = isinstance(routes, Mapping)
    has_nested = isinstance(nested, (Mapping, list, tuple))
    name = type(controller).__qualname__
    if has_routes and has_nested:
        msg = f"{name} declares both routes and controllers; pick one"
        raise InvalidControllerType(msg)
    if has_routes:
        return ControllerKind.SIMPLE
    if has_nested:
        return ControllerKind.COMPOUND
    msg = f"{name} is not a valid controller type (no routes or controllers)"
    raise InvalidControllerType(msg)
