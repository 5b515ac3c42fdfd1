"""Controller registration: flattens controller trees into installed routes.

Registration is recursive descent over two shapes:

- a compound controller's config (mapping of segment to controller or
  nested config, or a list mounted at one path), and
- a simple controller's route tree (mapping of segment to handler,
  ``MethodDispatcher``, or nested tree).

Each controller instance is classified exactly once, when it is built;
the resulting ``ControllerKind`` picks the install routine. Everything
ends up as ``InstalledRoute`` records on the HTTP layer.
"""

import logging
from collections.abc import Mapping
from typing import Any

from arbor._internal.types import Handler, RequestHandler
from arbor.controller import ControllerKind, MethodDispatcher, classify
from arbor.dispatch import wrap
from arbor.errors import ConfigurationError, InvalidControllerType
from arbor.injector import DependencyInjector
from arbor.middleware.resolver import MiddlewareResolver
from arbor.routing.route import InstalledRoute
from arbor.server.application import HTTPApplication

logger = logging.getLogger("arbor.registration")


def join_path(base: str, segment: str) -> str:
    """Append *segment* to *base*; an empty segment leaves *base* unchanged.

    Paths are kept without a trailing slash, so the root is ``""``::

        join_path("", "api")       -> "/api"
        join_path("/api", "cart")  -> "/api/cart"
        join_path("/api", "")      -> "/api"
    """
    segment = segment.strip("/")
    if not segment:
        return base
    return f"{base}/{segment}"


def route_path(base: str) -> str:
    """The installed form of a joined path (root becomes ``/``)."""
    return base or "/"


class ControllerRegistrar:
    """Installs controllers on an ``HTTPApplication``.

    Keeps every controller instance alive, since installed handlers are
    bound to them, and records every installed route in order.
    """

    __slots__ = ("_app", "_injector", "_resolver", "controllers", "installed")

    def __init__(
        self,
        app: HTTPApplication,
        injector: DependencyInjector,
        resolver: MiddlewareResolver,
    ) -> None:
        self._app = app
        self._injector = injector
        self._resolver = resolver
        self.controllers: list[object] = []
        self.installed: list[InstalledRoute] = []

    def register(self, path: str, controller_type: Any) -> None:
        """Instantiate *controller_type* and install it under *path*."""
        self._mount(join_path("", path), controller_type)

    # -- Controllers --

    def _mount(self, base: str, controller_type: Any) -> None:
        if not isinstance(controller_type, type):
            msg = f"Expected a controller class, got {controller_type!r}"
            raise InvalidControllerType(msg)
        controller = controller_type()
        kind = classify(controller)
        logger.debug(
            "Mounting %s controller %s at %s",
            kind.value,
            controller_type.__qualname__,
            route_path(base),
        )
        self._install(kind, controller, base)

    def _install(self, kind: ControllerKind, controller: Any, base: str) -> None:
        self.controllers.append(controller)
        if kind is ControllerKind.SIMPLE:
            self._install_simple(controller, base)
        else:
            self._install_compound(controller.controllers, base)

    def _install_simple(self, controller: Any, base: str) -> None:
        self._injector.inject(controller)
        chain = tuple(
            self._resolver.resolve(middleware_type)
            for middleware_type in getattr(controller, "middleware", None) or ()
        )
        self._walk_routes(controller.routes, base, controller, chain)

    def _install_compound(self, config: Any, base: str) -> None:
        if isinstance(config, Mapping):
            for segment, nested in config.items():
                self._mount_nested(join_path(base, _segment(segment)), nested)
        elif isinstance(config, (list, tuple)):
            # Every element shares the parent's path
            for nested in config:
                self._mount_nested(base, nested)
        else:
            msg = f"Compound controller config must be a mapping or a list, got {config!r}"
            raise InvalidControllerType(msg)

    def _mount_nested(self, path: str, nested: Any) -> None:
        if isinstance(nested, type):
            self._mount(path, nested)
        elif isinstance(nested, (Mapping, list, tuple)):
            self._install_compound(nested, path)
        else:
            msg = (
                f"Cannot mount {nested!r} at {route_path(path)}: expected a "
                "controller class or a nested controller config"
            )
            raise InvalidControllerType(msg)

    # -- Route trees --

    def _walk_routes(
        self,
        tree: Mapping[str, Any],
        base: str,
        controller: Any,
        chain: tuple[RequestHandler, ...],
    ) -> None:
        for segment, node in tree.items():
            path = join_path(base, _segment(segment))
            if isinstance(node, MethodDispatcher):
                for method, handler in node.items():
                    self._install_route(method, path, handler, controller, chain)
            elif isinstance(node, Mapping):
                self._walk_routes(node, path, controller, chain)
            elif isinstance(node, type):
                msg = (
                    f"{node.__qualname__} is mounted inside the route tree of "
                    f"{type(controller).__qualname__}; mount controllers from a "
                    "CompoundController instead"
                )
                raise ConfigurationError(msg)
            elif callable(node):
                self._install_route("GET", path, node, controller, chain)
            else:
                msg = (
                    f"Invalid route config at {route_path(path)} in "
                    f"{type(controller).__qualname__}: {node!r}"
                )
                raise ConfigurationError(msg)

    def _install_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        controller: Any,
        chain: tuple[RequestHandler, ...],
    ) -> None:
        route = InstalledRoute(
            method=method,
            path=route_path(path),
            middleware=chain,
            handler=wrap(handler, controller),
            controller=type(controller).__qualname__,
        )
        self._app.add_route(route)
        self.installed.append(route)


def _segment(segment: object) -> str:
    if not isinstance(segment, str):
        msg = f"Path segments must be strings, got {segment!r}"
        raise ConfigurationError(msg)
    return segment
