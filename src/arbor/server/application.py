"""HTTP application: the layer routes and middleware are installed on.

Mutable while the server starts (``use``, ``add_route``). Frozen by
``freeze()`` into an immutable route table before serving; after that,
every installer raises.
"""

import logging
from collections.abc import Sequence

from arbor._internal.asgi import Receive, Scope, Send
from arbor._internal.types import ErrorHandler, RequestHandler
from arbor.config import ServerConfig
from arbor.errors import RouteCollision
from arbor.routing.route import InstalledRoute
from arbor.routing.router import Router
from arbor.server.handler import handle_request

logger = logging.getLogger("arbor.server")


class HTTPApplication:
    """Prefix middleware, a route table, and error handlers behind one ASGI callable."""

    __slots__ = ("_error_handlers", "_frozen", "_mounted", "_router", "config")

    def __init__(self, config: ServerConfig | None = None) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self._router = Router()
        self._mounted: list[tuple[str, RequestHandler]] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen = False

    # -- Installation --

    def use(self, prefix: str, handler: RequestHandler) -> None:
        """Run *handler* for every request under *prefix*, in registration order."""
        self._check_not_frozen()
        normalized = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self._mounted.append((normalized, handler))

    def add_route(self, route: InstalledRoute) -> None:
        """Install *route*; a later route at the same (method, path) wins.

        With ``route_collisions="error"`` a repeat raises ``RouteCollision``
        instead.
        """
        self._check_not_frozen()
        previous = self._router.add(route)
        if previous is None:
            logger.debug("Installed %s %s", route.method, route.path)
            return
        if self.config.route_collisions == "error":
            raise RouteCollision(route.method, route.path)
        logger.debug(
            "Route %s %s from %s replaces the one from %s",
            route.method,
            route.path,
            route.controller,
            previous.controller,
        )

    def add_error_handler(self, key: int | type, handler: ErrorHandler) -> None:
        self._check_not_frozen()
        self._error_handlers[key] = handler

    def freeze(self) -> None:
        """Compile the route table. No more installation after this."""
        self._router.compile()
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> list[InstalledRoute]:
        return self._router.routes

    @property
    def mounted(self) -> Sequence[tuple[str, RequestHandler]]:
        return tuple(self._mounted)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self._frozen:
            msg = "HTTPApplication must be frozen before it serves requests"
            raise RuntimeError(msg)
        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            mounted=self._mounted,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
            request_timeout=self.config.request_timeout,
            max_content_length=self.config.max_content_length,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the route table after the server has started. "
                "Register routes, middleware, and error handlers before start()."
            )
            raise RuntimeError(msg)
