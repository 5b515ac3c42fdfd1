"""Value types shared by registration and the router."""

from dataclasses import dataclass

from arbor._internal.types import RequestHandler

ANY_METHOD = "ALL"

# Verb keyword on a MethodDispatcher -> method the route is installed under
HTTP_METHODS: dict[str, str] = {
    verb: verb.upper()
    for verb in ("get", "post", "put", "delete", "patch", "options", "head")
}
HTTP_METHODS["all"] = ANY_METHOD


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One ``/``-separated piece of a route pattern.

    ``"items"`` is literal. ``"{id:int}"`` is a parameter named ``id``
    parsed by the ``int`` converter; a bare ``"{id}"`` uses ``str``.
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class InstalledRoute:
    """A (method, path) pair bound to its middleware chain and leaf handler.

    Registration produces these and the HTTP layer stores them. A later
    route at the same method and path supersedes it.
    """

    method: str
    path: str
    middleware: tuple[RequestHandler, ...]
    handler: RequestHandler
    controller: str | None = None

    @property
    def layers(self) -> tuple[RequestHandler, ...]:
        return (*self.middleware, self.handler)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    route: InstalledRoute
    path_params: dict[str, object]
