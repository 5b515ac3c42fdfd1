"""Arbor exception hierarchy.

Shared across the injector, registration engine, resolver, and the HTTP
layer so every module raises and catches the same types.

Registration-time errors subclass ``ConfigurationError`` and abort
startup. Request-time errors travel down the pipeline's error path.
"""

from dataclasses import dataclass


class ArborError(Exception):
    """Base for all arbor-specific errors."""


class ConfigurationError(ArborError):
    """Raised when the server, a controller, or a middleware is misconfigured.

    Always raised during ``Server.start()``, never while serving.
    """


class DuplicateKey(ConfigurationError):  # noqa: N818
    """A service key was registered twice."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key {key!r} has already been registered")


class UnregisteredDependency(ConfigurationError):  # noqa: N818
    """An object asked for a service key that nothing registered."""

    def __init__(self, key: str, consumer: object) -> None:
        self.key = key
        self.consumer = consumer
        name = type(consumer).__name__
        super().__init__(
            f"Service for key {key!r} (required by {name}) is not registered "
            "on the dependency injector"
        )


class ServiceOrderError(ConfigurationError):
    """A service depends on one registered after it.

    Only raised when ``ServerConfig.strict_service_order`` is set;
    otherwise the hazard is logged.
    """

    def __init__(self, hazards: list[tuple[str, str]]) -> None:
        self.hazards = hazards
        pairs = ", ".join(f"{svc} -> {dep}" for svc, dep in hazards)
        super().__init__(
            f"Services depend on services registered after them: {pairs}. "
            "Register dependencies first."
        )


class InvalidControllerType(ConfigurationError):  # noqa: N818
    """A mounted value is neither a simple nor a compound controller."""


class InvalidMiddlewareType(ConfigurationError):  # noqa: N818
    """A middleware class does not expose a callable ``run``."""


class RouteCollision(ConfigurationError):
    """Two routes were installed at the same (method, path).

    Only raised when ``ServerConfig.route_collisions == "error"``.
    """

    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"Route {method} {path} is already installed")


class ResponseAlreadySent(ArborError):  # noqa: N818
    """A handler tried to send a response that was already finished."""


class HandlerStalled(ArborError):  # noqa: N818
    """A layer returned without responding and without calling ``proceed``."""

    def __init__(self, layer: object) -> None:
        self.layer = layer
        name = getattr(layer, "__qualname__", None) or type(layer).__name__
        super().__init__(
            f"{name} returned without sending a response or calling proceed()"
        )


@dataclass(frozen=True, slots=True)
class HTTPError(ArborError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The error path turns
    it into a response unless an application error handler claims it.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class HandlerTimeout(HTTPError):  # noqa: N818
    """503: the pipeline did not finish within ``request_timeout``."""

    def __init__(self, timeout: float) -> None:
        super().__init__(status=503, detail=f"Request timed out after {timeout:g}s")
