"""Arbor: controllers, middleware, and services behind one ASGI server.

Services are singletons wired together by key. Middleware classes are
constructed once and shared. Controllers declare nested route trees
that are flattened into a frozen route table at start-up.

Basic usage::

    from arbor import MethodDispatcher, Server, SimpleController

    class Hello(SimpleController):
        routes = {
            "": lambda request, response: response.send("Hello, World!"),
            "echo": MethodDispatcher(post=lambda request, response: ...),
        }

    class App(Server):
        controllers = {"": Hello}

    App().run()
"""

__version__ = "0.1.0"
__all__ = [
    "ArborError",
    "AsyncMiddleware",
    "CompoundController",
    "ConfigurationError",
    "DuplicateKey",
    "HTTPError",
    "InvalidControllerType",
    "MethodDispatcher",
    "MethodNotAllowed",
    "Middleware",
    "NotFound",
    "Request",
    "Response",
    "Server",
    "ServerConfig",
    "Service",
    "SimpleController",
    "UnregisteredDependency",
    "static_files",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import arbor`` fast while providing a clean top-level API.
    """
    if name == "Server":
        from arbor.app import Server

        return Server

    if name == "ServerConfig":
        from arbor.config import ServerConfig

        return ServerConfig

    if name == "Service":
        from arbor.service import Service

        return Service

    if name in ("Request", "Response"):
        from arbor import http as _http

        return getattr(_http, name)

    if name in ("CompoundController", "MethodDispatcher", "SimpleController"):
        from arbor import controller as _controller

        return getattr(_controller, name)

    if name in ("AsyncMiddleware", "Middleware", "static_files"):
        from arbor import middleware as _mw

        return getattr(_mw, name)

    if name in (
        "ArborError",
        "ConfigurationError",
        "DuplicateKey",
        "HTTPError",
        "InvalidControllerType",
        "MethodNotAllowed",
        "NotFound",
        "UnregisteredDependency",
    ):
        from arbor import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
