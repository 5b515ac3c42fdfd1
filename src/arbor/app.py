"""Arbor server: services, middleware, and controllers in one start-up.

Declare the pieces on a subclass::

    class Storefront(Server):
        services = {
            "db": DocumentStore,
            "carts": CartService,
        }
        middleware = {"public": static_files("./public")}
        controllers = {
            "api": ApiController,
            "": PageController,
        }

    server = Storefront(ServerConfig(port=8080))
    server.run()

``start()`` runs four phases, each finishing before the next begins:
register services, initialize them, mount middleware, install
controllers. The result is a frozen route table; serving starts only
after that.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import ClassVar

from arbor._internal.asgi import Receive, Scope, Send
from arbor._internal.types import ErrorHandler
from arbor.config import ServerConfig
from arbor.injector import DependencyInjector, ServiceType
from arbor.middleware.resolver import MiddlewareResolver
from arbor.registration import ControllerRegistrar
from arbor.routing.route import InstalledRoute
from arbor.server.application import HTTPApplication

logger = logging.getLogger("arbor.server")


class Server:
    """An arbor server.

    Mutable until ``start()``; frozen afterwards. Registration calls made
    after ``start()`` raise ``RuntimeError``.

    Services registered with ``register_service()`` are constructed on the
    spot and therefore come before the declared ``services`` in the
    initialization order. Middleware and controllers registered by method
    are installed after the declared ones.
    """

    # Injection key -> service class, in initialization order
    services: ClassVar[Mapping[str, ServiceType]] = {}
    # Path prefix -> middleware class (or list of classes)
    middleware: ClassVar[Mapping[str, type | Sequence[type]]] = {}
    # Mount path -> controller class
    controllers: ClassVar[Mapping[str, type]] = {}

    def __init__(self, config: ServerConfig | None = None) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self.injector = DependencyInjector(strict_order=self.config.strict_service_order)
        self.resolver = MiddlewareResolver(
            self.injector, identity=self.config.middleware_identity
        )
        self.http = HTTPApplication(self.config)
        self.registrar = ControllerRegistrar(self.http, self.injector, self.resolver)
        self._pending_middleware: list[tuple[str, type]] = []
        self._pending_controllers: list[tuple[str, type]] = []
        self._starting = False
        self._started = False
        self._start_lock: asyncio.Lock | None = None
        self._start_error: Exception | None = None

    # -- Registration --

    def register_service(self, key: str, service: ServiceType) -> None:
        """Construct *service* now and register it under *key*."""
        self._check_not_started()
        self.injector.register(key, service)

    def register_middleware(self, prefix: str, middleware_type: type) -> None:
        """Mount *middleware_type* for every request under *prefix*."""
        self._check_not_started()
        self._pending_middleware.append((prefix, middleware_type))

    def register_controller(self, path: str, controller_type: type) -> None:
        """Install *controller_type* at *path* during start-up."""
        self._check_not_started()
        self._pending_controllers.append((path, controller_type))

    def error(
        self,
        code_or_exception: int | type[BaseException],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        The handler receives ``(request, response, error)`` (or a prefix
        of that) and writes the response::

            @server.error(404)
            def not_found(request, response):
                response.status(404).json({"error": "not found"})
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_started()
            self.http.add_error_handler(code_or_exception, func)
            return func

        return decorator

    # -- Introspection --

    @property
    def started(self) -> bool:
        return self._started

    @property
    def routes(self) -> tuple[InstalledRoute, ...]:
        """Every route installed by controllers, in installation order."""
        return tuple(self.registrar.installed)

    # -- Lifecycle --

    async def start(self) -> None:
        """Register, initialize, and install everything, then freeze.

        Raises ``RuntimeError`` when called twice. Any registration error
        aborts start-up; the server cannot be started again afterwards.
        """
        if self._starting or self._started:
            msg = "Server has already been started"
            raise RuntimeError(msg)
        self._starting = True
        try:
            await self._start_phases()
        except Exception as exc:
            self._start_error = exc
            raise

    async def _start_phases(self) -> None:
        # 1. Services
        for key, service in self.services.items():
            self.injector.register(key, service)

        # 2. Inject services into each other and initialize them
        await self.injector.prepare_for_injection()

        # 3. Global middleware, by path prefix
        for prefix, middleware_type in self._middleware_mounts():
            self.http.use(prefix, self.resolver.resolve(middleware_type))

        # 4. Controllers
        for path, controller_type in [*self.controllers.items(), *self._pending_controllers]:
            self.registrar.register(path, controller_type)

        self.http.freeze()
        self._started = True
        logger.info(
            "Server ready: %d services, %d middleware, %d routes",
            len(self.injector),
            len(self.resolver.descriptors),
            len(self.registrar.installed),
        )

    async def stop(self) -> None:
        """Close services in reverse registration order."""
        await self.injector.shutdown()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve on pounce (dev or production based on config.debug).

        Start-up happens inside the ASGI lifespan, on the server's own
        event loop, before the first connection is accepted.
        """
        _host = host if host is not None else self.config.host
        _port = port if port is not None else self.config.port
        logger.info("Listening on http://%s:%d/", _host, _port)

        if self.config.debug:
            from arbor.server.serve import run_dev_server

            run_dev_server(self, _host, _port, reload_dirs=self.config.reload_dirs)
        else:
            from arbor.server.serve import run_production_server

            run_production_server(
                self,
                _host,
                _port,
                workers=self.config.workers,
                log_level=self.config.log_level,
            )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await self._ensure_started()
        await self.http(scope, receive, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self._ensure_started()
                except Exception as exc:
                    logger.exception("Server start-up failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.stop()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _ensure_started(self) -> None:
        """Start once, even if several requests arrive before start-up finished."""
        if self._started:
            return
        if self._start_lock is None:
            self._start_lock = asyncio.Lock()
        async with self._start_lock:
            # A failed start is reported again, never retried
            if self._start_error is not None:
                raise self._start_error
            if not self._started:
                await self.start()

    # -- Internal --

    def _middleware_mounts(self) -> list[tuple[str, type]]:
        mounts: list[tuple[str, type]] = []
        for prefix, declared in self.middleware.items():
            if isinstance(declared, (list, tuple)):
                mounts.extend((prefix, middleware_type) for middleware_type in declared)
            else:
                mounts.append((prefix, declared))
        mounts.extend(self._pending_middleware)
        return mounts

    def _check_not_started(self) -> None:
        if self._starting or self._started:
            msg = (
                "Cannot register on a server that has already started. "
                "Register services, middleware, and controllers before start()."
            )
            raise RuntimeError(msg)
