"""Dependency injector: owns service singletons and their lifecycle.

Services are constructed at registration, wired and initialized once by
``prepare_for_injection()``, and then injected into controllers and
middleware by attribute assignment.

Initialization follows registration order. It is not topologically
sorted: a service that injects one registered after it receives an
instance whose initializer has not run yet. ``initialization_order``
and ``ordering_hazards()`` make that contract visible and testable.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from arbor._internal.invoke import invoke
from arbor.errors import DuplicateKey, ServiceOrderError, UnregisteredDependency
from arbor.service import declared_keys

logger = logging.getLogger("arbor.injector")

ServiceType = Callable[[], Any]


@dataclass(slots=True)
class ServiceDescriptor:
    """A registered service and whether its initializer has run."""

    key: str
    instance: Any
    initialized: bool = False


class DependencyInjector:
    """Injects the same service instances into every object that asks.

    Usage::

        injector = DependencyInjector()
        injector.register("db", Database)
        injector.register("carts", CartService)  # carts.inject = ("db",)
        await injector.prepare_for_injection()
        injector.inject(controller)
    """

    __slots__ = ("_services", "_strict_order")

    def __init__(self, *, strict_order: bool = False) -> None:
        # Insertion order is registration order
        self._services: dict[str, ServiceDescriptor] = {}
        self._strict_order = strict_order

    def __contains__(self, key: object) -> bool:
        return key in self._services

    def __len__(self) -> int:
        return len(self._services)

    def keys(self) -> Iterator[str]:
        return iter(self._services)

    def register(self, key: str, service: ServiceType) -> None:
        """Construct *service* and register the instance under *key*.

        The constructor runs immediately, before any service is injected
        into it. Raises ``DuplicateKey`` if *key* is taken; the existing
        registration is left untouched.
        """
        if key in self._services:
            raise DuplicateKey(key)
        self._services[key] = ServiceDescriptor(key=key, instance=service())
        logger.debug("Registered service %r (%s)", key, _type_name(service))

    def get(self, key: str) -> Any:
        """Return the singleton registered under *key*."""
        try:
            return self._services[key].instance
        except KeyError:
            raise UnregisteredDependency(key, self) from None

    def descriptor(self, key: str) -> ServiceDescriptor:
        return self._services[key]

    @property
    def initialization_order(self) -> tuple[str, ...]:
        """Service keys in the order ``prepare_for_injection`` initializes them."""
        return tuple(self._services)

    def ordering_hazards(self) -> list[tuple[str, str]]:
        """Return ``(service, dependency)`` pairs initialized in the wrong order.

        A hazard is a service that injects a dependency registered after
        it. Keys that are not registered at all are not hazards here;
        ``inject`` reports those.
        """
        position = {key: index for index, key in enumerate(self._services)}
        hazards: list[tuple[str, str]] = []
        for key, descriptor in self._services.items():
            for dependency in declared_keys(descriptor.instance) or ():
                if dependency in position and position[dependency] > position[key]:
                    hazards.append((key, dependency))
        return hazards

    async def prepare_for_injection(self) -> None:
        """Wire services into each other and run their initializers.

        Walks services in registration order. For each one: inject the
        services it declares, then await ``async_initialize()`` if it has
        one, else call ``initialize()`` if it has one. Each initializer
        runs at most once, even if this method is called again.
        """
        hazards = self.ordering_hazards()
        if hazards:
            if self._strict_order:
                raise ServiceOrderError(hazards)
            for service_key, dependency in hazards:
                logger.warning(
                    "Service %r depends on %r, which is registered after it "
                    "and will not be initialized yet",
                    service_key,
                    dependency,
                )

        for descriptor in list(self._services.values()):
            service = descriptor.instance
            if declared_keys(service) is not None:
                self.inject(service)

            if descriptor.initialized:
                continue

            async_init = getattr(service, "async_initialize", None)
            sync_init = getattr(service, "initialize", None)
            if callable(async_init):
                await async_init()
            elif callable(sync_init):
                await invoke(sync_init)
            descriptor.initialized = True
            logger.debug("Initialized service %r", descriptor.key)

    def inject(self, obj: object) -> None:
        """Assign every service *obj* declares in ``inject`` onto *obj*.

        All keys are checked before anything is assigned, so a missing
        key raises ``UnregisteredDependency`` and leaves *obj* untouched.
        """
        keys = declared_keys(obj)
        if not keys:
            return
        resolved: list[tuple[str, Any]] = []
        for key in keys:
            descriptor = self._services.get(key)
            if descriptor is None:
                raise UnregisteredDependency(key, obj)
            resolved.append((key, descriptor.instance))
        for key, instance in resolved:
            setattr(obj, key, instance)

    async def shutdown(self) -> None:
        """Close initialized services in reverse registration order.

        Looks for ``async_close()`` then ``close()``. A failing close is
        logged and does not stop the others from closing.
        """
        for descriptor in reversed(list(self._services.values())):
            if not descriptor.initialized:
                continue
            service = descriptor.instance
            closer = getattr(service, "async_close", None)
            if not callable(closer):
                closer = getattr(service, "close", None)
            if not callable(closer):
                continue
            try:
                await invoke(closer)
            except Exception:
                logger.exception("Error closing service %r", descriptor.key)


def _type_name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or type(obj).__name__
