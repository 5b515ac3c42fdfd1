"""Services and the dependency-injection contract.

A service is a singleton shared by every controller and middleware that
asks for it. No base class is required: the injector checks the shape,
not the lineage. ``Service`` exists for readability and type checking.

Any object can receive services by declaring ``inject``::

    class CartController(SimpleController):
        inject = ("cart_service", "pricing_service")

        cart_service: CartService
        pricing_service: PricingService
"""

from collections.abc import Sequence
from typing import ClassVar, Protocol, runtime_checkable


@runtime_checkable
class UsesDependencyInjection(Protocol):
    """An object that names the services it needs.

    Each key must be registered on the injector; the service is then
    assigned to the attribute of the same name.
    """

    inject: Sequence[str]


def declared_keys(obj: object) -> tuple[str, ...] | None:
    """Return the injection keys *obj* declares, or ``None`` if it declares none."""
    keys = getattr(obj, "inject", None)
    if isinstance(keys, (list, tuple)):
        return tuple(keys)
    return None


class Service:
    """Optional base class for services.

    Lifecycle hooks, all optional, looked up by name:

    - ``async_initialize()``: awaited once during startup
    - ``initialize()``: called once during startup when there is no
      ``async_initialize``; may itself be ``async def``
    - ``async_close()`` / ``close()``: called once during shutdown
    """

    inject: ClassVar[Sequence[str]] = ()
