"""Server configuration.

ServerConfig is a frozen dataclass, validated once when it is built.
"""

from dataclasses import dataclass
from typing import Literal

from arbor.errors import ConfigurationError

MiddlewareIdentity = Literal["type", "name"]
RouteCollisionPolicy = Literal["overwrite", "error"]


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(debug=True, port=3000, request_timeout=10.0)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count (production only)
    log_level: str = "info"

    # Reload (development mode, requires debug=True)
    reload_dirs: tuple[str, ...] = ()

    # Requests
    request_timeout: float | None = None  # None = a stuck handler stalls its request
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Registration policies
    middleware_identity: MiddlewareIdentity = "type"
    route_collisions: RouteCollisionPolicy = "overwrite"
    strict_service_order: bool = False

    def __post_init__(self) -> None:
        if self.middleware_identity not in ("type", "name"):
            msg = (
                f"middleware_identity must be 'type' or 'name', "
                f"got {self.middleware_identity!r}"
            )
            raise ConfigurationError(msg)
        if self.route_collisions not in ("overwrite", "error"):
            msg = (
                f"route_collisions must be 'overwrite' or 'error', "
                f"got {self.route_collisions!r}"
            )
            raise ConfigurationError(msg)
        if self.request_timeout is not None and self.request_timeout <= 0:
            msg = f"request_timeout must be positive, got {self.request_timeout!r}"
            raise ConfigurationError(msg)
