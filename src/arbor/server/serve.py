"""Hand a live ``Server`` to pounce.

Pounce drives the ASGI lifespan, and lifespan startup is where the
server installs services, middleware and controllers. The first
connection is therefore accepted only once startup has finished.
"""

from __future__ import annotations

from typing import Any


def _serve(app: object, app_path: str | None = None, **options: Any) -> None:
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(**options)
    if app_path is None:
        Server(config, app).run()
    else:
        Server(config, app, app_path=app_path).run()


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_dirs: tuple[str, ...] = (),
    app_path: str | None = None,
) -> None:
    """One worker, restarted when watched files change.

    ``app_path`` (``"module:attr"``) lets pounce re-import the server
    after a reload instead of reusing the stale object.
    """
    _serve(
        app,
        app_path,
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_dirs=reload_dirs,
    )


def run_production_server(
    app: object,
    host: str,
    port: int,
    *,
    workers: int = 0,
    log_level: str = "info",
) -> None:
    """Several workers, no reload. ``workers=0`` means one per CPU."""
    _serve(app, host=host, port=port, workers=workers, log_level=log_level)
