"""``arbor run``: development or production server command."""

import argparse
import sys

from arbor.cli._resolve import resolve_server


def run_server(args: argparse.Namespace) -> None:
    """Serve the server named by ``args.server`` on pounce.

    Development mode (``debug=True`` and no ``--production``) runs one
    worker with auto-reload; otherwise the production server runs.
    """
    try:
        server = resolve_server(args.server)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    host = args.host if args.host is not None else server.config.host
    port = args.port if args.port is not None else server.config.port

    if args.production or not server.config.debug:
        from arbor.server.serve import run_production_server

        run_production_server(
            server,
            host,
            port,
            workers=args.workers if args.workers is not None else server.config.workers,
            log_level=server.config.log_level,
        )
    else:
        from arbor.server.serve import run_dev_server

        run_dev_server(
            server,
            host,
            port,
            reload_dirs=server.config.reload_dirs,
            app_path=args.server,
        )
