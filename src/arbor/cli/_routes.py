"""``arbor routes``: list the routes a server installs.

Starts the server (services initialize, controllers install) without
listening, then prints every installed route.
"""

import argparse
import asyncio
import sys

from arbor.cli._resolve import resolve_server
from arbor.errors import ArborError
from arbor.routing.route import InstalledRoute


def format_routes(routes: tuple[InstalledRoute, ...]) -> list[str]:
    """Render routes as aligned METHOD / PATH / CONTROLLER / MIDDLEWARE lines."""
    rows = [
        (
            route.method,
            route.path,
            route.controller or "-",
            str(len(route.middleware)),
        )
        for route in routes
    ]
    header = ("METHOD", "PATH", "CONTROLLER", "MIDDLEWARE")
    widths = [max(len(row[i]) for row in [header, *rows]) for i in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"

    lines = [fmt.format(*header), "-" * min(sum(widths) + 16, 80)]
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """Start the server named by ``args.server`` and print its routes."""
    try:
        server = resolve_server(args.server)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        asyncio.run(server.start())
    except ArborError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not server.routes:
        print("No routes registered.")
        return

    for line in format_routes(server.routes):
        print(line)
