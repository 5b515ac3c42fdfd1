"""The ``arbor`` command.

``arbor routes module:server`` starts the server and prints its route
table. ``arbor run module:server`` serves it on pounce.
"""

import argparse
import sys

_TARGET_HELP = "Server to load, as module:attribute (attribute defaults to 'server')"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arbor",
        description="Serve and inspect arbor servers.",
    )
    commands = parser.add_subparsers(dest="command")

    routes = commands.add_parser("routes", help="Print the routes a server installs")
    routes.add_argument("server", help=_TARGET_HELP)

    run = commands.add_parser("run", help="Serve on pounce")
    run.add_argument("server", help=_TARGET_HELP)
    run.add_argument("--host", help="Override ServerConfig.host")
    run.add_argument("--port", type=int, help="Override ServerConfig.port")
    run.add_argument(
        "--production",
        action="store_true",
        help="Use the multi-worker server even when debug is on",
    )
    run.add_argument("--workers", type=int, help="Production worker count, 0 for one per CPU")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    match args.command:
        case "routes":
            from arbor.cli._routes import run_routes

            run_routes(args)
        case "run":
            from arbor.cli._run import run_server

            run_server(args)
        case _:
            parser.print_help()
            sys.exit(0)
