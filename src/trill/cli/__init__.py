"""Trill CLI — run an app, list its routes.

Entry point registered as ``trill`` in ``pyproject.toml``::

    [project.scripts]
    trill = "trill.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``trill`` command."""
    parser = argparse.ArgumentParser(
        prog="trill",
        description="Trill — a small ASGI web framework with ordered routes.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- trill run --------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("-o", "--host", default=None, help="Bind host address")
    run_parser.add_argument("-p", "--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "-e",
        "--env",
        default=None,
        help="Environment (development, production, test)",
    )
    run_parser.add_argument("-s", "--server", default=None, help="Server backend")
    run_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    run_parser.add_argument(
        "-x",
        "--lock",
        action="store_true",
        help="Handle one request at a time",
    )

    # -- trill routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from trill.cli._run import run_app

        run_app(args)
    elif args.command == "routes":
        from trill.cli._routes import run_routes

        run_routes(args)
