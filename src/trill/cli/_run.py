"""``trill run`` — start the server for an app.

Resolves an import string to a trill App, folds the command-line flags
into its configuration, and starts the configured server backend.
"""

import argparse
import sys

from trill._internal.log import configure as configure_logging
from trill.cli._resolve import resolve_app
from trill.errors import ConfigurationError


def run_app(args: argparse.Namespace) -> None:
    """Start serving ``args.app``.

    Flags override the app's own config: ``--env`` sets the environment,
    ``--server`` the backend, ``--quiet`` drops request logging, and
    ``--lock`` serializes request handling.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    changes: dict[str, object] = {}
    if args.env:
        changes["environment"] = args.env
    if args.server:
        changes["server"] = args.server
    if args.quiet:
        changes["quiet"] = True
        changes["logging"] = False
    if args.lock:
        changes["lock"] = True

    try:
        if changes:
            app.configure(**changes)
    except (ConfigurationError, RuntimeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from trill.server.runner import run_server

    config = app.config
    configure_logging(config.log_level, quiet=config.quiet)
    app._ensure_frozen()
    try:
        run_server(
            app,
            args.host or config.host,
            args.port or config.port,
            server=config.server,
            reload=config.debug,
            app_path=args.app,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
