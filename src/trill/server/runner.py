"""Server launcher.

Starts a pounce ASGI server with the live trill App object. pounce is
the only supported backend; it ships in the ``server`` extra.
"""

from __future__ import annotations

import logging

from trill.errors import ConfigurationError

logger = logging.getLogger("trill.server")

SERVERS = ("pounce",)


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    server: str = "pounce",
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start an ASGI server with the given trill App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but trill has a live ``App`` object. We use ``pounce.Server``
    directly with the ASGI callable. It runs a single worker: the ``lock``
    setting serializes requests with an in-process lock.

    Args:
        app: ASGI callable (trill App instance).
        host: Bind host address.
        port: Bind port number.
        server: Backend name. Only ``"pounce"`` is available.
        reload: Restart on file changes.
        app_path: Optional ``"module:attribute"`` import string, so
            reloads reimport the app.
    """
    if server not in SERVERS:
        msg = f"Unknown server backend {server!r}. Available: {', '.join(SERVERS)}."
        raise ConfigurationError(msg)

    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError:
        msg = (
            "Serving requires the 'bengal-pounce' package. "
            "Install it with: pip install 'trill[server]'"
        )
        raise ConfigurationError(msg) from None

    logger.info("trill serving on http://%s:%d (backend: %s)", host, port, server)
    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    Server(config, app, app_path=app_path).run()
