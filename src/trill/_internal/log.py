"""Logger handles for the request pipeline.

``request_logger`` gives each request a ``LoggerAdapter`` that stamps
method and path onto every record. When logging is switched off the
pipeline hands out ``NULL_LOGGER`` instead, so handler code can call
``ctx.logger.info(...)`` unconditionally.
"""

import logging
from typing import Any

server_logger = logging.getLogger("trill.server")
access_logger = logging.getLogger("trill.request")


class NullLogger:
    """Drop-in stand-in for a logger that discards everything."""

    __slots__ = ()

    def debug(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def info(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def warning(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def error(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def exception(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def critical(self, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def log(self, level: int, msg: object, *args: Any, **kwargs: Any) -> None:
        pass

    def isEnabledFor(self, level: int) -> bool:  # noqa: N802
        return False


NULL_LOGGER = NullLogger()


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefixes messages with ``METHOD path`` and adds both as extras."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = self.extra or {}
        kwargs.setdefault("extra", {}).update(extra)
        return f"{extra.get('method')} {extra.get('path')} — {msg}", kwargs


def request_logger(method: str, path: str, *, enabled: bool) -> RequestLoggerAdapter | NullLogger:
    """Return the logger for one request, or the no-op stand-in."""
    if not enabled:
        return NULL_LOGGER
    return RequestLoggerAdapter(access_logger, {"method": method, "path": path})


def configure(level: str, *, quiet: bool = False) -> None:
    """Set the level on trill's loggers (called by the CLI launcher)."""
    resolved = logging.WARNING if quiet else getattr(logging, level.upper(), logging.INFO)
    for logger in (server_logger, access_logger):
        logger.setLevel(resolved)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
