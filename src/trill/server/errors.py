"""Error handler table and fault handling.

Handlers are registered with ``@app.error(...)`` under exception types,
status codes, status ranges, or nothing at all (the fallback). One fault
runs at most one handler, picked in this order:

1. The most specific registered exception type in the fault's MRO
   (bare ``Exception`` is the fallback, not a type match).
2. The fault's status: exact code first, then the first range holding it.
   ``HTTPError`` carries its status; anything else is 500.
3. The fallback handler.
4. A default body.
"""

import html
import inspect
import logging
import traceback
from collections.abc import Callable
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from trill.errors import ConfigurationError, HTTPError
from trill.server.outcome import Continue, Faulted, Halted, Passed, run_user_code

if TYPE_CHECKING:
    from trill.context import Context

logger = logging.getLogger("trill.server")

type ErrorKey = type[BaseException] | int | range | None


class ErrorHandlerTable:
    """Registered error handlers, keyed by type, status, range, or fallback."""

    __slots__ = ("by_status", "by_type", "fallback", "ranges")

    def __init__(self) -> None:
        self.by_type: dict[type[BaseException], Callable[..., Any]] = {}
        self.by_status: dict[int, Callable[..., Any]] = {}
        self.ranges: list[tuple[range, Callable[..., Any]]] = []
        self.fallback: Callable[..., Any] | None = None

    def register(self, key: ErrorKey, handler: Callable[..., Any]) -> None:
        """Register *handler* under *key*. Later registrations replace earlier ones."""
        match key:
            case None:
                self.fallback = handler
            case type() if key is Exception:
                self.fallback = handler
            case type() if issubclass(key, Exception):
                self.by_type[key] = handler
            case bool():
                msg = f"Invalid error handler key: {key!r}"
                raise ConfigurationError(msg)
            case int() if 100 <= key <= 599:
                self.by_status[key] = handler
            case range() if key and key.start >= 100 and key[-1] <= 599:
                self.ranges = [(r, h) for r, h in self.ranges if r != key]
                self.ranges.append((key, handler))
            case _:
                msg = (
                    f"Invalid error handler key: {key!r}. Use an Exception subclass, "
                    "a status code (100-599), a range of status codes, or nothing."
                )
                raise ConfigurationError(msg)

    def for_status(self, status: int) -> Callable[..., Any] | None:
        """Exact status handler, else the first range containing *status*."""
        handler = self.by_status.get(status)
        if handler is not None:
            return handler
        for status_range, range_handler in self.ranges:
            if status in status_range:
                return range_handler
        return None

    def for_exception(self, exc: Exception) -> Callable[..., Any] | None:
        """Pick the handler for a fault (see module docstring for the order)."""
        for cls in type(exc).__mro__:
            if cls is Exception:
                break
            handler = self.by_type.get(cls)
            if handler is not None:
                return handler
        status = exc.status if isinstance(exc, HTTPError) else 500
        return self.for_status(status) or self.fallback

    def __len__(self) -> int:
        return len(self.by_type) + len(self.by_status) + len(self.ranges) + (self.fallback is not None)


def call_error_handler(handler: Callable[..., Any], ctx: "Context", exc: Exception | None) -> Any:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (ctx), or two (ctx, exc) args.
    Returns whatever the handler returns (possibly an awaitable).
    """
    params = list(inspect.signature(handler).parameters.values())
    if len(params) >= 2:
        return handler(ctx, exc)
    if len(params) == 1:
        return handler(ctx)
    return handler()


def default_error_body(exc: Exception, *, show_exceptions: bool) -> str:
    """Body used when no error handler claims a fault."""
    if isinstance(exc, HTTPError):
        if exc.detail:
            return exc.detail
        try:
            return HTTPStatus(exc.status).phrase
        except ValueError:
            return f"Error {exc.status}"
    if show_exceptions:
        formatted = "".join(traceback.format_exception(exc))
        return f"<h1>Internal Server Error</h1>\n<pre>{html.escape(formatted)}</pre>"
    return "Internal Server Error"


async def handle_fault(ctx: "Context", exc: Exception, table: ErrorHandlerTable) -> None:
    """Turn a fault into response state via the error handler table.

    A halt inside the error handler is honored. A fault inside it
    propagates to the caller, as does an unhandled fault when
    ``raise_errors`` is on.
    """
    ctx.exception = exc
    request = ctx.request
    if isinstance(exc, HTTPError):
        ctx.status = exc.status
        for name, value in exc.headers:
            ctx.headers[name] = value
        logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
    else:
        ctx.status = 500
        logger.error("500 %s %s", request.method, request.path, exc_info=exc)

    handler = table.for_exception(exc)
    if handler is None:
        if ctx.config.raise_errors and not isinstance(exc, HTTPError):
            raise exc
        ctx.body = default_error_body(exc, show_exceptions=ctx.config.show_exceptions)
        return

    await run_error_handler(ctx, handler, exc)


async def run_error_handler(
    ctx: "Context", handler: Callable[..., Any], exc: Exception | None
) -> None:
    """Run *handler* and apply its result; its own faults propagate."""
    match await run_user_code(call_error_handler, handler, ctx, exc):
        case Continue(value):
            ctx.apply(value)
        case Halted(halt):
            ctx.apply(halt.value)
        case Passed():
            pass
        case Faulted(error):
            raise error
