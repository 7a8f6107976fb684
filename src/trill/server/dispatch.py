"""Request dispatch — filters, route matching, handlers, error handlers.

One ``Dispatcher`` is built when the app freezes and shared by every
request. Per request it runs::

    before-filters -> first matching route (resuming after a pass)
        -> error handler (on a fault) -> after-filters -> status handler

All user code runs through ``run_user_code``; the dispatcher only ever
sees ``Continue | Halted | Passed | Faulted`` values.
"""

import inspect
from collections.abc import Callable
from typing import Any

from trill.config import AppConfig
from trill.context import Context
from trill.errors import NotFound
from trill.http.request import Request
from trill.routing.conditions import resolve_mime
from trill.routing.filters import Filter, FilterChain
from trill.routing.pattern import EMPTY_MATCH, MatchResult
from trill.routing.router import Router
from trill.server.errors import ErrorHandlerTable, handle_fault, run_error_handler
from trill.server.outcome import Continue, Faulted, Halted, Outcome, Passed, run_user_code

_CONTEXT_NAMES = frozenset({"ctx", "context"})


class Dispatcher:
    """Routes one request context through filters, routes, and error handlers."""

    __slots__ = ("config", "errors", "filters", "router")

    def __init__(
        self,
        router: Router,
        filters: FilterChain,
        errors: ErrorHandlerTable,
        config: AppConfig,
    ) -> None:
        self.router = router
        self.filters = filters
        self.errors = errors
        self.config = config

    async def dispatch(self, ctx: Context) -> None:
        """Process *ctx* to completion, leaving the response state on it.

        Faults raised by error handlers, and unhandled faults when
        ``raise_errors`` is on, propagate.
        """
        outcome = await self._run_before_filters(ctx)
        if isinstance(outcome, Continue):
            outcome = await self._route(ctx)
        faulted = await self._settle(ctx, outcome)

        faulted = await self._run_after_filters(ctx) or faulted

        if not faulted and ctx.status >= 400:
            handler = self.errors.for_status(ctx.status)
            if handler is not None:
                await run_error_handler(ctx, handler, None)

    # -- Stages --

    async def _run_before_filters(self, ctx: Context) -> Outcome:
        for filt in self.filters.before:
            result = filt.match(ctx.request.method, ctx.request.path)
            if result is None:
                continue
            outcome = await self._run_filter(ctx, filt, result)
            if isinstance(outcome, (Halted, Faulted)):
                return outcome
        return Continue()

    async def _route(self, ctx: Context) -> Outcome:
        # One snapshot per request so a concurrent replace() cannot shift indexes
        routes = self.router.routes
        base_params = ctx.params
        start = 0
        while True:
            request = ctx.request
            match = self.router.match(
                request.method, request.path, start=start, routes=routes, request=request
            )
            if match is None:
                return Faulted(NotFound())
            ctx.route = match.route
            ctx.params = {**base_params, **match.result.as_params()}
            _apply_provides(ctx, match.route.provides)
            outcome = await run_user_code(call_with_injection, match.route.handler, ctx, match.result)
            if not isinstance(outcome, Passed):
                return outcome
            ctx.route = None
            ctx.params = base_params
            start = match.index + 1

    async def _run_after_filters(self, ctx: Context) -> bool:
        for filt in self.filters.after:
            result = filt.match(ctx.request.method, ctx.request.path)
            if result is None:
                continue
            outcome = await self._run_filter(ctx, filt, result)
            if isinstance(outcome, (Halted, Faulted)):
                return await self._settle(ctx, outcome)
        return False

    async def _run_filter(self, ctx: Context, filt: Filter, result: MatchResult) -> Outcome:
        saved = ctx.params
        if result is not EMPTY_MATCH:
            ctx.params = {**saved, **result.as_params()}
        try:
            return await run_user_code(call_with_injection, filt.handler, ctx, result)
        finally:
            ctx.params = saved

    async def _settle(self, ctx: Context, outcome: Outcome) -> bool:
        """Apply a handler or halt value; route faults to error handling.

        Returns True when the request ended up faulted.
        """
        match outcome:
            case Continue(value):
                outcome = await run_user_code(ctx.apply, value)
            case Halted(halt):
                outcome = await run_user_code(ctx.apply, halt.value)
        if isinstance(outcome, Faulted):
            await handle_fault(ctx, outcome.error, self.errors)
            return True
        return False


def _apply_provides(ctx: Context, provided: tuple[str, ...]) -> None:
    """Set the content type to the first provided type the client accepts."""
    for content_type in provided:
        if ctx.request.accepts(resolve_mime(content_type)):
            ctx.content_type = content_type
            return


def call_with_injection(func: Callable[..., Any], ctx: Context, result: MatchResult) -> Any:
    """Call a handler or filter with arguments chosen by its signature."""
    return func(**build_handler_kwargs(func, ctx, result))


def build_handler_kwargs(
    func: Callable[..., Any], ctx: Context, result: MatchResult
) -> dict[str, Any]:
    """Inspect a handler signature and build kwargs from the request context.

    Resolution order:
    1. ``ctx`` / ``context`` (by name or ``Context`` annotation)
    2. ``request`` (by name or ``Request`` annotation)
    3. ``params`` (the merged parameter mapping)
    4. ``splat`` / ``captures`` (lists from the match)
    5. Named path parameters (with annotation conversion)
    """
    sig = inspect.signature(func, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = param.annotation
        if name in _CONTEXT_NAMES or annotation is Context:
            kwargs[name] = ctx
        elif name == "request" or annotation is Request:
            kwargs[name] = ctx.request
        elif name == "params":
            kwargs[name] = ctx.params
        elif name == "splat":
            kwargs[name] = list(result.splat)
        elif name == "captures":
            kwargs[name] = list(result.captures)
        elif name in result.params:
            # Convert path param to annotated type if possible
            value = result.params[name]
            if value is not None and annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs
