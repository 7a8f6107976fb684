"""ASGI handler — translates ASGI scope/messages to trill types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, runs the middleware chain around the
dispatcher, and sends the resulting Response back through ASGI send().
"""

import logging
import time
from collections.abc import Callable
from contextvars import Token
from typing import Any

from kida import Environment

from trill._internal.asgi import Receive, Scope, Send
from trill._internal.log import access_logger, request_logger
from trill.config import RuntimeSettings
from trill.context import Context, context_var, request_var
from trill.errors import HTTPError
from trill.http.request import Request
from trill.http.response import Response, StreamingResponse
from trill.middleware.protocol import AnyResponse, Next
from trill.routing.pattern import normalize_path
from trill.server.dispatch import Dispatcher
from trill.server.sender import send_response, send_streaming_response

logger = logging.getLogger("trill.server")

# Methods whose url-encoded bodies are merged into ctx.params
_FORM_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    middleware: tuple[Callable[..., Any], ...],
    runtime: RuntimeSettings,
    helpers: dict[str, Callable[..., Any]],
    kida_env: Environment | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    config = dispatcher.config
    started = time.perf_counter()

    # Build Request from ASGI scope; matching always sees the normalized path
    request = Request.from_asgi(scope, receive)
    normalized = normalize_path(request.path)
    if normalized != request.path:
        request = request.with_path(normalized)

    # Set request context var (reset after dispatch)
    token: Token[Request] = request_var.set(request)

    try:
        # Build the innermost handler (filters, routes, error handlers)
        async def dispatch(req: Request) -> AnyResponse:
            ctx = Context(
                req,
                config=config,
                params=await base_params(req),
                helpers=helpers,
                templates=kida_env,
                logger=request_logger(req.method, req.path, enabled=runtime.logging.get()),
            )
            ctx_token = context_var.set(ctx)
            try:
                await dispatcher.dispatch(ctx)
            finally:
                context_var.reset(ctx_token)
            return ctx.to_response()

        # Wrap middleware around the dispatch
        handler = dispatch
        for mw in reversed(middleware):
            outer = handler
            mw_ref = mw

            async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> AnyResponse:
                return await _mw(req, _next)

            handler = make_next

        # Execute the full pipeline
        response = await handler(request)

    except HTTPError as exc:
        # Raised by middleware, outside the error handler table
        response = Response(
            body=exc.detail or str(exc.status),
            status=exc.status,
            headers=exc.headers,
        )
    except Exception:
        logger.exception("Unhandled error in %s %s", request.method, request.path)
        raise
    finally:
        request_var.reset(token)

    if runtime.logging.get():
        elapsed = (time.perf_counter() - started) * 1000
        access_logger.info(
            "%s %s -> %d (%.1fms)", request.method, request.url, response.status, elapsed
        )

    head = request.method == "HEAD"
    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send, head=head)
    else:
        await send_response(response, send, head=head)


async def base_params(request: Request) -> dict[str, Any]:
    """Query parameters, plus url-encoded form fields for body-carrying methods.

    Form fields win over query parameters of the same name.
    """
    params = request.query.to_params()
    if request.method in _FORM_METHODS and request.is_form:
        form = await request.form()
        params.update(form.to_params())
    return params
