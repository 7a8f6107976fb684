"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required. Middleware wraps the whole dispatch: filters,
routes, and error handlers all run inside ``next``.

``next`` returns either a ``Response`` or a ``StreamingResponse``. Both
share the ``.with_header()`` / ``.with_status()`` / ``.with_cookie()``
chainable API, so middleware can modify them uniformly.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from trill.http.request import Request
from trill.http.response import Response, StreamingResponse

# Any response type the pipeline can produce
type AnyResponse = Response | StreamingResponse

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for trill middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RateLimiter:
            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
