"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
    StaticFiles -- Serve static files from a directory
"""

from trill.middleware.protocol import AnyResponse, Middleware, Next
from trill.middleware.sessions import (
    SessionConfig,
    SessionMiddleware,
    get_session,
    regenerate_session,
)
from trill.middleware.static import StaticFiles

__all__ = [
    "AnyResponse",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "StaticFiles",
    "get_session",
    "regenerate_session",
]
