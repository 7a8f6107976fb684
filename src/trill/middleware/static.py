"""Static file serving middleware.

Serves files from a directory for matching URL prefixes before any
filter or route runs. Non-matching paths, and paths with no file
behind them, fall through to the next handler.
"""

from pathlib import Path

from trill.errors import HTTPError
from trill.http.files import file_response
from trill.http.request import Request
from trill.http.response import Response
from trill.middleware.protocol import AnyResponse, Next


class StaticFiles:
    """Middleware that serves static files from a directory.

    Security: resolves symlinks and verifies the final path
    is within the configured directory to prevent path traversal.

    Usage::

        # Serve under a prefix
        app.add_middleware(StaticFiles(directory="./public", prefix="/static"))

        # Or let the app do it: files in ./public answer at the root
        app = App(AppConfig(static_dir="./public"))
    """

    __slots__ = ("_cache_control", "_directory", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        cache_control: str | None = None,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._cache_control = cache_control

        # Normalize prefix: ensure leading slash, strip trailing.
        # Root prefix "/" normalizes to "" (every path is a candidate).
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        # Only serve GET and HEAD
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/"):
                return await next(request)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        if not relative:
            return await next(request)

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)

        # Directories and missing files belong to the routes
        if not file_path.is_file():
            return await next(request)

        try:
            return file_response(file_path, request=request, cache_control=self._cache_control)
        except HTTPError as exc:
            return Response(
                body=exc.detail,
                status=exc.status,
                content_type="text/plain; charset=utf-8",
                headers=exc.headers,
            )
