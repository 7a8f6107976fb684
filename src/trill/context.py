"""Per-request context and the ContextVars that expose it.

Provides:
- ``Context``: what filters, handlers, and error handlers work with —
  the request, merged params, and the response being built.
- ``request_var`` / ``context_var``: the current ``Request`` and
  ``Context`` for this task, set by the ASGI handler and reset after
  each request.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. A ``Context`` is created per request and owned by
    that request's task only. No locks needed.
"""

from __future__ import annotations

import functools
from collections.abc import AsyncIterator, Callable, Iterator
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

from trill._internal.log import NULL_LOGGER, NullLogger, RequestLoggerAdapter
from trill.config import AppConfig
from trill.errors import ConfigurationError
from trill.http.cookies import SetCookie
from trill.http.headers import ResponseHeaders
from trill.http.request import Request
from trill.http.response import Response, StreamingResponse
from trill.routing.conditions import resolve_mime
from trill.routing.pattern import normalize_path
from trill.signals import halt, pass_route

if TYPE_CHECKING:
    from kida import Environment

    from trill.routing.route import Route

# -- Request context vars --

request_var: ContextVar[Request] = ContextVar("trill_request")
"""The current request. Set by the ASGI handler before dispatch."""

context_var: ContextVar[Context] = ContextVar("trill_context")
"""The current request context. Set by the ASGI handler around dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_context() -> Context:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request context.
    """
    return context_var.get()


# -- Helpers --


class HelperSet:
    """Named helper functions bound to one request context.

    Registered with ``app.helper``; each helper receives the context as
    its first argument::

        @app.helper
        def current_user(ctx):
            return ctx.session.get("user")

        @app.get("/me")
        def me(ctx):
            return f"hi {ctx.helpers.current_user()}"
    """

    __slots__ = ("_ctx", "_funcs")

    def __init__(self, ctx: Context, funcs: dict[str, Callable[..., Any]]) -> None:
        self._ctx = ctx
        self._funcs = funcs

    def __getattr__(self, name: str) -> Callable[..., Any]:
        try:
            func = self._funcs[name]
        except KeyError:
            msg = f"No helper named {name!r}. Register it with @app.helper."
            raise AttributeError(msg) from None
        return functools.partial(func, self._ctx)

    def __contains__(self, name: str) -> bool:
        return name in self._funcs

    def __dir__(self) -> list[str]:
        return sorted(self._funcs)


_TEXTUAL = ("application/json", "application/javascript", "application/xml")


def _with_charset(media_type: str) -> str:
    if "charset=" in media_type:
        return media_type
    if media_type.startswith("text/") or media_type in _TEXTUAL:
        return f"{media_type}; charset=utf-8"
    return media_type


def is_stream(body: Any) -> bool:
    """Whether *body* is a chunk source rather than a complete body."""
    return isinstance(body, (Iterator, AsyncIterator))


class Context:
    """Everything one request's filters and handler work with.

    Response state (``status``, ``headers``, ``body``) starts empty and is
    filled in by filters, the handler, and error handlers in turn; the
    dispatcher turns it into a ``Response`` at the end.
    """

    __slots__ = (
        "_content_type",
        "_templates",
        "body",
        "config",
        "cookies",
        "exception",
        "headers",
        "helpers",
        "logger",
        "params",
        "request",
        "route",
        "status",
    )

    def __init__(
        self,
        request: Request,
        *,
        config: AppConfig | None = None,
        params: dict[str, Any] | None = None,
        helpers: dict[str, Callable[..., Any]] | None = None,
        templates: Environment | None = None,
        logger: RequestLoggerAdapter | NullLogger = NULL_LOGGER,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.request: Request = request
        self.params: dict[str, Any] = params if params is not None else {}
        self.route: Route | None = None
        self.status: int = 200
        self.headers: ResponseHeaders = ResponseHeaders()
        self.body: Any = None
        self.cookies: list[SetCookie] = []
        self.exception: Exception | None = None
        self.logger = logger
        self.helpers = HelperSet(self, helpers or {})
        self._templates = templates
        self._content_type: str | None = None

    # -- Response state --

    @property
    def content_type(self) -> str:
        """The response content type (explicit value or the configured default)."""
        return self._content_type or self.config.default_content_type

    @content_type.setter
    def content_type(self, value: str) -> None:
        self._content_type = _with_charset(resolve_mime(value))

    @property
    def has_content_type(self) -> bool:
        """True once something set the content type explicitly."""
        return self._content_type is not None

    def set_cookie(self, name: str, value: str, **options: Any) -> None:
        self.cookies.append(SetCookie(name=name, value=value, **options))

    def delete_cookie(self, name: str, path: str = "/") -> None:
        self.cookies.append(SetCookie(name=name, value="", max_age=0, path=path))

    def apply(self, value: Any) -> None:
        """Fold a handler-style return value into the response state."""
        from trill.server.results import apply_result

        apply_result(self, value)

    def to_response(self) -> Response | StreamingResponse:
        """Assemble the final response from the current state."""
        headers = ResponseHeaders(self.headers.pairs())
        content_type = self.content_type
        if "content-type" in headers:
            content_type = headers["content-type"]
            del headers["content-type"]

        if is_stream(self.body):
            return StreamingResponse(
                chunks=self.body,
                status=self.status,
                content_type=content_type,
                headers=headers.pairs(),
                cookies=tuple(self.cookies),
            )
        body = self.body if isinstance(self.body, (str, bytes)) else ""
        return Response(
            body=body,
            status=self.status,
            content_type=content_type,
            headers=headers.pairs(),
            cookies=tuple(self.cookies),
        )

    # -- Control flow --

    def halt(self, *args: Any) -> NoReturn:
        """Stop here and respond with *args* (see ``trill.signals.Halt``)."""
        halt(*args)

    def pass_route(self) -> NoReturn:
        """Skip to the next matching route."""
        pass_route()

    def redirect(self, url: str, status: int | None = None) -> NoReturn:
        """Halt with a redirect to *url*.

        Defaults to 303 for non-GET HTTP/1.1 requests (so the client
        follows up with a GET) and 302 otherwise.
        """
        if status is None:
            non_get = self.request.method not in ("GET", "HEAD")
            status = 303 if non_get and self.request.http_version != "1.0" else 302
        self.headers["Location"] = url
        halt(status)

    def error(self, code: int, body: Any = None) -> NoReturn:
        """Halt with an error status and optional body."""
        if body is None:
            halt(code)
        halt(code, body)

    def not_found(self, body: Any = None) -> NoReturn:
        """Halt with 404."""
        self.error(404, body)

    # -- Request helpers --

    def rewrite(self, path: str) -> None:
        """Point this request at a different path.

        Filters that run later, and route matching, see the new path.
        """
        self.request = self.request.with_path(normalize_path(path))

    def url(self, path: str = "/", *, absolute: bool = True) -> str:
        """Build a URL for *path* under this app's mount point."""
        local = f"{self.request.root_path}{path}"
        if not absolute:
            return local
        host = self.request.headers.get("host")
        if not host and self.request.server is not None:
            name, port = self.request.server
            default = 443 if self.request.scheme == "https" else 80
            host = name if port == default else f"{name}:{port}"
        return f"{self.request.scheme}://{host or 'localhost'}{local}"

    @property
    def session(self) -> dict[str, Any]:
        """The session mapping (requires sessions to be enabled)."""
        from trill.middleware.sessions import get_session

        return get_session()

    # -- Collaborators --

    def render(
        self,
        template: Any,
        *,
        layout: str | None = None,
        content_type: str | None = None,
        **locals_: Any,
    ) -> str:
        """Render a template (name, ``Template``, or ``InlineTemplate``) to a string."""
        from trill.templating.integration import render

        if self._templates is None:
            msg = "Template rendering requires a kida environment; the app has not been frozen."
            raise ConfigurationError(msg)
        if content_type is not None:
            self.content_type = content_type
        return render(self._templates, template, locals_, layout=layout)

    def render_string(self, source: str, **locals_: Any) -> str:
        """Render an inline template source string."""
        from trill.templating.returns import InlineTemplate

        return self.render(InlineTemplate(source), **locals_)

    def send_file(self, path: str | Path, **options: Any) -> NoReturn:
        """Halt with the contents of *path* (see ``trill.http.files.file_response``)."""
        from trill.http.files import file_response

        halt(file_response(path, request=self.request, **options))

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path} status={self.status}>"
