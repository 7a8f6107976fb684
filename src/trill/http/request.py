"""Immutable HTTP request.

Frozen metadata with async body access. Before-filters that need a
different request (a rewritten path, say) build a new one with
``with_path`` and hand it to the context; nothing mutates in place.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from trill._internal.asgi import Receive
from trill.http.cookies import parse_cookies
from trill.http.headers import Headers
from trill.http.query import QueryParams

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str
    scheme: str
    root_path: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    cookies: Mapping[str, str]

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: mutable cache for body and parsed form data, shared by
    # every copy made with ``with_path`` so the body is read once
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def host(self) -> str:
        """Host name without port, from the Host header or the server tuple."""
        host = self.headers.get("host")
        if host:
            return host.rsplit(":", 1)[0] if not host.endswith("]") else host
        if self.server is not None:
            return self.server[0]
        return ""

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "") or ""

    @property
    def is_form(self) -> bool:
        ct = self.content_type or ""
        return ct.split(";", 1)[0].strip().lower() == FORM_CONTENT_TYPE

    @property
    def url(self) -> str:
        """Full request URL path (root path + path + query string)."""
        qs = self.query.raw
        path = f"{self.root_path}{self.path}"
        if qs:
            return f"{path}?{qs.decode('latin-1')}"
        return path

    def accepts(self, content_type: str) -> bool:
        """Whether the Accept header admits *content_type*.

        A missing Accept header accepts anything. Entries with ``q=0``
        are refusals.
        """
        header = self.headers.get("accept")
        if not header:
            return True
        wanted_type, _, wanted_sub = content_type.split(";", 1)[0].strip().lower().partition("/")
        for entry in header.split(","):
            media, *params = (part.strip() for part in entry.split(";"))
            if any(p.replace(" ", "") in ("q=0", "q=0.0", "q=0.00", "q=0.000") for p in params):
                continue
            main, _, sub = media.lower().partition("/")
            if main == "*" or (main == wanted_type and sub in ("*", wanted_sub)):
                return True
        return False

    # -- Derived copies --

    def with_path(self, path: str) -> Request:
        """Return a copy of this request with a different path."""
        return replace(self, path=path)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncIterator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> QueryParams:
        """Parse a url-encoded body.

        Result is cached alongside the raw body.

        Raises:
            ValueError: If Content-Type is not url-encoded form data.
        """
        if "_form" in self._cache:
            return self._cache["_form"]
        if not self.is_form:
            msg = (
                f"Cannot parse {self.content_type or 'a body without Content-Type'} "
                f"as form data; expected {FORM_CONTENT_TYPE}."
            )
            raise ValueError(msg)
        result = QueryParams(await self.body())
        self._cache["_form"] = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            scheme=scope.get("scheme", "http"),
            root_path=scope.get("root_path", ""),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            cookies=parse_cookies(headers.get("cookie", "") or ""),
            _receive=receive,
        )
