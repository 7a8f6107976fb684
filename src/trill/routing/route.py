"""Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

import re
from dataclasses import dataclass

from trill._internal.types import Condition, Handler
from trill.errors import ConfigurationError
from trill.routing.pattern import CompiledPattern, MatchResult, compile_pattern

HTTP_METHODS = frozenset(
    {"GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD", "LINK", "UNLINK"}
)


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Built (and its pattern compiled) the moment it is declared, so a bad
    pattern fails at import time rather than on the first request.
    """

    method: str
    pattern: str | re.Pattern[str]
    handler: Handler
    matcher: CompiledPattern
    conditions: tuple[Condition, ...] = ()
    name: str | None = None
    provides: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        method: str,
        pattern: str | re.Pattern[str],
        handler: Handler,
        *,
        conditions: tuple[Condition, ...] = (),
        name: str | None = None,
        provides: tuple[str, ...] = (),
    ) -> Route:
        """Validate *method*, compile *pattern*, and return the route."""
        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {method!r}. Use one of: {', '.join(sorted(HTTP_METHODS))}."
            raise ConfigurationError(msg)
        return cls(
            method=method,
            pattern=pattern,
            handler=handler,
            matcher=compile_pattern(pattern),
            conditions=tuple(conditions),
            name=name,
            provides=tuple(provides),
        )

    @property
    def path(self) -> str:
        """The pattern as written (regex source for regex routes)."""
        return self.matcher.source

    def answers(self, method: str) -> bool:
        """Whether this route serves *method*. GET routes also answer HEAD."""
        return method == self.method or (method == "HEAD" and self.method == "GET")

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``index`` is the route's position in the table snapshot it was found
    in; passing resumes the scan at ``index + 1``.
    """

    route: Route
    index: int
    result: MatchResult
