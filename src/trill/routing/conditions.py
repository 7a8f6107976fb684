"""Built-in route conditions.

A condition is a callable taking the ``Request`` and returning a truthy
value. A route whose conditions do not all hold is skipped, exactly as
if its pattern had not matched.
"""

import re
from collections.abc import Callable

from trill.errors import ConfigurationError
from trill.http.request import Request

MIME_SHORTCUTS: dict[str, str] = {
    "html": "text/html",
    "text": "text/plain",
    "txt": "text/plain",
    "json": "application/json",
    "xml": "application/xml",
    "js": "application/javascript",
    "css": "text/css",
    "csv": "text/csv",
}


def resolve_mime(value: str) -> str:
    """Expand a short name like ``"json"`` to its media type."""
    return MIME_SHORTCUTS.get(value.lstrip(".").lower(), value)


def host_name(pattern: str | re.Pattern[str]) -> Callable[[Request], bool]:
    """Require the Host header to equal *pattern* (or match a regex)."""
    if isinstance(pattern, re.Pattern):
        return lambda request: pattern.fullmatch(request.host) is not None
    expected = pattern.lower()
    return lambda request: request.host.lower() == expected


def user_agent(pattern: str | re.Pattern[str]) -> Callable[[Request], bool]:
    """Require the User-Agent header to contain a match for *pattern*."""
    if isinstance(pattern, re.Pattern):
        regex = pattern
    else:
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise ConfigurationError(f"Invalid user_agent pattern {pattern!r}: {exc}") from exc
    return lambda request: regex.search(request.user_agent) is not None


def provides(*types: str) -> Callable[[Request], bool]:
    """Require the Accept header to admit one of *types*."""
    resolved = tuple(resolve_mime(t) for t in types)
    return lambda request: any(request.accepts(t) for t in resolved)
