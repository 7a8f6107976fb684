"""Template return types.

Frozen dataclasses that handlers return. The dispatcher hands them to
the kida environment built at freeze time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a kida template file.

    Usage::

        return Template("page.html", title="Home", items=items)
        return Template("page.html", layout="layout.html", title="Home")

    With a *layout*, the page is rendered first and the result is passed
    to the layout template as ``content``, already marked safe.
    *content_type* overrides the response's content type.
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)
    layout: str | None = None
    content_type: str | None = None

    def __init__(
        self,
        name: str,
        /,
        *,
        layout: str | None = None,
        content_type: str | None = None,
        **context: Any,
    ) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)
        object.__setattr__(self, "layout", layout)
        object.__setattr__(self, "content_type", content_type)

    @staticmethod
    def inline(source: str, /, **context: Any) -> InlineTemplate:
        """Create a template from a string.

        Usage::

            return Template.inline("<h1>{{ title }}</h1>", title="Hello")
        """
        return InlineTemplate(source, **context)


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A template rendered from a string source."""

    source: str
    context: dict[str, Any] = field(default_factory=dict)
    layout: str | None = None

    def __init__(self, source: str, /, *, layout: str | None = None, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "context", context)
        object.__setattr__(self, "layout", layout)
