"""Template rendering via kida.

Handlers either return a ``Template``/``InlineTemplate`` value or call
``ctx.render(...)`` for a string.
"""

from trill.templating.returns import InlineTemplate, Template

__all__ = ["InlineTemplate", "Template"]
