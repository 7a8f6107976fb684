"""Kida environment setup and rendering.

Creates a kida Environment from trill's AppConfig and binds
user-registered filters and globals. The environment is created
once during App._freeze() and shared read-only by every request.
"""

from collections.abc import Callable, Mapping
from typing import Any

from kida import Environment, FileSystemLoader
from kida.utils.html import Markup

from trill.config import AppConfig
from trill.templating.returns import InlineTemplate, Template


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]],
    globals_: dict[str, Any],
) -> Environment:
    """Create a kida Environment from app configuration.

    Called once during ``App._freeze()``.
    """
    env = Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )

    if filters:
        env.update_filters(filters)

    for name, value in globals_.items():
        env.add_global(name, value)

    return env


def render(
    env: Environment,
    template: str | Template | InlineTemplate,
    context: Mapping[str, Any] | None = None,
    *,
    layout: str | None = None,
) -> str:
    """Render a template by name, a ``Template``, or an ``InlineTemplate``.

    Extra *context* is merged under the template's own context. With a
    layout, the rendered page becomes the layout's ``content`` variable.
    """
    values: dict[str, Any] = dict(context or {})
    match template:
        case Template():
            values.update(template.context)
            html = env.get_template(template.name).render(values)
            layout = layout or template.layout
        case InlineTemplate():
            values.update(template.context)
            html = env.from_string(template.source).render(values)
            layout = layout or template.layout
        case str():
            html = env.get_template(template).render(values)
        case _:
            msg = f"Cannot render {type(template).__name__}; expected a name, Template, or InlineTemplate."
            raise TypeError(msg)

    if layout:
        html = env.get_template(layout).render({**values, "content": Markup(html)})
    return html
