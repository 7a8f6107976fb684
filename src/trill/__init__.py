"""Trill — a small ASGI web framework with ordered routes.

Routes are ``METHOD + pattern + handler``, matched in the order they are
declared. Before and after filters wrap them; error handlers catch what
they raise.

Basic usage::

    from trill import App

    app = App()

    @app.get("/hello/:name")
    def hello(name):
        return f"Hello {name}!"

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "HTTPError",
    "Halt",
    "InlineTemplate",
    "Middleware",
    "Next",
    "NotFound",
    "Pass",
    "PatternError",
    "Redirect",
    "Request",
    "Response",
    "StreamingResponse",
    "Template",
    "TrillError",
    "get_context",
    "get_request",
    "halt",
    "pass_route",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trill`` fast while providing a clean top-level API.
    """
    if name == "App":
        from trill.app import App

        return App

    if name == "AppConfig":
        from trill.config import AppConfig

        return AppConfig

    if name == "Request":
        from trill.http.request import Request

        return Request

    if name in ("Response", "Redirect", "StreamingResponse"):
        from trill.http import response as _resp

        return getattr(_resp, name)

    if name in ("Template", "InlineTemplate"):
        from trill.templating import returns as _tmpl

        return getattr(_tmpl, name)

    if name in ("AnyResponse", "Middleware", "Next"):
        from trill.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("Context", "get_context", "get_request"):
        from trill import context as _ctx

        return getattr(_ctx, name)

    if name in ("Halt", "Pass", "halt", "pass_route"):
        from trill import signals as _signals

        return getattr(_signals, name)

    if name in ("TrillError", "ConfigurationError", "HTTPError", "NotFound", "PatternError"):
        from trill import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
