"""Trill application class.

Mutable during setup (route registration, filters, error handlers,
middleware). Frozen at runtime when app.run() or __call__() is first
invoked.
"""

import asyncio
import dataclasses
import inspect
import logging
import re
import secrets
import threading
from collections.abc import Callable, Iterable
from typing import Any

from kida import Environment

from trill._internal.asgi import Receive, Scope, Send
from trill._internal.types import Condition, ErrorHandler, Handler
from trill.config import AppConfig, RuntimeSettings
from trill.errors import ConfigurationError
from trill.middleware.protocol import Middleware
from trill.routing import conditions as builtin_conditions
from trill.routing.filters import Filter, FilterChain, FilterStage
from trill.routing.route import Route
from trill.routing.router import Router
from trill.server.dispatch import Dispatcher
from trill.server.errors import ErrorHandlerTable, ErrorKey
from trill.server.handler import handle_request
from trill.templating.integration import create_environment

logger = logging.getLogger("trill.server")

type Pattern = str | re.Pattern[str]


class App:
    """The trill application.

    Mutable during setup (route registration, filters, middleware).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Routes are matched in the order they are declared; the first route
    whose method, pattern, and conditions all match handles the request::

        app = App()

        @app.get("/hello/:name")
        def hello(name):
            return f"Hello {name}!"

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when multiple ASGI workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_custom_kida_env",
        "_dispatcher",
        "_error_table",
        "_filters",
        "_freeze_lock",
        "_frozen",
        "_helpers",
        "_kida_env",
        "_middleware",
        "_middleware_list",
        "_request_lock",
        "_router",
        "_routes",
        "_runtime",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        kida_env: Environment | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._routes: list[Route] = []
        self._filters: list[Filter] = []
        self._error_table: ErrorHandlerTable = ErrorHandlerTable()
        self._helpers: dict[str, Callable[..., Any]] = {}
        self._middleware_list: list[Middleware] = []
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._custom_kida_env: Environment | None = kida_env
        self._runtime: RuntimeSettings = RuntimeSettings(self.config)
        self._request_lock: asyncio.Lock = asyncio.Lock()

        # Compiled state, set during _freeze()
        self._router: Router = Router()
        self._dispatcher: Dispatcher | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._kida_env: Environment | None = None

    # -- Configuration --

    def configure(self, **changes: Any) -> AppConfig:
        """Replace configuration fields before the app freezes.

        Usage::

            app.configure(environment="production", raise_errors=False)
        """
        self._check_not_frozen()
        try:
            self.config = dataclasses.replace(self.config, **changes)
        except TypeError as exc:
            msg = f"Unknown configuration option: {exc}"
            raise ConfigurationError(msg) from exc
        self._runtime = RuntimeSettings(self.config)
        return self.config

    @property
    def runtime(self) -> RuntimeSettings:
        """Settings that may be flipped while the app is serving (``lock``, ``logging``)."""
        return self._runtime

    # -- Route registration --

    def route(
        self,
        pattern: Pattern,
        *,
        methods: Iterable[str] | None = None,
        name: str | None = None,
        host_name: Pattern | None = None,
        user_agent: Pattern | None = None,
        provides: str | Iterable[str] | None = None,
        conditions: Iterable[Condition] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            pattern: ``/path/:param/*`` pattern or a compiled regex.
            methods: HTTP methods. Defaults to ``["GET"]``. One route is
                registered per method, in the order given.
            name: Optional route name (shown by ``trill routes``).
            host_name: Only match when the Host is this name (or matches
                this regex).
            user_agent: Only match when the User-Agent matches this regex.
            provides: Only match when the Accept header admits one of
                these content types; the type also becomes the response's
                content type.
            conditions: Extra callables taking the ``Request``; all must
                return truthy for the route to match.

        The pattern is compiled immediately, so a bad pattern raises
        ``PatternError`` here rather than on the first request.
        """
        route_conditions = list(conditions)
        if host_name is not None:
            route_conditions.append(builtin_conditions.host_name(host_name))
        if user_agent is not None:
            route_conditions.append(builtin_conditions.user_agent(user_agent))
        provided: tuple[str, ...] = ()
        if provides is not None:
            provided = (provides,) if isinstance(provides, str) else tuple(provides)
            route_conditions.append(builtin_conditions.provides(*provided))

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            for method in methods or ["GET"]:
                self._routes.append(
                    Route.build(
                        method,
                        pattern,
                        func,
                        conditions=tuple(route_conditions),
                        name=name,
                        provides=provided,
                    )
                )
            return func

        return decorator

    def get(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        """Register a GET route (also answers HEAD)."""
        return self.route(pattern, methods=["GET"], **options)

    def post(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["POST"], **options)

    def put(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["PUT"], **options)

    def patch(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["PATCH"], **options)

    def delete(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["DELETE"], **options)

    def options(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["OPTIONS"], **options)

    def head(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["HEAD"], **options)

    def link(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["LINK"], **options)

    def unlink(self, pattern: Pattern, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["UNLINK"], **options)

    # -- Filters --

    def before(
        self,
        pattern: Pattern | Callable[..., Any] | None = None,
        *,
        methods: Iterable[str] | None = None,
    ) -> Any:
        """Register a before-filter.

        Works bare (``@app.before``), unscoped (``@app.before()``), or
        scoped to a pattern (``@app.before("/admin/*")``).
        """
        return self._filter(FilterStage.BEFORE, pattern, methods)

    def after(
        self,
        pattern: Pattern | Callable[..., Any] | None = None,
        *,
        methods: Iterable[str] | None = None,
    ) -> Any:
        """Register an after-filter. Same forms as ``before``."""
        return self._filter(FilterStage.AFTER, pattern, methods)

    def _filter(
        self,
        stage: FilterStage,
        pattern: Pattern | Callable[..., Any] | None,
        methods: Iterable[str] | None,
    ) -> Any:
        if callable(pattern) and not isinstance(pattern, re.Pattern):
            self._check_not_frozen()
            self._filters.append(Filter.build(stage, pattern))
            return pattern

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._filters.append(Filter.build(stage, func, pattern, methods))
            return func

        return decorator

    # -- Error handlers --

    def error(self, *keys: ErrorKey | ErrorHandler) -> Any:
        """Register an error handler via decorator.

        Keys may be exception classes, status codes, or ``range`` objects
        of status codes. With no key (``@app.error()`` or bare
        ``@app.error``) the handler is the fallback for every fault::

            @app.error(ValueError)
            def bad_value(ctx, exc): ...

            @app.error(range(500, 600))
            def server_error(ctx): ...
        """
        if len(keys) == 1 and callable(keys[0]) and not isinstance(keys[0], type):
            func = keys[0]
            self._check_not_frozen()
            self._error_table.register(None, func)
            return func

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            for key in keys or (None,):
                self._error_table.register(key, func)
            return func

        return decorator

    def not_found(self, func: ErrorHandler) -> ErrorHandler:
        """Register the 404 handler via decorator."""
        self._check_not_frozen()
        self._error_table.register(404, func)
        return func

    # -- Helpers --

    def helper(self, func: Callable[..., Any] | None = None, *, name: str | None = None) -> Any:
        """Register a helper, callable as ``ctx.helpers.<name>(...)``.

        The helper receives the request context as its first argument.
        """

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._helpers[name or fn.__name__] = fn
            return fn

        if func is not None:
            return decorator(func)
        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        """The compiled route table (freezes the app on first access)."""
        self._ensure_frozen()
        return self._router

    @property
    def routes(self) -> tuple[Route, ...]:
        """Routes in match order (registered so far, or the live table once frozen)."""
        if self._frozen:
            return self._router.routes
        return tuple(self._routes)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the app and start serving requests.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        from trill._internal.log import configure as configure_logging
        from trill.server.runner import run_server

        self._ensure_frozen()
        configure_logging(self.config.log_level, quiet=self.config.quiet)
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            server=self.config.server,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline, one at a time when the ``lock``
        setting is on.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None

        if self._runtime.lock.get():
            async with self._request_lock:
                await self._handle(scope, receive, send)
        else:
            await self._handle(scope, receive, send)

    async def _handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            middleware=self._middleware,
            runtime=self._runtime,
            helpers=self._helpers,
            kida_env=self._kida_env,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Multiple ASGI worker threads could call __call__() concurrently
        on first request. This pattern ensures exactly one thread
        performs compilation.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table (patterns were compiled at registration)
        router = Router()
        for route in self._routes:
            router.add(route)
        router.compile()
        self._router = router

        # 2. Capture middleware as an immutable tuple. Static files are
        #    outermost so they skip filters; sessions wrap user middleware.
        middleware_list: list[Middleware] = []
        if self.config.static_dir is not None:
            from trill.middleware.static import StaticFiles

            middleware_list.append(StaticFiles(self.config.static_dir, self.config.static_url))
        if self.config.sessions:
            from trill.middleware.sessions import SessionConfig, SessionMiddleware

            secret_key = self.config.secret_key
            if not secret_key:
                logger.warning(
                    "sessions enabled without secret_key; using a random key "
                    "(sessions will not survive a restart)"
                )
                secret_key = secrets.token_hex(32)
            middleware_list.append(
                SessionMiddleware(
                    SessionConfig(secret_key=secret_key, cookie_name=self.config.session_cookie)
                )
            )
        middleware_list.extend(self._middleware_list)
        self._middleware = tuple(middleware_list)

        # 3. Initialize kida environment
        if self._custom_kida_env is not None:
            self._kida_env = self._custom_kida_env
            if self._template_filters:
                self._kida_env.update_filters(self._template_filters)
            for name, value in self._template_globals.items():
                self._kida_env.add_global(name, value)
        else:
            self._kida_env = create_environment(
                self.config,
                self._template_filters,
                self._template_globals,
            )

        # 4. Dispatcher over the frozen tables
        self._dispatcher = Dispatcher(
            router,
            FilterChain.from_filters(self._filters),
            self._error_table,
            self.config,
        )

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, filters, and middleware before calling app.run()."
            )
            raise RuntimeError(msg)

