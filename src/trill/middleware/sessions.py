"""Session middleware — signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The session object is stored in a ContextVar, accessible via
``get_session()`` or ``ctx.session`` from any filter, handler, or
middleware further in.

Enabled automatically when ``AppConfig(sessions=True)``; the app's
``secret_key`` signs the cookie.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from trill.errors import ConfigurationError
from trill.http.request import Request
from trill.middleware.protocol import AnyResponse, Next

# -- Session ContextVar --


class Session(dict[str, Any]):
    """A session mapping that remembers whether it was changed."""

    __slots__ = ("modified",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.modified = False

    def __setitem__(self, key: str, value: Any) -> None:
        self.modified = True
        super().__setitem__(key, value)

    def __delitem__(self, key: str) -> None:
        self.modified = True
        super().__delitem__(key)

    def clear(self) -> None:
        self.modified = True
        super().clear()

    def pop(self, key: str, *default: Any) -> Any:
        self.modified = True
        return super().pop(key, *default)

    def popitem(self) -> tuple[str, Any]:
        self.modified = True
        return super().popitem()

    def setdefault(self, key: str, default: Any = None) -> Any:
        if key not in self:
            self.modified = True
        return super().setdefault(key, default)

    def update(self, *args: Any, **kwargs: Any) -> None:
        self.modified = True
        super().update(*args, **kwargs)


_session_var: ContextVar[Session | None] = ContextVar("trill_session", default=None)


def get_session() -> Session:
    """Return the current session dict.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Enable sessions with AppConfig(sessions=True, "
            "secret_key=...) or add SessionMiddleware to the app."
        )
        raise LookupError(msg)
    return session


def regenerate_session() -> Session:
    """Clear the session and return it, emptied.

    Discards all data from the previous session. The middleware re-signs
    the (empty) dict on the response, producing a fresh cookie value.
    """
    session = get_session()
    session.clear()
    return session


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required — sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "trill_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


# -- Middleware --


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads the session cookie, verifies the signature, makes the session
    available via ``get_session()``, then writes it back as a Set-Cookie
    header when it changed or was loaded from a cookie (refreshing the
    signature timestamp).

    Usage::

        app.add_middleware(SessionMiddleware(SessionConfig(
            secret_key="my-secret-key",
        )))

        @app.get("/dashboard")
        def dashboard(ctx):
            ctx.session["visits"] = ctx.session.get("visits", 0) + 1
            return f"Visits: {ctx.session['visits']}"
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="trill.session")

    def _load_session(self, request: Request) -> Session | None:
        """Deserialize and verify the session cookie (None when absent or invalid)."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return None

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            # Tampered, expired, or signed with another key
            return None

        if not isinstance(data, dict):
            return None
        return Session(data)

    def _save_session(self, response: AnyResponse, session: Session) -> AnyResponse:
        """Serialize the session dict and set the cookie on the response."""
        cfg = self._config
        value = self._serializer.dumps(dict(session))
        return response.with_cookie(
            name=cfg.cookie_name,
            value=value,
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Load session, dispatch, then save session to response."""
        loaded = self._load_session(request)
        session = loaded if loaded is not None else Session()
        token = _session_var.set(session)

        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        if session.modified or loaded is not None:
            return self._save_session(response, session)
        return response
