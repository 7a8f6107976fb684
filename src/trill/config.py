"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. Settings that may flip while the app is serving
live in ``SettingCell`` objects instead (see ``RuntimeSettings``).
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar("T")


def _environment_from_env() -> str:
    return os.environ.get("APP_ENV") or os.environ.get("TRILL_ENV") or "development"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 4567
    environment: str = field(default_factory=_environment_from_env)
    debug: bool = False
    server: str = "pounce"
    quiet: bool = False

    # Serialize request handling (one request at a time). The lock lives in
    # the process, so this holds only with a single worker, which is how
    # the pounce runner starts the app.
    lock: bool = False

    # Logging
    logging: bool = True
    log_level: str = "info"

    # Errors
    raise_errors: bool = False  # Propagate faults that have no error handler
    show_exceptions: bool = False  # Put the traceback in default 500 bodies

    # Sessions
    secret_key: str = ""
    sessions: bool = False
    session_cookie: str = "trill_session"

    # Templates
    template_dir: str | Path = "views"
    autoescape: bool = True

    # Static files
    static_dir: str | Path | None = None
    static_url: str = "/"

    # Responses
    default_content_type: str = "text/html; charset=utf-8"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"


class SettingCell(Generic[T]):
    """A shared, lock-guarded value for a setting toggled at runtime.

    Reads and writes are atomic with respect to each other, so request
    tasks on other threads never see a torn update.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def __repr__(self) -> str:
        return f"SettingCell({self.get()!r})"


class RuntimeSettings:
    """Runtime-toggleable settings, seeded from an ``AppConfig``.

    Usage::

        app.runtime.logging.set(False)   # silence request logging
        app.runtime.lock.set(True)       # serialize request handling
    """

    __slots__ = ("lock", "logging")

    def __init__(self, config: AppConfig) -> None:
        self.lock: SettingCell[bool] = SettingCell(config.lock)
        self.logging: SettingCell[bool] = SettingCell(config.logging)
