"""Tests for trill.cli — ``trill run``, ``trill routes``, and app resolution."""

import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from trill.app import App
from trill.cli import main
from trill.cli._resolve import resolve_app
from trill.config import AppConfig
from trill.errors import ConfigurationError


@pytest.fixture
def fake_app(monkeypatch: pytest.MonkeyPatch) -> App:
    """Register a fake module with a trill App instance."""
    app = App(config=AppConfig(host="127.0.0.1", port=8000, debug=True))

    @app.get("/")
    def index():
        return "home"

    @app.route("/users/:id", methods=["GET", "DELETE"], name="user")
    def user(id):
        return id

    mod = types.ModuleType("_run_test_app")
    mod.app = app  # type: ignore[attr-defined]
    mod.factory = lambda: App()  # type: ignore[attr-defined]
    mod.not_an_app = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_run_test_app", mod)
    return app


class TestResolveApp:
    def test_explicit_attribute(self, fake_app: App) -> None:
        assert resolve_app("_run_test_app:app") is fake_app

    def test_default_attribute(self, fake_app: App) -> None:
        assert resolve_app("_run_test_app") is fake_app

    def test_factory(self, fake_app: App) -> None:
        assert isinstance(resolve_app("_run_test_app:factory"), App)

    def test_not_an_app(self, fake_app: App) -> None:
        with pytest.raises(TypeError, match="not a trill.App"):
            resolve_app("_run_test_app:not_an_app")

    def test_missing_attribute(self, fake_app: App) -> None:
        with pytest.raises(AttributeError):
            resolve_app("_run_test_app:nope")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("nonexistent_module_xyz:app")


class TestTrillRun:
    @patch("trill.server.runner.run_server")
    def test_default_host_and_port(self, mock_server: MagicMock, fake_app: App) -> None:
        """run uses app config defaults when --host/--port are omitted."""
        main(["run", "_run_test_app:app"])
        mock_server.assert_called_once()
        args = mock_server.call_args[0]
        assert args[0] is fake_app
        assert args[1] == "127.0.0.1"
        assert args[2] == 8000

    @patch("trill.server.runner.run_server")
    def test_host_and_port_override(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app", "-o", "0.0.0.0", "--port", "3000"])
        args = mock_server.call_args[0]
        assert args[1] == "0.0.0.0"
        assert args[2] == 3000

    @patch("trill.server.runner.run_server")
    def test_app_path_and_reload_forwarded(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app"])
        kwargs = mock_server.call_args[1]
        assert kwargs["app_path"] == "_run_test_app:app"
        assert kwargs["reload"] is True
        assert kwargs["server"] == "pounce"

    @patch("trill.server.runner.run_server")
    def test_environment_flag(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app", "-e", "production"])
        assert fake_app.config.is_production

    @patch("trill.server.runner.run_server")
    def test_quiet_disables_request_logging(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app", "-q"])
        assert fake_app.config.quiet is True
        assert fake_app.runtime.logging.get() is False

    @patch("trill.server.runner.run_server")
    def test_lock_flag(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app", "-x"])
        assert fake_app.runtime.lock.get() is True

    @patch("trill.server.runner.run_server")
    def test_app_frozen_before_serving(self, mock_server: MagicMock, fake_app: App) -> None:
        main(["run", "_run_test_app:app"])
        assert fake_app._frozen

    @patch("trill.server.runner.run_server", side_effect=ConfigurationError("no backend"))
    def test_server_error_exits(
        self, mock_server: MagicMock, fake_app: App, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "_run_test_app:app", "-s", "other"])
        assert exc_info.value.code == 1
        assert "no backend" in capsys.readouterr().err

    def test_invalid_import_string(self, capsys: pytest.CaptureFixture[str]) -> None:
        """run exits 1 with error message for bad import string."""
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "nonexistent_module_xyz:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestTrillRoutes:
    def test_lists_routes_in_order(self, fake_app: App, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_run_test_app:app"])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["METHOD", "PATTERN", "HANDLER"]
        rows = [line.split() for line in lines[2:]]
        assert rows == [
            ["GET", "/", "index"],
            ["GET", "/users/:id", "user", "(user)"],
            ["DELETE", "/users/:id", "user", "(user)"],
        ]

    def test_no_routes(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        mod = types.ModuleType("_empty_test_app")
        mod.app = App()  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "_empty_test_app", mod)
        main(["routes", "_empty_test_app"])
        assert "No routes registered." in capsys.readouterr().out


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage: trill" in capsys.readouterr().out


class TestRunServer:
    def test_unknown_backend(self) -> None:
        from trill.server.runner import run_server

        with pytest.raises(ConfigurationError, match="Unknown server backend"):
            run_server(App(), "127.0.0.1", 4567, server="gunicorn")

    def test_starts_pounce(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from trill.server.runner import run_server

        server_cls = MagicMock()
        config_cls = MagicMock()
        pounce_config = types.ModuleType("pounce.config")
        pounce_config.ServerConfig = config_cls  # type: ignore[attr-defined]
        pounce_server = types.ModuleType("pounce.server")
        pounce_server.Server = server_cls  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "pounce", types.ModuleType("pounce"))
        monkeypatch.setitem(sys.modules, "pounce.config", pounce_config)
        monkeypatch.setitem(sys.modules, "pounce.server", pounce_server)

        app = App()
        run_server(app, "0.0.0.0", 9000, reload=True, app_path="m:app")

        config_cls.assert_called_once_with(host="0.0.0.0", port=9000, workers=1, reload=True)
        server_cls.assert_called_once_with(config_cls.return_value, app, app_path="m:app")
        server_cls.return_value.run.assert_called_once()
