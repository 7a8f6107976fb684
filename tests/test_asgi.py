"""Tests for trill.server.handler — the raw ASGI request path."""

from typing import Any

from trill import App
from trill.http.request import Request
from trill.server.handler import base_params


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope dict."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def _receive(body: bytes = b""):
    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    return receive


async def _call(app: App, scope: dict[str, object], body: bytes = b"") -> list[dict[str, Any]]:
    sent: list[dict[str, Any]] = []

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app(scope, _receive(body), send)
    return sent


class TestASGIRoundTrip:
    async def test_messages(self) -> None:
        app = App()

        @app.get("/users/:id")
        def user(id: str) -> str:
            return f"user {id}"

        sent = await _call(app, _make_scope(path="/users/42"))
        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 200
        headers = dict(sent[0]["headers"])
        assert headers[b"content-type"] == b"text/html; charset=utf-8"
        assert headers[b"content-length"] == b"7"
        assert sent[1] == {"type": "http.response.body", "body": b"user 42"}

    async def test_root_path_in_urls(self) -> None:
        app = App()

        @app.get("/here")
        def here(ctx) -> str:
            return ctx.url("/there", absolute=False)

        sent = await _call(app, _make_scope(path="/here", root_path="/mount"))
        assert sent[1]["body"] == b"/mount/there"


class TestBaseParams:
    async def test_query_only_for_get(self) -> None:
        scope = _make_scope(
            query_string=b"a=1",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
        )
        request = Request.from_asgi(scope, _receive(b"a=2"))
        assert await base_params(request) == {"a": "1"}

    async def test_form_wins_for_post(self) -> None:
        scope = _make_scope(
            method="POST",
            query_string=b"a=1&q=x",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
        )
        request = Request.from_asgi(scope, _receive(b"a=2&tags[]=t"))
        assert await base_params(request) == {"a": "2", "q": "x", "tags": ["t"]}

    async def test_json_body_not_merged(self) -> None:
        scope = _make_scope(
            method="POST", headers=[(b"content-type", b"application/json")]
        )
        request = Request.from_asgi(scope, _receive(b'{"a": 1}'))
        assert await base_params(request) == {}
