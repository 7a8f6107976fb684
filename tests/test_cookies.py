"""Tests for trill.http.cookies — parse_cookies + SetCookie, and context cookies."""

from trill import App
from trill.http.cookies import SetCookie, parse_cookies
from trill.testing import TestClient


class TestParseCookies:
    def test_empty_string(self) -> None:
        assert parse_cookies("") == {}

    def test_single_cookie(self) -> None:
        assert parse_cookies("session=abc123") == {"session": "abc123"}

    def test_multiple_cookies(self) -> None:
        result = parse_cookies("session=abc; theme=dark; lang=en")
        assert result == {"session": "abc", "theme": "dark", "lang": "en"}

    def test_whitespace_handling(self) -> None:
        result = parse_cookies("  session = abc ;  theme = dark  ")
        assert result == {"session": "abc", "theme": "dark"}

    def test_value_with_equals(self) -> None:
        """Values can contain '=' (e.g. base64)."""
        assert parse_cookies("token=abc=def=") == {"token": "abc=def="}

    def test_quoted_value(self) -> None:
        assert parse_cookies('name="quoted"') == {"name": "quoted"}

    def test_no_equals_ignored(self) -> None:
        result = parse_cookies("session=abc; broken; theme=dark")
        assert result == {"session": "abc", "theme": "dark"}

    def test_duplicate_keys_first_wins(self) -> None:
        assert parse_cookies("a=1; a=2") == {"a": "1"}


class TestSetCookie:
    def test_defaults(self) -> None:
        value = SetCookie(name="a", value="1").to_header_value()
        assert value == "a=1; Path=/; HttpOnly; SameSite=Lax"

    def test_all_attributes(self) -> None:
        cookie = SetCookie(
            name="sid",
            value="x",
            max_age=60,
            expires=0,
            path="/app",
            domain="example.com",
            secure=True,
            httponly=False,
            samesite="strict",
        )
        assert cookie.to_header_value() == (
            "sid=x; Max-Age=60; Expires=Thu, 01 Jan 1970 00:00:00 GMT; Path=/app; "
            "Domain=example.com; Secure; SameSite=Strict"
        )


class TestContextCookies:
    async def test_set_and_delete(self) -> None:
        app = App()

        @app.get("/")
        def index(ctx) -> str:
            ctx.set_cookie("theme", "dark", max_age=3600)
            ctx.delete_cookie("old")
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
        cookies = [value for name, value in response.headers if name == "set-cookie"]
        assert cookies[0].startswith("theme=dark; Max-Age=3600")
        assert cookies[1].startswith("old=; Max-Age=0")

    async def test_request_cookies_visible(self) -> None:
        app = App()

        @app.get("/")
        def index(request) -> str:
            return request.cookies.get("theme", "light")

        async with TestClient(app) as client:
            response = await client.get("/", headers={"cookie": "theme=dark"})
        assert response.text == "dark"
