"""Tests for trill.http.response — Response chaining, Redirect, StreamingResponse."""

import pytest

from trill.http.response import Redirect, Response, StreamingResponse


class TestResponse:
    def test_defaults(self) -> None:
        r = Response()
        assert r.body == ""
        assert r.status == 200
        assert r.content_type == "text/html; charset=utf-8"
        assert r.headers == ()
        assert r.cookies == ()

    def test_with_status(self) -> None:
        assert Response().with_status(201).status == 201

    def test_chained_headers(self) -> None:
        r = Response().with_header("A", "1").with_header("B", "2")
        assert r.headers == (("A", "1"), ("B", "2"))

    def test_with_headers_dict(self) -> None:
        r = Response().with_headers({"A": "1", "B": "2"})
        assert r.headers == (("A", "1"), ("B", "2"))

    def test_with_content_type_and_body(self) -> None:
        r = Response("x").with_content_type("application/json").with_body("{}")
        assert r.content_type == "application/json"
        assert r.body == "{}"

    def test_with_cookie(self) -> None:
        r = Response().with_cookie("session", "abc123", secure=True)
        assert r.cookies[0].name == "session"
        assert r.cookies[0].secure is True

    def test_without_cookie(self) -> None:
        r = Response().without_cookie("session")
        assert r.cookies[0].max_age == 0

    def test_chaining_returns_new_objects(self) -> None:
        r1 = Response("hello")
        r2 = r1.with_status(201)
        assert r1.status == 200
        assert r2.status == 201

    def test_header_lookup(self) -> None:
        r = Response(content_type="text/plain").with_header("X-Foo", "bar")
        assert r.header("x-foo") == "bar"
        assert r.header("content-type") == "text/plain"
        assert r.header("missing", "d") == "d"

    def test_text_and_bytes(self) -> None:
        assert Response(body=b"hello").text == "hello"
        assert Response(body="hello").body_bytes == b"hello"

    def test_json(self) -> None:
        assert Response('{"a": 1}').json() == {"a": 1}

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Response().status = 404  # type: ignore[misc]


class TestRedirect:
    def test_defaults(self) -> None:
        r = Redirect("/login")
        assert r.status == 302
        assert r.headers == ()


class TestStreamingResponse:
    def test_chainable(self) -> None:
        r = (
            StreamingResponse(chunks=iter(["a"]))
            .with_status(201)
            .with_header("X-A", "1")
            .with_headers({"X-B": "2"})
            .with_content_type("text/plain")
            .with_cookie("c", "v")
        )
        assert r.status == 201
        assert r.headers == (("X-A", "1"), ("X-B", "2"))
        assert r.content_type == "text/plain"
        assert r.cookies[0].name == "c"
