"""Tests for trill.http.query — immutable query parameters."""

from trill.http.query import QueryParams


class TestQueryParams:
    def test_first_value(self) -> None:
        q = QueryParams(b"a=1&a=2")
        assert q["a"] == "1"
        assert q.get_list("a") == ["1", "2"]

    def test_get_default(self) -> None:
        q = QueryParams(b"")
        assert q.get("missing") is None
        assert q.get("missing", "x") == "x"

    def test_blank_values_kept(self) -> None:
        assert QueryParams(b"flag=")["flag"] == ""

    def test_percent_decoding(self) -> None:
        assert QueryParams(b"q=hello%20world&r=a+b")["q"] == "hello world"
        assert QueryParams(b"r=a+b")["r"] == "a b"

    def test_get_int(self) -> None:
        q = QueryParams(b"page=3&bad=x")
        assert q.get_int("page") == 3
        assert q.get_int("bad", 1) == 1
        assert q.get_int("missing") is None

    def test_mapping_protocol(self) -> None:
        q = QueryParams(b"a=1&b=2")
        assert set(q) == {"a", "b"}
        assert len(q) == 2
        assert "a" in q

    def test_raw(self) -> None:
        assert QueryParams(b"a=1").raw == b"a=1"


class TestToParams:
    def test_single_and_repeated(self) -> None:
        q = QueryParams(b"a=1&b=2&b=3")
        assert q.to_params() == {"a": "1", "b": ["2", "3"]}

    def test_bracket_keys_always_lists(self) -> None:
        assert QueryParams(b"c[]=4").to_params() == {"c": ["4"]}

    def test_bracket_keys_merge_with_plain_key(self) -> None:
        assert QueryParams(b"c=1&c[]=2").to_params() == {"c": ["1", "2"]}

    def test_empty(self) -> None:
        assert QueryParams(b"").to_params() == {}
