"""Tests for trill.http.headers — request Headers and mutable ResponseHeaders."""

import pytest

from trill.http.headers import Headers, ResponseHeaders


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_getitem(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["Content-Type"] == "text/html"

    def test_case_insensitive(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"

    def test_missing_key_raises(self) -> None:
        h = _h(("Accept", "*/*"))
        with pytest.raises(KeyError):
            h["X-Missing"]

    def test_contains(self) -> None:
        h = _h(("Accept", "*/*"))
        assert "accept" in h
        assert "Accept" in h
        assert "x-missing" not in h

    def test_contains_rejects_non_str(self) -> None:
        h = _h(("Accept", "*/*"))
        assert 42 not in h  # type: ignore[operator]

    def test_len_counts_unique_names(self) -> None:
        h = _h(("Accept", "a"), ("accept", "b"), ("Host", "x"))
        assert len(h) == 2
        assert list(h) == ["accept", "host"]

    def test_get_list(self) -> None:
        h = _h(("Set-Thing", "1"), ("set-thing", "2"))
        assert h.get_list("SET-THING") == ["1", "2"]
        assert h["set-thing"] == "1"

    def test_get_default(self) -> None:
        assert _h().get("x") is None
        assert _h().get("x", "d") == "d"

    def test_raw(self) -> None:
        raw = ((b"a", b"1"),)
        assert Headers(raw).raw is raw


class TestResponseHeaders:
    def test_set_replaces_all_values(self) -> None:
        h = ResponseHeaders()
        h.add("Link", "<a>")
        h.add("Link", "<b>")
        h["link"] = "<c>"
        assert h.pairs() == (("link", "<c>"),)

    def test_add_keeps_repeats(self) -> None:
        h = ResponseHeaders()
        h.add("Link", "<a>")
        h.add("Link", "<b>")
        assert h.pairs() == (("Link", "<a>"), ("Link", "<b>"))
        assert len(h) == 1

    def test_case_insensitive_lookup_keeps_spelling(self) -> None:
        h = ResponseHeaders({"X-Custom": "1"})
        assert h["x-custom"] == "1"
        assert list(h) == ["X-Custom"]

    def test_delete(self) -> None:
        h = ResponseHeaders([("A", "1"), ("B", "2")])
        del h["a"]
        assert h.pairs() == (("B", "2"),)
        with pytest.raises(KeyError):
            del h["a"]

    def test_values_coerced_to_str(self) -> None:
        h = ResponseHeaders()
        h["Content-Length"] = 12  # type: ignore[assignment]
        assert h["content-length"] == "12"

    def test_update_from_mapping(self) -> None:
        h = ResponseHeaders({"A": "1"})
        h.update({"a": "2", "B": "3"})
        assert h["A"] == "2"
        assert h["b"] == "3"
