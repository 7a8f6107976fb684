"""Tests for trill.routing.pattern — pattern compilation and path normalization."""

import re

import pytest

from trill.errors import ConfigurationError, PatternError
from trill.routing.pattern import EMPTY_MATCH, MatchResult, compile_pattern, normalize_path


class TestLiteralPatterns:
    def test_exact_match(self) -> None:
        result = compile_pattern("/about").match("/about")
        assert result is not None
        assert result.params == {}

    def test_no_prefix_match(self) -> None:
        assert compile_pattern("/about").match("/about/team") is None

    def test_trailing_slash_sensitive(self) -> None:
        assert compile_pattern("/foo").match("/foo/") is None
        assert compile_pattern("/foo/").match("/foo") is None

    def test_root(self) -> None:
        assert compile_pattern("/").match("/") is not None
        assert compile_pattern("/").match("/x") is None

    def test_regex_metacharacters_are_literal(self) -> None:
        pattern = compile_pattern("/a.b+c")
        assert pattern.match("/a.b+c") is not None
        assert pattern.match("/axbbc") is None

    def test_escaped_special_character(self) -> None:
        pattern = compile_pattern(r"/files/\*")
        assert pattern.match("/files/*") is not None
        assert pattern.match("/files/readme") is None


class TestNamedParams:
    def test_binds_segment(self) -> None:
        result = compile_pattern("/hello/:name").match("/hello/foo")
        assert result is not None
        assert result.params == {"name": "foo"}

    def test_single_segment_only(self) -> None:
        assert compile_pattern("/hello/:name").match("/hello/foo/bar") is None

    def test_requires_a_value(self) -> None:
        assert compile_pattern("/hello/:name").match("/hello/") is None

    def test_multiple_params(self) -> None:
        result = compile_pattern("/:year/:month").match("/2024/06")
        assert result is not None
        assert result.params == {"year": "2024", "month": "06"}

    def test_param_beside_literal_dot(self) -> None:
        result = compile_pattern("/:file.:ext").match("/report.pdf")
        assert result is not None
        assert result.params == {"file": "report", "ext": "pdf"}

    def test_names(self) -> None:
        assert compile_pattern("/:a/:b").names == ("a", "b")


class TestOptional:
    def test_optional_param_present(self) -> None:
        result = compile_pattern("/posts/:format?").match("/posts/json")
        assert result is not None
        assert result.params == {"format": "json"}

    def test_optional_param_absent(self) -> None:
        result = compile_pattern("/posts/:format?").match("/posts/")
        assert result is not None
        assert result.params == {"format": None}

    def test_optional_param_does_not_drop_literal_slash(self) -> None:
        assert compile_pattern("/posts/:format?").match("/posts") is None

    def test_optional_trailing_slash(self) -> None:
        pattern = compile_pattern("/posts/?")
        assert pattern.match("/posts") is not None
        assert pattern.match("/posts/") is not None

    def test_optional_literal_character(self) -> None:
        pattern = compile_pattern("/colou?r")
        assert pattern.match("/color") is not None
        assert pattern.match("/colour") is not None


class TestSplats:
    def test_single_splat(self) -> None:
        result = compile_pattern("/files/*").match("/files/a/b/c.txt")
        assert result is not None
        assert result.splat == ("a/b/c.txt",)

    def test_multiple_splats_in_order(self) -> None:
        result = compile_pattern("/say/*/to/*").match("/say/hello/to/world")
        assert result is not None
        assert result.splat == ("hello", "world")

    def test_splats_are_lazy(self) -> None:
        result = compile_pattern("/*/*").match("/a/b/c")
        assert result is not None
        assert result.splat == ("a", "b/c")

    def test_splat_around_dot(self) -> None:
        result = compile_pattern("/download/*.*").match("/download/path/to/file.xml")
        assert result is not None
        assert result.splat == ("path/to/file", "xml")

    def test_splat_requires_a_character(self) -> None:
        assert compile_pattern("/files/*").match("/files/") is None

    def test_bare_star_matches_everything(self) -> None:
        result = compile_pattern("*").match("/any/path")
        assert result is not None
        assert result.splat == ("/any/path",)

    def test_splat_with_named_param(self) -> None:
        result = compile_pattern("/:user/*").match("/alice/docs/a.txt")
        assert result is not None
        assert result.params == {"user": "alice"}
        assert result.splat == ("docs/a.txt",)


class TestRegexPatterns:
    def test_full_match_required(self) -> None:
        pattern = compile_pattern(re.compile(r"/(\d+)"))
        assert pattern.match("/42") is not None
        assert pattern.match("/42/extra") is None

    def test_positional_captures(self) -> None:
        result = compile_pattern(re.compile(r"/hello/([\w]+)")).match("/hello/world")
        assert result is not None
        assert result.captures == ("world",)

    def test_named_groups_bound_and_captured(self) -> None:
        result = compile_pattern(re.compile(r"/(?P<year>\d{4})/(\d+)")).match("/2024/7")
        assert result is not None
        assert result.params == {"year": "2024"}
        assert result.captures == ("2024", "7")

    def test_is_regex_flag(self) -> None:
        assert compile_pattern(re.compile("/x")).is_regex is True
        assert compile_pattern("/x").is_regex is False


class TestPatternErrors:
    @pytest.mark.parametrize(
        "pattern",
        [
            "",
            "about",
            "/users/:",
            "/users/:1abc",
            "/:id/:id",
            "?/x",
            "/x??",
            "/:splat",
            "/:captures",
            "/trailing\\",
        ],
    )
    def test_invalid_patterns(self, pattern: str) -> None:
        with pytest.raises(PatternError):
            compile_pattern(pattern)

    def test_reserved_regex_group(self) -> None:
        with pytest.raises(PatternError, match="reserved"):
            compile_pattern(re.compile(r"/(?P<splat>.+)"))

    def test_non_string_pattern(self) -> None:
        with pytest.raises(PatternError):
            compile_pattern(42)  # type: ignore[arg-type]

    def test_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            compile_pattern("nope")

    def test_message_names_pattern(self) -> None:
        with pytest.raises(PatternError) as exc_info:
            compile_pattern("/:id/:id")
        assert "/:id/:id" in str(exc_info.value)
        assert "more than once" in exc_info.value.reason


class TestDeterminism:
    def test_same_pattern_same_regex(self) -> None:
        first = compile_pattern("/say/*/to/:name?")
        second = compile_pattern("/say/*/to/:name?")
        assert first.regex.pattern == second.regex.pattern
        assert first.match("/say/hi/to/bob") == second.match("/say/hi/to/bob")


class TestMatchResult:
    def test_as_params_flattens(self) -> None:
        result = MatchResult(params={"a": "1"}, splat=("x", "y"))
        assert result.as_params() == {"a": "1", "splat": ["x", "y"]}

    def test_as_params_omits_empty_sequences(self) -> None:
        assert MatchResult(params={"a": "1"}).as_params() == {"a": "1"}

    def test_empty_match(self) -> None:
        assert EMPTY_MATCH.as_params() == {}


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/foo/bar", "/foo/bar"),
            ("/foo/../bar", "/bar"),
            ("/foo/./bar/", "/foo/bar/"),
            ("/../../etc/passwd", "/etc/passwd"),
            ("//double//slash", "/double/slash"),
            ("/a/b/..", "/a/"),
            ("/a/.", "/a/"),
            ("/..", "/"),
            ("", "/"),
        ],
    )
    def test_normalize(self, path: str, expected: str) -> None:
        assert normalize_path(path) == expected
