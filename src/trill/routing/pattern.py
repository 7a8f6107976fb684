"""Route pattern compilation.

Turns a route pattern into an anchored regular expression plus the
bookkeeping needed to hand parameters back in a structured form.

Pattern syntax::

    /hello/:name         named parameter, one path segment
    /posts/:format?      optional named parameter (absent -> None)
    /say/*/to/*          splats, collected in order under "splat"
    /download/*.*        splats around a literal dot
    /posts/?             "?" makes the preceding character optional
    /files/\\*           backslash escapes a special character
    re.compile(r"/(\\d+)")   a full regular expression; groups go to "captures"

Literal text is matched exactly, so ``/foo`` and ``/foo/`` are different
patterns.

Splats are lazy: each takes as little as it can while the rest of the
pattern still matches, so ``/*/*`` on ``/a/b/c`` gives ``("a", "b/c")``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from trill.errors import PatternError

# Named parameters stop at segment, query, and fragment delimiters
PARAM_REGEX = r"[^/?#]+"
SPLAT_REGEX = r".+?"

RESERVED_NAMES = frozenset({"splat", "captures"})

_NAME_RX = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Parameters extracted by a successful match."""

    params: dict[str, str | None] = field(default_factory=dict)
    splat: tuple[str, ...] = ()
    captures: tuple[str | None, ...] = ()

    def as_params(self) -> dict[str, Any]:
        """Flatten into the shape merged into ``ctx.params``.

        Named values keep their names; ``splat`` and ``captures`` appear
        as lists only when the pattern produced them.
        """
        merged: dict[str, Any] = dict(self.params)
        if self.splat:
            merged["splat"] = list(self.splat)
        if self.captures:
            merged["captures"] = list(self.captures)
        return merged


EMPTY_MATCH = MatchResult()


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A compiled route pattern.

    ``match`` is pure: the same path always yields an equal result.
    """

    source: str
    regex: re.Pattern[str]
    names: tuple[str, ...] = ()
    splat_groups: tuple[str, ...] = ()
    is_regex: bool = False

    def match(self, path: str) -> MatchResult | None:
        """Match *path* in full, or return ``None``."""
        m = self.regex.fullmatch(path)
        if m is None:
            return None
        if self.is_regex:
            return MatchResult(params=m.groupdict(), captures=m.groups())
        params = {name: m.group(name) for name in self.names}
        splat = tuple(m.group(group) or "" for group in self.splat_groups)
        return MatchResult(params=params, splat=splat)


@dataclass(slots=True)
class _Fragment:
    """One piece of the regex under construction."""

    regex: str
    optional: bool = False
    literal: bool = True


def compile_pattern(pattern: str | re.Pattern[str]) -> CompiledPattern:
    """Compile a route pattern.

    Raises ``PatternError`` for anything that cannot be compiled; the
    error surfaces at registration time so a bad route never serves.
    """
    if isinstance(pattern, re.Pattern):
        return _compile_regex(pattern)
    if not isinstance(pattern, str):
        raise PatternError(pattern, "expected a string or a compiled regular expression")
    if not pattern or pattern[0] not in "/*":
        raise PatternError(pattern, "must start with '/' (or be a bare '*')")

    fragments: list[_Fragment] = []
    names: list[str] = []
    splats: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == ":":
            name_match = _NAME_RX.match(pattern, i + 1)
            if name_match is None:
                raise PatternError(pattern, f"':' at position {i} must be followed by a name")
            name = name_match.group()
            if name in RESERVED_NAMES:
                raise PatternError(pattern, f"{name!r} is reserved and cannot name a parameter")
            if name in names:
                raise PatternError(pattern, f"parameter {name!r} appears more than once")
            names.append(name)
            fragments.append(_Fragment(f"(?P<{name}>{PARAM_REGEX})", literal=False))
            i = name_match.end()
            continue
        if char == "*":
            group = f"_splat{len(splats)}"
            splats.append(group)
            fragments.append(_Fragment(f"(?P<{group}>{SPLAT_REGEX})", literal=False))
        elif char == "?":
            if not fragments:
                raise PatternError(pattern, "'?' needs something before it to make optional")
            last = fragments[-1]
            if last.optional:
                raise PatternError(pattern, f"'?' at position {i} follows another '?'")
            last.regex = f"(?:{last.regex})?"
            last.optional = True
        elif char == "\\":
            if i + 1 >= len(pattern):
                raise PatternError(pattern, "trailing backslash escapes nothing")
            i += 1
            fragments.append(_Fragment(re.escape(pattern[i])))
        else:
            fragments.append(_Fragment(re.escape(char)))
        i += 1

    source = "".join(fragment.regex for fragment in fragments)
    try:
        regex = re.compile(source)
    except re.error as exc:
        raise PatternError(pattern, str(exc)) from exc
    return CompiledPattern(
        source=pattern,
        regex=regex,
        names=tuple(names),
        splat_groups=tuple(splats),
    )


def _compile_regex(pattern: re.Pattern[str]) -> CompiledPattern:
    if not isinstance(pattern.pattern, str):
        raise PatternError(pattern, "byte patterns are not supported")
    reserved = RESERVED_NAMES.intersection(pattern.groupindex)
    if reserved:
        raise PatternError(pattern, f"group name {sorted(reserved)[0]!r} is reserved")
    return CompiledPattern(
        source=pattern.pattern,
        regex=pattern,
        names=tuple(pattern.groupindex),
        is_regex=True,
    )


def normalize_path(path: str) -> str:
    """Collapse ``.``/``..`` segments and repeated slashes.

    Never climbs above the root. A trailing slash (or trailing ``/.``,
    ``/..``) is kept as a trailing slash::

        /foo/../bar      ->  /bar
        /foo/./bar/      ->  /foo/bar/
        /../../etc       ->  /etc
    """
    if not path:
        return "/"
    if "/." not in path and "//" not in path:
        return path
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    cleaned = "/" + "/".join(parts)
    if parts and re.search(r"/\.{0,2}$", path):
        cleaned += "/"
    return cleaned
