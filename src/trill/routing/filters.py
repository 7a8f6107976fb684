"""Before and after filters.

A filter is a handler-shaped callable run around route dispatch,
optionally scoped by a pattern (compiled by the same pattern compiler
routes use) and by HTTP methods.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from trill._internal.types import Filter as FilterFunc
from trill.routing.pattern import EMPTY_MATCH, CompiledPattern, MatchResult, compile_pattern


class FilterStage(StrEnum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True, slots=True)
class Filter:
    """One registered filter."""

    stage: FilterStage
    handler: FilterFunc
    matcher: CompiledPattern | None = None
    methods: frozenset[str] | None = None

    @classmethod
    def build(
        cls,
        stage: FilterStage,
        handler: FilterFunc,
        pattern: str | re.Pattern[str] | None = None,
        methods: Iterable[str] | None = None,
    ) -> Filter:
        return cls(
            stage=stage,
            handler=handler,
            matcher=compile_pattern(pattern) if pattern is not None else None,
            methods=frozenset(m.upper() for m in methods) if methods else None,
        )

    def match(self, method: str, path: str) -> MatchResult | None:
        """Return the scoped match for this request, or ``None`` to skip."""
        if self.methods is not None and method not in self.methods:
            return None
        if self.matcher is None:
            return EMPTY_MATCH
        return self.matcher.match(path)


@dataclass(frozen=True, slots=True)
class FilterChain:
    """Frozen before/after filter sequences, each in registration order."""

    before: tuple[Filter, ...] = ()
    after: tuple[Filter, ...] = ()

    @classmethod
    def from_filters(cls, filters: Iterable[Filter]) -> FilterChain:
        filters = tuple(filters)
        return cls(
            before=tuple(f for f in filters if f.stage is FilterStage.BEFORE),
            after=tuple(f for f in filters if f.stage is FilterStage.AFTER),
        )
