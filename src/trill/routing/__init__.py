"""Routing — pattern compilation, ordered route table, and filters.

Routes are registered during setup, compiled as they are declared, and
frozen into an ordered tuple when the app freezes. Matching walks that
tuple in registration order; the first hit wins.
"""

from trill.routing.pattern import CompiledPattern, MatchResult, compile_pattern, normalize_path
from trill.routing.route import HTTP_METHODS, Route, RouteMatch
from trill.routing.router import Router

__all__ = [
    "HTTP_METHODS",
    "CompiledPattern",
    "MatchResult",
    "Route",
    "RouteMatch",
    "Router",
    "compile_pattern",
    "normalize_path",
]
