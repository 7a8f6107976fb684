"""Ordered route table with first-match-wins lookup.

Routes are added during setup and frozen into a tuple. Lookups read a
single tuple snapshot without locking; ``replace`` swaps in a whole new
tuple under a lock for hot reload.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

from trill.routing.route import Route, RouteMatch

if TYPE_CHECKING:
    from trill.http.request import Request


class Router:
    """Route table matched in registration order.

    Usage::

        router = Router()
        router.add(Route.build("GET", "/users/:id", handler))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_pending", "_routes", "_swap_lock")

    def __init__(self) -> None:
        self._pending: list[Route] = []
        self._routes: tuple[Route, ...] = ()
        self._compiled = False
        self._swap_lock = threading.Lock()

    def add(self, route: Route) -> None:
        """Append a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation. Use replace() to swap the table."
            raise RuntimeError(msg)
        self._pending.append(route)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._routes = tuple(self._pending)
        self._pending = []
        self._compiled = True

    def replace(self, routes: Iterable[Route]) -> None:
        """Atomically swap the whole route table.

        Requests already dispatching keep the snapshot they started with.
        """
        new_routes = tuple(routes)
        with self._swap_lock:
            self._routes = new_routes
            self._compiled = True

    @property
    def routes(self) -> tuple[Route, ...]:
        """The current route table snapshot, in registration order."""
        return self._routes if self._compiled else tuple(self._pending)

    def match(
        self,
        method: str,
        path: str,
        *,
        start: int = 0,
        routes: tuple[Route, ...] | None = None,
        request: Request | None = None,
    ) -> RouteMatch | None:
        """Find the first route at or after *start* that serves the request.

        A route matches when it answers *method*, its pattern matches
        *path*, and (given a *request*) all of its conditions hold.
        Pass the same *routes* snapshot on every call made for one
        request so a concurrent ``replace`` cannot shift the indexes.
        """
        table = self.routes if routes is None else routes
        for index in range(start, len(table)):
            route = table[index]
            if not route.answers(method):
                continue
            result = route.matcher.match(path)
            if result is None:
                continue
            if route.conditions and request is not None:
                if not all(condition(request) for condition in route.conditions):
                    continue
            return RouteMatch(route=route, index=index, result=result)
        return None
