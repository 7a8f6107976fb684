"""Outcome values for one call into user code.

Every filter, handler, and error handler runs through ``run_user_code``.
It is the only place ``HaltSignal`` and ``PassSignal`` are caught, and it
reports what happened as a plain value the dispatcher matches on::

    match await run_user_code(handler, **kwargs):
        case Continue(value):
            ...
        case Halted(halt):
            ...
        case Passed():
            ...
        case Faulted(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from trill._internal.invoke import invoke
from trill.signals import Halt, HaltSignal, Pass, PassSignal


@dataclass(frozen=True, slots=True)
class Continue:
    """User code returned normally."""

    value: Any = None


@dataclass(frozen=True, slots=True)
class Halted:
    """User code halted; ``halt.value`` is the response to use."""

    halt: Halt


@dataclass(frozen=True, slots=True)
class Passed:
    """User code passed on the current route."""


@dataclass(frozen=True, slots=True)
class Faulted:
    """User code raised."""

    error: Exception


type Outcome = Continue | Halted | Passed | Faulted


async def run_user_code(func: Any, *args: Any, **kwargs: Any) -> Outcome:
    """Call sync or async *func* and report how it finished.

    A returned ``Halt``/``Pass`` sentinel is reported exactly like the
    matching ``halt()``/``pass_route()`` call.
    """
    try:
        value = await invoke(func, *args, **kwargs)
    except HaltSignal as signal:
        return Halted(signal.halt)
    except PassSignal:
        return Passed()
    except Exception as exc:
        return Faulted(exc)
    match value:
        case Halt():
            return Halted(value)
        case Pass():
            return Passed()
        case _:
            return Continue(value)
