"""Halt and pass — deliberate control transfer out of user code.

Handlers and filters have two ways to stop early:

- Return a sentinel: ``return Halt(410)`` or ``return Pass()``.
- Call a helper from anywhere below the handler: ``halt(410)`` or
  ``pass_route()``. These raise a signal that the dispatcher turns back
  into the same sentinel at the boundary where it calls user code.

The signals derive from ``BaseException`` so an application's
``except Exception`` blocks cannot swallow them. They never leave the
dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn


@dataclass(frozen=True, slots=True)
class Halt:
    """Stop processing and respond with *value*.

    Arguments follow the same shapes a handler may return::

        Halt()                            # keep the current status and body
        Halt(410)                         # status only
        Halt("gone")                      # body only
        Halt(401, "go away")              # status and body
        Halt(402, {"X-Why": "pay"}, "")   # status, headers, body
    """

    value: Any = None

    def __init__(self, *args: Any) -> None:
        if not args:
            value = None
        elif len(args) == 1:
            value = args[0]
        else:
            value = args
        object.__setattr__(self, "value", value)


@dataclass(frozen=True, slots=True)
class Pass:
    """Give up on the current route; the next matching route is tried."""


class ControlSignal(BaseException):
    """Base for the signals raised by ``halt`` and ``pass_route``."""


class HaltSignal(ControlSignal):
    def __init__(self, halt: Halt) -> None:
        super().__init__(halt)
        self.halt = halt


class PassSignal(ControlSignal):
    pass


def halt(*args: Any) -> NoReturn:
    """Stop the current handler or filter immediately.

    Takes the same arguments as ``Halt``. After-filters still run.
    """
    raise HaltSignal(Halt(*args))


def pass_route() -> NoReturn:
    """Abandon the current route and continue with the next match."""
    raise PassSignal()
