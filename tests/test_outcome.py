"""Tests for trill.server.outcome and trill.signals — halt/pass as values."""

import pytest

from trill.server.outcome import Continue, Faulted, Halted, Passed, run_user_code
from trill.signals import ControlSignal, Halt, Pass, halt, pass_route


class TestHaltValue:
    def test_no_args(self) -> None:
        assert Halt().value is None

    def test_single_arg(self) -> None:
        assert Halt(410).value == 410

    def test_many_args_form_tuple(self) -> None:
        assert Halt(401, "no").value == (401, "no")

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Halt().value = 1  # type: ignore[misc]


class TestSignals:
    def test_signals_are_not_exceptions(self) -> None:
        assert not issubclass(ControlSignal, Exception)

    def test_halt_raises(self) -> None:
        with pytest.raises(ControlSignal):
            halt(500)

    def test_pass_raises(self) -> None:
        with pytest.raises(ControlSignal):
            pass_route()


class TestRunUserCode:
    async def test_continue(self) -> None:
        assert await run_user_code(lambda: "x") == Continue("x")

    async def test_async_function(self) -> None:
        async def handler(a, b=0):
            return a + b

        assert await run_user_code(handler, 1, b=2) == Continue(3)

    async def test_halt_signal(self) -> None:
        def handler():
            halt(404, "gone")

        assert await run_user_code(handler) == Halted(Halt(404, "gone"))

    async def test_returned_halt(self) -> None:
        assert await run_user_code(lambda: Halt(302)) == Halted(Halt(302))

    async def test_pass_signal(self) -> None:
        assert await run_user_code(pass_route) == Passed()

    async def test_returned_pass(self) -> None:
        assert await run_user_code(Pass) == Passed()

    async def test_fault(self) -> None:
        error = ValueError("x")

        def handler():
            raise error

        assert await run_user_code(handler) == Faulted(error)

    async def test_base_exceptions_propagate(self) -> None:
        def handler():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            await run_user_code(handler)
