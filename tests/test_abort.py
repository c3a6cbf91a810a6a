"""Tests for the abort signal."""

import asyncio

import pytest

from pulsegate.core.abort import AbortSignal


class TestAbortSignal:
    """Test AbortSignal listener semantics."""

    def test_listeners_run_before_set_returns(self) -> None:
        signal = AbortSignal()
        calls: list[str] = []
        signal.add_listener(lambda: calls.append("a"))
        signal.add_listener(lambda: calls.append("b"))

        signal.set()

        assert calls == ["a", "b"]
        assert signal.is_set()

    def test_set_is_idempotent(self) -> None:
        signal = AbortSignal()
        calls: list[int] = []
        signal.add_listener(lambda: calls.append(1))

        signal.set()
        signal.set()

        assert calls == [1]

    def test_listener_added_after_set_runs_immediately(self) -> None:
        signal = AbortSignal()
        signal.set()
        calls: list[int] = []

        signal.add_listener(lambda: calls.append(1))

        assert calls == [1]

    def test_removed_listener_not_called(self) -> None:
        signal = AbortSignal()
        calls: list[int] = []
        remove = signal.add_listener(lambda: calls.append(1))

        remove()
        remove()
        signal.set()

        assert calls == []

    def test_failing_listener_isolated(self) -> None:
        signal = AbortSignal()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        signal.add_listener(broken)
        signal.add_listener(lambda: calls.append("after"))

        signal.set()

        assert calls == ["after"]

    @pytest.mark.asyncio
    async def test_wait_resolves_on_set(self) -> None:
        signal = AbortSignal()
        waiter = asyncio.create_task(signal.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        signal.set()

        await asyncio.wait_for(waiter, timeout=1)
