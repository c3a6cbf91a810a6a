"""Tests for heartbeat interval scheduling."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from pulsegate.core.abort import AbortSignal
from pulsegate.core.config import Config
from pulsegate.heartbeat.runner import HeartbeatDeps, HeartbeatRunner
from pulsegate.heartbeat.scheduler import HeartbeatScheduler, start_heartbeat_runner


def make_runner(tmp_path: Path, every: str | None, generator: AsyncMock) -> HeartbeatRunner:
    config = Config(heartbeat={"every": every}, session={"store": str(tmp_path / "sessions.json")})
    return HeartbeatRunner(config, HeartbeatDeps(reply_generator=generator))


class TestHeartbeatScheduler:
    """Test HeartbeatScheduler lifecycle."""

    @pytest.mark.asyncio
    async def test_interval_triggers_runs(self, tmp_path: Path) -> None:
        generator = AsyncMock(return_value=None)
        scheduler = HeartbeatScheduler(make_runner(tmp_path, "100ms", generator))

        scheduler.start()
        try:
            await asyncio.sleep(0.45)
        finally:
            scheduler.stop()

        assert generator.await_count >= 1

    @pytest.mark.asyncio
    async def test_no_interval_leaves_timer_unarmed(self, tmp_path: Path) -> None:
        generator = AsyncMock(return_value=None)
        scheduler = HeartbeatScheduler(make_runner(tmp_path, None, generator))

        scheduler.start()
        try:
            assert scheduler.running
            assert scheduler.interval_ms is None
            assert scheduler.wake.has_handler()
            await asyncio.sleep(0.05)
        finally:
            scheduler.stop()

        generator.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_now_runs_once(self, tmp_path: Path) -> None:
        generator = AsyncMock(return_value=None)
        scheduler = HeartbeatScheduler(make_runner(tmp_path, "1h", generator))

        scheduler.start()
        try:
            scheduler.request_now("manual", coalesce_ms=10)
            scheduler.request_now("manual", coalesce_ms=10)
            await asyncio.sleep(0.1)
            await scheduler.wait_idle()
        finally:
            scheduler.stop()

        generator.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, tmp_path: Path) -> None:
        scheduler = HeartbeatScheduler(make_runner(tmp_path, "1h", AsyncMock(return_value=None)))
        scheduler.start()

        scheduler.stop()
        scheduler.stop()

        assert not scheduler.running
        assert not scheduler.wake.has_handler()

    @pytest.mark.asyncio
    async def test_abort_stops_synchronously(self, tmp_path: Path) -> None:
        """The handler is gone and the timer removed before set() returns."""
        abort = AbortSignal()
        scheduler = start_heartbeat_runner(
            runner=make_runner(tmp_path, "1h", AsyncMock(return_value=None)),
            abort_signal=abort,
        )
        assert scheduler.running

        abort.set()

        assert not scheduler.running
        assert not scheduler.wake.has_handler()
        assert not scheduler.wake.has_pending()

    @pytest.mark.asyncio
    async def test_abort_cancels_due_wake(self, tmp_path: Path) -> None:
        generator = AsyncMock(return_value=None)
        abort = AbortSignal()
        scheduler = start_heartbeat_runner(runner=make_runner(tmp_path, "1h", generator), abort_signal=abort)

        scheduler.request_now("manual", coalesce_ms=0)
        abort.set()
        await asyncio.sleep(0.05)

        generator.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_already_aborted(self, tmp_path: Path) -> None:
        abort = AbortSignal()
        abort.set()

        scheduler = start_heartbeat_runner(
            runner=make_runner(tmp_path, "1h", AsyncMock(return_value=None)),
            abort_signal=abort,
        )

        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_detaches_from_abort(self, tmp_path: Path) -> None:
        abort = AbortSignal()
        scheduler = start_heartbeat_runner(
            runner=make_runner(tmp_path, "1h", AsyncMock(return_value=None)),
            abort_signal=abort,
        )
        scheduler.stop()
        scheduler.start()

        abort.set()

        assert scheduler.running
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_builds_runner_from_config(self, tmp_path: Path) -> None:
        generator = AsyncMock(return_value=None)
        config = Config(heartbeat={"every": "1h"}, session={"store": str(tmp_path / "sessions.json")})

        scheduler = start_heartbeat_runner(config, deps=HeartbeatDeps(reply_generator=generator))
        try:
            assert scheduler.interval_ms == 3_600_000
        finally:
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_loads_config_file_when_omitted(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "config.yaml").write_text("heartbeat:\n  every: 2h\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        scheduler = start_heartbeat_runner(deps=HeartbeatDeps(reply_generator=AsyncMock(return_value=None)))
        try:
            assert scheduler.interval_ms == 7_200_000
        finally:
            scheduler.stop()
