"""Tests for FrameDriver."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from transit_timetables.adapters.runtime import FrameDriver


def _handler() -> MagicMock:
    handler = MagicMock()
    handler.gui_update = AsyncMock()
    return handler


@pytest.mark.asyncio
async def test_run_frame_advances_time_then_calls_both_paths() -> None:
    """Given a scaled driver, when running a frame, then time advances before the callbacks."""
    calls: list[str] = []
    handler = _handler()
    handler.update.side_effect = lambda: calls.append("update")
    handler.gui_update.side_effect = lambda: calls.append("gui_update")
    advance = MagicMock(side_effect=lambda seconds: calls.append(f"advance {seconds}"))
    driver = FrameDriver(handler, frame_interval_ms=200, time_scale=10.0, advance=advance)

    await driver.run_frame()

    assert calls == ["advance 2.0", "update", "gui_update"]
    assert driver.frames_run == 1


@pytest.mark.asyncio
async def test_run_frame_contains_callback_errors() -> None:
    """Given a failing engine callback, when running frames, then the next frame still runs."""
    handler = _handler()
    handler.update.side_effect = [RuntimeError("boom"), None]
    driver = FrameDriver(handler)

    await driver.run_frame()
    await driver.run_frame()

    assert driver.frames_run == 2
    assert handler.update.call_count == 2
    handler.gui_update.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_and_stop_frame_loop() -> None:
    """Given a started driver, when stopping it, then the loop is cancelled cleanly."""
    handler = _handler()
    driver = FrameDriver(handler, frame_interval_ms=1)

    await driver.start()
    await asyncio.sleep(0.05)
    assert driver.running

    await driver.stop()

    assert not driver.running
    assert driver.frames_run >= 1
    assert handler.update.call_count == driver.frames_run


@pytest.mark.asyncio
async def test_start_twice_keeps_single_loop() -> None:
    """Given a running driver, when starting it again, then the same task is kept."""
    driver = FrameDriver(_handler(), frame_interval_ms=1)

    await driver.start()
    task = driver._task
    await driver.start()

    assert driver._task is task
    await driver.stop()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop() -> None:
    """Given a driver that never started, when stopping, then nothing fails."""
    driver = FrameDriver(_handler())

    await driver.stop()
    await driver.wait()

    assert driver.frames_run == 0
