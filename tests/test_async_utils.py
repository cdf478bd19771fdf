"""Tests for the blocking-call bridge."""

from __future__ import annotations

import asyncio
import threading

import pytest

from recital_player.utils.async_utils import run_blocking


def test_run_blocking_runs_off_loop_thread() -> None:
    def work(value: int, *, scale: int) -> tuple[int, str]:
        return value * scale, threading.current_thread().name

    async def run() -> tuple[int, str]:
        return await run_blocking(work, 3, scale=4)

    result, thread_name = asyncio.run(run())
    assert result == 12
    assert thread_name.startswith("recital-scan")


def test_run_blocking_propagates_errors() -> None:
    def boom() -> None:
        raise OSError("disk gone")

    with pytest.raises(OSError, match="disk gone"):
        asyncio.run(run_blocking(boom))


def test_run_blocking_rejects_non_callable() -> None:
    with pytest.raises(TypeError):
        asyncio.run(run_blocking(42))  # type: ignore[arg-type]
