"""Tests for the deterministic fake playback engine."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from recital_player.services.fake_backend import FakePlaybackBackend
from recital_player.services.playback_backend import (
    BackendEvent,
    EndOfMedia,
    MediaChanged,
    RateApplied,
    ResolutionError,
)


def _run(coro):
    return asyncio.run(coro)


def _recording(backend: FakePlaybackBackend) -> list[BackendEvent]:
    events: list[BackendEvent] = []

    async def handler(event: BackendEvent) -> None:
        events.append(event)

    backend.set_event_handler(handler)
    return events


def test_load_bumps_generation_and_reports_duration() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(
            durations={"a.mp3": 42.0}, tick_interval_ms=60_000
        )
        events = _recording(backend)
        first = await backend.load("a.mp3")
        second = await backend.load("b.mp3")
        assert first != second
        assert second.generation == first.generation + 1
        assert backend.handles_created == 2
        assert backend.live_handles == 1
        assert backend.current_handle == second
        assert events == [MediaChanged(first, 42.0), MediaChanged(second, 180.0)]
        assert await backend.get_duration() == 180.0

    _run(run())


def test_handles_compare_by_identity_not_location() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(resolver=lambda key: Path("/music") / key)
        handle = await backend.load("a.mp3")
        assert handle.location == "/music/a.mp3"
        again = await backend.load("a.mp3")
        assert handle != again

    _run(run())


def test_resolver_failure_leaves_no_handle() -> None:
    def resolver(source_key: str):
        raise ResolutionError(source_key, "file not found")

    async def run() -> None:
        backend = FakePlaybackBackend(resolver=resolver)
        with pytest.raises(ResolutionError):
            await backend.load("gone.mp3")
        assert backend.live_handles == 0
        assert backend.handles_created == 0

    _run(run())


def test_ticks_advance_by_rate_and_end_media() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(
            durations={"a.mp3": 0.2}, tick_interval_ms=20
        )
        events = _recording(backend)
        await backend.start()
        handle = await backend.load("a.mp3")
        await backend.set_rate(2.0)
        await backend.play()
        await asyncio.sleep(0.3)
        assert backend.status == "ended"
        assert await backend.get_position() == 0.2
        assert events.count(EndOfMedia(handle)) == 1
        await backend.shutdown()
        assert backend.live_handles == 0

    _run(run())


def test_pause_freezes_position() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(tick_interval_ms=20)
        await backend.start()
        await backend.load("a.mp3")
        await backend.play()
        await asyncio.sleep(0.1)
        await backend.pause()
        position = await backend.get_position()
        assert position > 0
        await asyncio.sleep(0.1)
        assert await backend.get_position() == position
        await backend.shutdown()

    _run(run())


def test_seek_clamps_to_media_bounds() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(durations={"a.mp3": 50.0})
        await backend.load("a.mp3")
        await backend.seek(75.0)
        assert await backend.get_position() == 50.0
        await backend.seek(-1.0)
        assert await backend.get_position() == 0.0
        assert backend.seek_requests == [75.0, -1.0]

    _run(run())


def test_set_rate_clamps_and_reports() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend()
        events = _recording(backend)
        assert await backend.get_rate() is None
        handle = await backend.load("a.mp3")
        await backend.set_rate(10.0)
        assert await backend.get_rate() == 4.0
        assert events[-1] == RateApplied(handle, 4.0)
        assert backend.rate_requests == [10.0]

    _run(run())


def test_buffering_resets_rate_once() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend(tick_interval_ms=20, reset_rate_on_buffer=True)
        events = _recording(backend)
        await backend.start()
        handle = await backend.load("a.mp3")
        await backend.set_rate(2.0)
        await backend.play()
        await asyncio.sleep(0.1)
        assert await backend.get_rate() == 1.0
        assert RateApplied(handle, 1.0) in events
        await backend.set_rate(2.0)
        await asyncio.sleep(0.1)
        assert await backend.get_rate() == 2.0
        await backend.shutdown()

    _run(run())


def test_finish_and_fail_hooks_target_live_handle() -> None:
    async def run() -> None:
        backend = FakePlaybackBackend()
        events = _recording(backend)
        await backend.finish()
        await backend.fail()
        assert events == []
        handle = await backend.load("a.mp3")
        await backend.fail("bad frame")
        await backend.finish()
        assert [type(event).__name__ for event in events[1:]] == [
            "PlaybackFailed",
            "EndOfMedia",
        ]
        assert all(event.handle == handle for event in events)

    _run(run())
