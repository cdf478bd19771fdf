"""Fake playback backend for deterministic testing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass
from typing import Literal

from .playback_backend import (
    BackendEvent,
    EndOfMedia,
    MediaChanged,
    MediaHandle,
    PlaybackFailed,
    RateApplied,
    SourceResolver,
)

EngineStatus = Literal["idle", "loaded", "playing", "paused", "ended"]


@dataclass
class _PlaybackState:
    handle: MediaHandle | None = None
    status: EngineStatus = "idle"
    position_s: float = 0.0
    duration_s: float | None = None
    rate: float = 1.0
    buffering: bool = False


class FakePlaybackBackend:
    """In-memory engine that simulates one media handle and its progress.

    With `reset_rate_on_buffer` the engine mimics engines that drop the rate
    back to 1.0x when leaving the buffering phase after `play()`.
    """

    def __init__(
        self,
        *,
        resolver: SourceResolver | None = None,
        durations: Mapping[str, float] | None = None,
        default_duration_s: float = 180.0,
        report_duration: bool = True,
        reset_rate_on_buffer: bool = False,
        tick_interval_ms: int = 250,
    ) -> None:
        self._resolver = resolver
        self._durations = dict(durations or {})
        self._default_duration_s = default_duration_s
        self._report_duration = report_duration
        self._reset_rate_on_buffer = reset_rate_on_buffer
        self._tick_interval_ms = tick_interval_ms
        self._state = _PlaybackState()
        self._generation = 0
        self._handler: Callable[[BackendEvent], Awaitable[None]] | None = None
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.handles_created = 0
        self.rate_requests: list[float] = []
        self.seek_requests: list[float] = []

    @property
    def live_handles(self) -> int:
        return 0 if self._state.handle is None else 1

    @property
    def current_handle(self) -> MediaHandle | None:
        return self._state.handle

    @property
    def status(self) -> EngineStatus:
        return self._state.status

    def set_event_handler(
        self, handler: Callable[[BackendEvent], Awaitable[None]]
    ) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._ticker_loop())

    async def shutdown(self) -> None:
        await self.release()
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def load(self, source_key: str) -> MediaHandle:
        async with self._lock:
            self._state = _PlaybackState()
            location = source_key
            if self._resolver is not None:
                location = str(self._resolver(source_key))
            self._generation += 1
            handle = MediaHandle(self._generation, source_key, location)
            self.handles_created += 1
            self._state = _PlaybackState(
                handle=handle,
                status="loaded",
                duration_s=self._durations.get(source_key, self._default_duration_s),
            )
            duration = self._state.duration_s
        if self._report_duration and duration is not None:
            await self._emit(MediaChanged(handle, duration))
        return handle

    async def release(self) -> None:
        async with self._lock:
            self._state = _PlaybackState()

    async def play(self) -> None:
        async with self._lock:
            if self._state.handle is None:
                return
            if self._state.status == "ended":
                self._state.position_s = 0.0
            self._state.status = "playing"
            if self._reset_rate_on_buffer:
                self._state.buffering = True

    async def pause(self) -> None:
        async with self._lock:
            if self._state.status == "playing":
                self._state.status = "paused"

    async def seek(self, position_s: float) -> None:
        async with self._lock:
            self.seek_requests.append(position_s)
            if self._state.handle is None:
                return
            upper = self._state.duration_s
            position = max(0.0, position_s)
            if upper is not None:
                position = min(position, upper)
            self._state.position_s = position

    async def set_rate(self, rate: float) -> None:
        async with self._lock:
            self.rate_requests.append(rate)
            handle = self._state.handle
            if handle is None:
                return
            self._state.rate = _clamp_float(rate, 0.25, 4.0)
            applied = self._state.rate
        await self._emit(RateApplied(handle, applied))

    async def get_rate(self) -> float | None:
        async with self._lock:
            if self._state.handle is None:
                return None
            return self._state.rate

    async def get_position(self) -> float:
        async with self._lock:
            return self._state.position_s

    async def get_duration(self) -> float | None:
        async with self._lock:
            if not self._report_duration:
                return None
            return self._state.duration_s

    async def finish(self) -> None:
        """Simulate the active handle playing to its end."""
        async with self._lock:
            handle = self._state.handle
            if handle is None:
                return
            self._state.status = "ended"
            if self._state.duration_s is not None:
                self._state.position_s = self._state.duration_s
        await self._emit(EndOfMedia(handle))

    async def fail(self, message: str = "decode error") -> None:
        """Simulate a decode failure on the active handle."""
        async with self._lock:
            handle = self._state.handle
            if handle is None:
                return
            self._state.status = "paused"
        await self._emit(PlaybackFailed(handle, message))

    async def inject_event(self, event: BackendEvent) -> None:
        """Deliver an arbitrary event, e.g. a late one from a released handle."""
        await self._emit(event)

    async def _ticker_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self._tick_interval_ms / 1000)
                await self._tick()
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        events: list[BackendEvent] = []
        async with self._lock:
            handle = self._state.handle
            if handle is None or self._state.status != "playing":
                return
            if self._state.buffering:
                self._state.buffering = False
                if self._state.rate != 1.0:
                    self._state.rate = 1.0
                    events.append(RateApplied(handle, 1.0))
            next_pos = (
                self._state.position_s
                + self._tick_interval_ms / 1000 * self._state.rate
            )
            duration = self._state.duration_s
            if duration is not None and next_pos >= duration:
                next_pos = duration
                self._state.status = "ended"
                events.append(EndOfMedia(handle))
            self._state.position_s = next_pos
        for event in events:
            await self._emit(event)

    async def _emit(self, event: BackendEvent) -> None:
        if self._handler is None:
            return
        await self._handler(event)


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
