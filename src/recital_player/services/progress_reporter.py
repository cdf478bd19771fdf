"""Periodic position sampler bound to one media handle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

from .playback_backend import MediaHandle, PlaybackBackend

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 0.5

ProgressSink = Callable[[MediaHandle, float, float | None], Awaitable[None]]


class ProgressReporter:
    """Samples engine position on a fixed interval and republishes it.

    One reporter serves exactly one handle. Track changes stop the old reporter
    and start a new one; sampling is lossy and a failed read skips the tick.
    """

    def __init__(
        self,
        backend: PlaybackBackend,
        handle: MediaHandle,
        publish: ProgressSink,
        *,
        interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._backend = backend
        self._handle = handle
        self._publish = publish
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def handle(self) -> MediaHandle:
        return self._handle

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        task = self._task
        self._task = None
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                try:
                    position = await self._backend.get_position()
                    duration = await self._backend.get_duration()
                except Exception as exc:  # pragma: no cover - backend safety net
                    logger.debug("Skipping progress sample: %s", exc)
                    continue
                await self._publish(self._handle, position, duration)
        except asyncio.CancelledError:
            return
