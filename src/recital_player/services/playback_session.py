"""Playback session: what is selected, whether it plays, and where it is.

`PlaybackSession` is the single owner of the active media handle. It applies
per-track speed (including the delayed re-apply engines need after buffering),
auto-advances through the catalog on end-of-media, and filters every backend
event by handle identity so late events from a released handle are dropped.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import Literal

from recital_player.events import PlayerStateChanged, TrackChanged
from recital_player.services.playback_backend import (
    BackendEvent,
    EndOfMedia,
    MediaChanged,
    MediaHandle,
    PlaybackBackend,
    PlaybackFailed,
    RateApplied,
    ResolutionError,
)
from recital_player.services.progress_reporter import (
    DEFAULT_INTERVAL_S,
    ProgressReporter,
)
from recital_player.services.track_catalog import TrackCatalog, TrackDescriptor

logger = logging.getLogger(__name__)

STATUS = Literal["idle", "loading", "playing", "paused"]
DURATION_SENTINEL_S = 1.0
SETTLE_DELAY_S = 0.2
REASSERT_DELAY_S = 0.1
RATE_CONFIRM_ATTEMPTS = 3
RATE_TOLERANCE = 1e-3
POSITION_EMIT_THRESHOLD_S = 0.1


def _format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session exposed to transport and UI."""

    status: STATUS = "idle"
    track_id: str | None = None
    position_s: float = 0.0
    duration_s: float = DURATION_SENTINEL_S
    speed: float = 1.0
    error: str | None = None

    @property
    def is_playing(self) -> bool:
        return self.status == "playing"


class PlaybackSession:
    """Owns playback state and emits events to subscribers."""

    def __init__(
        self,
        *,
        backend: PlaybackBackend,
        catalog: TrackCatalog,
        emit_event: Callable[[object], Awaitable[None]],
        settle_delay_s: float = SETTLE_DELAY_S,
        reassert_delay_s: float = REASSERT_DELAY_S,
        poll_interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        if settle_delay_s < 0 or reassert_delay_s < 0:
            raise ValueError("settle delays must be >= 0")
        self._backend = backend
        self._catalog = catalog
        self._emit_event = emit_event
        self._settle_delay_s = settle_delay_s
        self._reassert_delay_s = reassert_delay_s
        self._poll_interval_s = poll_interval_s
        self._state = SessionState()
        self._lock = asyncio.Lock()
        self._handle: MediaHandle | None = None
        self._failed_handle: MediaHandle | None = None
        self._reporter: ProgressReporter | None = None
        self._rate_task: asyncio.Task[None] | None = None
        self._started = False
        self._backend.set_event_handler(self._handle_backend_event)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def handle(self) -> MediaHandle | None:
        return self._handle

    @property
    def reporter(self) -> ProgressReporter | None:
        return self._reporter

    @property
    def catalog(self) -> TrackCatalog:
        return self._catalog

    @property
    def selected_track(self) -> TrackDescriptor | None:
        if self._state.track_id is None:
            return None
        return self._catalog.get(self._state.track_id)

    async def start(self) -> None:
        if self._started:
            return
        await self._backend.start()
        self._started = True

    async def shutdown(self) -> None:
        """Release the handle, stop background tasks and the backend."""
        async with self._lock:
            await self._release_handle()
            self._state = replace(self._state, status="idle")
        with suppress(Exception):
            await self._backend.shutdown()
        self._started = False

    async def select_track(self, track: TrackDescriptor) -> bool:
        """Make `track` the playing track; returns False if it could not load."""
        async with self._lock:
            return await self._select_locked(track, restart=False)

    async def advance(self, *, from_handle: MediaHandle | None = None) -> bool:
        """Select the track after the current one, wrapping at the end.

        With `from_handle` the advance only happens while that handle is still
        the active one; this is how end-of-media triggers it.
        """
        async with self._lock:
            if from_handle is not None:
                if from_handle != self._handle:
                    logger.debug("Ignoring end of media from stale %s", from_handle)
                    return False
                if from_handle == self._failed_handle:
                    logger.info("Not advancing past failed %s", from_handle)
                    return False
            track_id = self._state.track_id
            if track_id is None:
                return False
            next_track = self._catalog.next_after(track_id)
            if next_track is None:
                return False
            logger.info(
                "Advancing to %s (%s)", next_track.display_name, next_track.source_key
            )
            return await self._select_locked(next_track, restart=True)

    async def toggle_play_pause(self) -> None:
        async with self._lock:
            handle = self._handle
            if handle is None or self._state.status not in {"playing", "paused"}:
                return
            if self._state.status == "playing":
                await self._backend.pause()
                self._state = replace(self._state, status="paused")
                await self._emit_state()
                return
            try:
                await self._backend.play()
            except Exception as exc:
                await self._record_playback_failure(handle, str(exc))
                return
            self._failed_handle = None
            self._state = replace(self._state, status="playing", error=None)
            # Resuming can drop the rate back to 1.0x as well.
            self._schedule_rate_enforcement(
                handle, self._state.speed, self._settle_delay_s
            )
            await self._emit_state()

    async def seek(self, position_s: float) -> None:
        async with self._lock:
            handle = self._handle
            if handle is None or self._state.status not in {"playing", "paused"}:
                return
            target = position_s if math.isfinite(position_s) else 0.0
            target = max(0.0, target)
            # A sample taken before the seek must not overwrite the new position.
            await self._stop_reporter()
            self._state = replace(self._state, position_s=target)
            await self._backend.seek(target)
            self._start_reporter(handle)
            await self._emit_state()

    async def _select_locked(self, track: TrackDescriptor, *, restart: bool) -> bool:
        handle = self._handle
        if (
            not restart
            and handle is not None
            and self._state.track_id == track.track_id
            and self._state.status == "playing"
        ):
            # Re-assert: keep the handle and position, only push the speed again.
            logger.debug("Re-asserting speed %.2fx for %s", track.speed, track.track_id)
            self._schedule_rate_enforcement(handle, track.speed, self._reassert_delay_s)
            return True

        await self._release_handle()
        try:
            handle = await self._backend.load(track.source_key)
        except ResolutionError as exc:
            logger.warning("Cannot resolve %s: %s", track.source_key, exc.reason)
            self._state = replace(
                self._state,
                status="idle",
                position_s=0.0,
                error=_format_user_error(
                    what_failed=f"Cannot play '{track.display_name}'.",
                    likely_cause="The audio file is missing or not a supported format.",
                    next_step="Check the library directory, then reselect the track.",
                    detail=exc.reason,
                ),
            )
            await self._emit_state()
            return False
        except Exception as exc:
            logger.exception("Backend failed to load %s: %s", track.source_key, exc)
            self._state = replace(
                self._state,
                status="idle",
                position_s=0.0,
                error=_format_user_error(
                    what_failed=f"Cannot play '{track.display_name}'.",
                    likely_cause="Playback backend could not open the media.",
                    next_step="Verify the backend setup and file access, then retry.",
                    detail=str(exc),
                ),
            )
            await self._emit_state()
            return False

        self._handle = handle
        self._failed_handle = None
        self._state = replace(
            self._state,
            status="loading",
            track_id=track.track_id,
            position_s=0.0,
            speed=track.speed,
            error=None,
        )
        await self._emit_event(TrackChanged(track))
        await self._emit_state()
        try:
            await self._backend.set_rate(track.speed)
            duration = await self._backend.get_duration()
            if duration is not None and duration > 0:
                self._state = replace(self._state, duration_s=duration)
            if self._failed_handle != handle:
                await self._backend.play()
        except Exception as exc:
            await self._record_playback_failure(handle, str(exc))
            return True
        # A failure reported while loading leaves the session paused.
        if self._handle != handle or self._failed_handle == handle:
            return True
        self._state = replace(self._state, status="playing")
        self._schedule_rate_enforcement(handle, track.speed, self._settle_delay_s)
        self._start_reporter(handle)
        logger.debug(
            "Playing %s at %.2fx (handle %d)",
            track.source_key,
            track.speed,
            handle.generation,
        )
        await self._emit_state()
        return True

    def _start_reporter(self, handle: MediaHandle) -> None:
        self._reporter = ProgressReporter(
            self._backend,
            handle,
            self._publish_progress,
            interval_s=self._poll_interval_s,
        )
        self._reporter.start()

    async def _stop_reporter(self) -> None:
        if self._reporter is not None:
            await self._reporter.stop()
            self._reporter = None

    async def _release_handle(self) -> None:
        self._cancel_rate_enforcement()
        await self._stop_reporter()
        if self._handle is None:
            return
        self._handle = None
        if self._state.status in {"playing", "paused"}:
            self._state = replace(self._state, status="loading")
        try:
            await self._backend.pause()
            await self._backend.release()
        except Exception as exc:  # pragma: no cover - backend safety net
            logger.warning("Backend failed to release media: %s", exc)

    def _schedule_rate_enforcement(
        self, handle: MediaHandle, speed: float, delay_s: float
    ) -> None:
        self._cancel_rate_enforcement()
        self._rate_task = asyncio.create_task(
            self._enforce_rate(handle, speed, delay_s)
        )

    def _cancel_rate_enforcement(self) -> None:
        if self._rate_task is not None and not self._rate_task.done():
            if self._rate_task is not asyncio.current_task():
                self._rate_task.cancel()
        self._rate_task = None

    async def _enforce_rate(
        self, handle: MediaHandle, speed: float, delay_s: float
    ) -> None:
        """Re-apply `speed` after the settle delay, then confirm it stuck.

        Engines may reset the rate to 1.0x when leaving a buffering state, so
        the rate is pushed again once playback settled and read back up to
        `RATE_CONFIRM_ATTEMPTS` times.
        """
        try:
            await asyncio.sleep(delay_s)
            if handle != self._handle:
                return
            await self._backend.set_rate(speed)
            for _ in range(RATE_CONFIRM_ATTEMPTS):
                await asyncio.sleep(max(delay_s, 0.01))
                if handle != self._handle:
                    return
                rate = await self._backend.get_rate()
                if rate is None or math.isclose(rate, speed, abs_tol=RATE_TOLERANCE):
                    return
                logger.info(
                    "Playback rate %.2fx did not stick (wanted %.2fx); re-applying",
                    rate,
                    speed,
                )
                await self._backend.set_rate(speed)
        except asyncio.CancelledError:
            return
        except Exception as exc:
            logger.warning("Failed to apply playback rate %.2fx: %s", speed, exc)

    async def _publish_progress(
        self, handle: MediaHandle, position_s: float, duration_s: float | None
    ) -> None:
        if handle != self._handle or self._state.status not in {"playing", "paused"}:
            return
        emit = False
        if duration_s is not None and duration_s > 0:
            if duration_s != self._state.duration_s:
                self._state = replace(self._state, duration_s=duration_s)
                emit = True
        position = max(0.0, position_s)
        if abs(position - self._state.position_s) >= POSITION_EMIT_THRESHOLD_S:
            self._state = replace(self._state, position_s=position)
            emit = True
        if emit:
            await self._emit_state()

    async def _record_playback_failure(self, handle: MediaHandle, detail: str) -> None:
        logger.error("Playback failed for %s: %s", handle.source_key, detail)
        self._failed_handle = handle
        self._cancel_rate_enforcement()
        self._state = replace(
            self._state,
            status="paused",
            error=_format_user_error(
                what_failed="Playback failed for the selected track.",
                likely_cause="The audio file is corrupt or uses an unsupported codec.",
                next_step="Select another track, or replace the file and retry.",
                detail=detail,
            ),
        )
        await self._emit_state()

    async def _handle_backend_event(self, event: BackendEvent) -> None:
        """Route backend events that belong to the active handle."""
        if isinstance(event, EndOfMedia):
            # advance() re-checks the handle under the session lock.
            await self.advance(from_handle=event.handle)
            return
        if event.handle != self._handle:
            logger.debug("Dropping %s from stale handle", type(event).__name__)
            return
        if isinstance(event, MediaChanged):
            if event.duration_s > 0 and event.duration_s != self._state.duration_s:
                self._state = replace(self._state, duration_s=event.duration_s)
                await self._emit_state()
        elif isinstance(event, RateApplied):
            if self._state.status != "playing":
                return
            if math.isclose(event.rate, self._state.speed, abs_tol=RATE_TOLERANCE):
                return
            if self._rate_task is not None and not self._rate_task.done():
                return
            logger.debug(
                "Engine reported rate %.2fx, expected %.2fx",
                event.rate,
                self._state.speed,
            )
            self._schedule_rate_enforcement(
                event.handle, self._state.speed, self._settle_delay_s
            )
        elif isinstance(event, PlaybackFailed):
            await self._record_playback_failure(event.handle, event.message)

    async def _emit_state(self) -> None:
        await self._emit_event(PlayerStateChanged(self._state))
