"""Transport controller: the playback surface the presentation layer calls."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from recital_player.services.playback_session import PlaybackSession
from recital_player.services.track_catalog import TrackCatalog, TrackDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportStatus:
    """What the UI needs to render the now-playing area."""

    selected_track: TrackDescriptor | None
    is_playing: bool
    position_s: float
    duration_s: float
    error: str | None = None


class TransportController:
    """Validates UI input and forwards it to the playback session.

    Every operation is a no-op on an empty catalog.
    """

    def __init__(self, session: PlaybackSession) -> None:
        self._session = session

    @property
    def catalog(self) -> TrackCatalog:
        return self._session.catalog

    async def start(self, *, autoplay: bool = True) -> None:
        """Start the session and play the first track when asked to."""
        await self._session.start()
        first = self.catalog.first()
        if first is None:
            logger.info("Library is empty; nothing to play")
            return
        if autoplay:
            await self._session.select_track(first)

    async def shutdown(self) -> None:
        await self._session.shutdown()

    def list_tracks(self) -> tuple[TrackDescriptor, ...]:
        return self.catalog.tracks

    async def play(self, track_id: str) -> bool:
        track = self.catalog.get(track_id)
        if track is None:
            logger.warning("Ignoring play request for unknown track id %s", track_id)
            return False
        return await self._session.select_track(track)

    async def toggle_play_pause(self) -> None:
        if not len(self.catalog):
            return
        await self._session.toggle_play_pause()

    async def next_track(self) -> bool:
        if not len(self.catalog):
            return False
        return await self._session.advance()

    async def seek_to(self, position_s: float) -> None:
        if not len(self.catalog):
            return
        duration = self._session.state.duration_s
        if not math.isfinite(position_s):
            logger.debug("Ignoring non-finite seek target %r", position_s)
            return
        await self._session.seek(_clamp_float(position_s, 0.0, duration))

    def current_status(self) -> TransportStatus:
        state = self._session.state
        return TransportStatus(
            selected_track=self._session.selected_track,
            is_playing=state.is_playing,
            position_s=state.position_s,
            duration_s=state.duration_s,
            error=state.error,
        )


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
