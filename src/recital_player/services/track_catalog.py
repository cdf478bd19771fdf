"""Ordered, immutable track catalog."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class TrackDescriptor:
    """One playable entry of the library, in catalog order."""

    track_id: str
    display_name: str
    source_key: str
    speed: float
    token: int = 0


class TrackCatalog:
    """Playback order of the library; insertion order is playback order."""

    def __init__(self, tracks: Iterable[TrackDescriptor] = ()) -> None:
        self._tracks = tuple(tracks)
        self._index: dict[str, int] = {}
        for position, track in enumerate(self._tracks):
            if track.track_id in self._index:
                raise ValueError(f"Duplicate track id: {track.track_id}")
            if not track.speed > 0:
                raise ValueError(
                    f"Track {track.track_id} has non-positive speed {track.speed}"
                )
            self._index[track.track_id] = position

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[TrackDescriptor]:
        return iter(self._tracks)

    def __getitem__(self, position: int) -> TrackDescriptor:
        return self._tracks[position]

    @property
    def tracks(self) -> tuple[TrackDescriptor, ...]:
        return self._tracks

    def first(self) -> TrackDescriptor | None:
        return self._tracks[0] if self._tracks else None

    def get(self, track_id: str) -> TrackDescriptor | None:
        position = self._index.get(track_id)
        if position is None:
            return None
        return self._tracks[position]

    def index_of(self, track_id: str) -> int | None:
        return self._index.get(track_id)

    def next_after(self, track_id: str) -> TrackDescriptor | None:
        """Return the track after `track_id`, wrapping from last to first.

        A single-track catalog returns the same track.
        """
        position = self._index.get(track_id)
        if position is None:
            return None
        return self._tracks[(position + 1) % len(self._tracks)]
