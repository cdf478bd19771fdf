"""Playback backend contracts and event payloads.

`PlaybackSession` depends on this protocol to stay engine-agnostic. Concrete
implementations (fake/VLC) own at most one loaded media handle at a time and
tag every event with the handle it originated from, so the session can drop
late events from a handle it has already released.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


class ResolutionError(Exception):
    """Raised when a source key does not resolve to a playable resource."""

    def __init__(self, source_key: str, reason: str) -> None:
        super().__init__(f"{source_key}: {reason}")
        self.source_key = source_key
        self.reason = reason


@dataclass(frozen=True)
class MediaHandle:
    """Opaque identity of one loaded media asset.

    `generation` increases monotonically per backend instance, so two handles
    compare equal only when they are the same load.
    """

    generation: int
    source_key: str
    location: str = field(compare=False)


@dataclass(frozen=True)
class BackendEvent:
    """Base type for backend-originated events."""

    handle: MediaHandle


@dataclass(frozen=True)
class MediaChanged(BackendEvent):
    """Engine learned the duration of the loaded asset."""

    duration_s: float


@dataclass(frozen=True)
class RateApplied(BackendEvent):
    """Engine reports the playback rate it is actually using."""

    rate: float


@dataclass(frozen=True)
class EndOfMedia(BackendEvent):
    """Playback of the handle reached the end of the asset."""


@dataclass(frozen=True)
class PlaybackFailed(BackendEvent):
    """Engine could not decode or render the asset."""

    message: str


SourceResolver = Callable[[str], Path]
"""Maps a catalog source key to a file path, raising `ResolutionError`."""


class PlaybackBackend(Protocol):
    """Playback engine protocol consumed by `PlaybackSession`."""

    def set_event_handler(
        self, handler: Callable[[BackendEvent], Awaitable[None]]
    ) -> None: ...

    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def load(self, source_key: str) -> MediaHandle: ...

    async def release(self) -> None: ...

    async def play(self) -> None: ...

    async def pause(self) -> None: ...

    async def seek(self, position_s: float) -> None: ...

    async def set_rate(self, rate: float) -> None: ...

    async def get_rate(self) -> float | None: ...

    async def get_position(self) -> float: ...

    async def get_duration(self) -> float | None: ...
