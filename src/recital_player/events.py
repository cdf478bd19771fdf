"""Cross-module event/message models for service and UI communication.

Dataclass events are used for session-to-app signaling, while
`textual.message` types are used for widget-level interaction routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from textual.message import Message

if TYPE_CHECKING:
    from recital_player.services.playback_session import SessionState
    from recital_player.services.track_catalog import TrackDescriptor


@dataclass(frozen=True)
class PlayerStateChanged:
    """Session event emitted when the effective playback state changes."""

    state: SessionState


@dataclass(frozen=True)
class TrackChanged:
    """Session event emitted when a new track has been loaded."""

    track: TrackDescriptor | None


class TrackActivated(Message):
    """UI message requesting playback of a track from the list."""

    def __init__(self, track_id: str) -> None:
        super().__init__()
        self.track_id = track_id


class TransportAction(Message):
    """UI message for a transport button press."""

    def __init__(self, action: Literal["toggle_play", "next"]) -> None:
        super().__init__()
        self.action = action


class SeekRequested(Message):
    """UI message carrying the seek target chosen on the seek bar."""

    def __init__(self, position_s: float) -> None:
        super().__init__()
        self.position_s = position_s
