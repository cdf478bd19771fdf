"""Tests for now-playing and track list rendering helpers."""

from __future__ import annotations

from recital_player.services.track_catalog import TrackDescriptor
from recital_player.services.transport import TransportStatus
from recital_player.ui.now_playing import now_playing_text, play_button_label
from recital_player.ui.track_list import track_label

TRACK = TrackDescriptor(
    track_id="t30",
    display_name="Al-Mulk",
    source_key="030.mp3",
    speed=1.5,
    token=30,
)


def test_now_playing_text_without_track() -> None:
    status = TransportStatus(
        selected_track=None, is_playing=False, position_s=0.0, duration_s=1.0
    )
    assert now_playing_text(status).plain == "No track selected"


def test_now_playing_text_shows_title_and_speed() -> None:
    status = TransportStatus(
        selected_track=TRACK, is_playing=True, position_s=12.0, duration_s=300.0
    )
    assert now_playing_text(status).plain == "Now Playing: Al-Mulk  1.50x"


def test_play_button_label_reflects_state() -> None:
    assert play_button_label(True) == "PAUSE"
    assert play_button_label(False) == "PLAY"


def test_track_label_marks_playing_track() -> None:
    assert track_label(TRACK, playing=True).plain == "▶ Al-Mulk"
    assert track_label(TRACK, playing=False).plain == "  Al-Mulk"
