"""Now-playing pane: title, seek bar and play/pause toggle."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import Click, Key
from textual.widget import Widget
from textual.widgets import Static

from recital_player.events import TransportAction
from recital_player.services.transport import TransportStatus
from recital_player.ui.seek_bar import SeekBar


class TransportButton(Static):
    DEFAULT_CSS = """
    TransportButton {
        background: $panel;
        color: $text;
        height: 1;
        width: 8;
        padding: 0 1;
        content-align: center middle;
    }

    TransportButton:focus {
        background: $boost;
    }
    """

    def __init__(self, label: str, *, action: str, **kwargs) -> None:
        super().__init__(label, **kwargs)
        self.action = action
        self.can_focus = True

    def on_click(self, event: Click) -> None:
        self.post_message(TransportAction(self.action))  # type: ignore[arg-type]
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"enter", "space"}:
            return
        self.post_message(TransportAction(self.action))  # type: ignore[arg-type]
        event.stop()


class NowPlayingPane(Widget):
    DEFAULT_CSS = """
    NowPlayingPane {
        height: 6;
        border: solid white;
        padding: 0 1;
        layout: vertical;
    }

    #now-playing-title, #now-playing-notice {
        height: 1;
        overflow: hidden;
    }

    #transport-row {
        height: 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title = Static("No track selected", id="now-playing-title")
        self._seek_bar = SeekBar(id="seek-bar")
        self._play_button = TransportButton(
            "PLAY", action="toggle_play", id="play-toggle"
        )
        self._next_button = TransportButton(">>", action="next", id="next-track")
        self._notice = Static("", id="now-playing-notice")

    @property
    def seek_bar(self) -> SeekBar:
        return self._seek_bar

    def compose(self) -> ComposeResult:
        yield self._title
        yield self._seek_bar
        yield Horizontal(self._play_button, self._next_button, id="transport-row")
        yield self._notice

    def update_status(self, status: TransportStatus) -> None:
        self._title.update(now_playing_text(status))
        self._seek_bar.set_progress(status.position_s, status.duration_s)
        self._play_button.update(play_button_label(status.is_playing))
        notice = status.error.splitlines()[0] if status.error else ""
        self._notice.update(notice)


def now_playing_text(status: TransportStatus) -> Text:
    text = Text()
    if status.selected_track is None:
        text.append("No track selected")
        return text
    text.append("Now Playing: ", style="bold #F2C94C")
    text.append(status.selected_track.display_name)
    text.append(f"  {status.selected_track.speed:.2f}x", style="dim")
    return text


def play_button_label(is_playing: bool) -> str:
    return "PAUSE" if is_playing else "PLAY"
