"""Track list pane showing the catalog in playback order."""

from __future__ import annotations

from collections.abc import Iterable

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Label, ListItem, ListView

from recital_player.events import TrackActivated
from recital_player.services.track_catalog import TrackDescriptor


class TrackListItem(ListItem):
    def __init__(self, track: TrackDescriptor) -> None:
        self.track = track
        self._label = Label(track_label(track, playing=False))
        super().__init__(self._label)

    def set_playing(self, playing: bool) -> None:
        self._label.update(track_label(self.track, playing=playing))


class TrackListPane(Widget):
    DEFAULT_CSS = """
    TrackListPane {
        height: 1fr;
        border: solid white;
    }

    #track-list {
        height: 1fr;
        background: $panel;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._list = ListView(id="track-list")
        self._playing_id: str | None = None

    def compose(self) -> ComposeResult:
        yield self._list

    @property
    def playing_track_id(self) -> str | None:
        return self._playing_id

    async def set_tracks(self, tracks: Iterable[TrackDescriptor]) -> None:
        await self._list.clear()
        items = [TrackListItem(track) for track in tracks]
        if items:
            await self._list.extend(items)
        self._playing_id = None

    def set_playing_track(self, track_id: str | None) -> None:
        if track_id == self._playing_id:
            return
        self._playing_id = track_id
        for index, item in enumerate(self._list.query(TrackListItem)):
            playing = item.track.track_id == track_id
            item.set_playing(playing)
            if playing:
                self._list.index = index

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if isinstance(item, TrackListItem):
            self.post_message(TrackActivated(item.track.track_id))
        event.stop()


def track_label(track: TrackDescriptor, *, playing: bool) -> Text:
    marker = "▶ " if playing else "  "
    text = Text(marker)
    text.append(track.display_name, style="bold #4FC3F7" if playing else "")
    return text
