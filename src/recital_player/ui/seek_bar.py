"""Seek bar bound to `[0, duration]` of the playing track."""

from __future__ import annotations

import math
from time import monotonic

from rich.text import Text
from textual.events import Blur, Key, MouseDown, MouseMove, MouseUp
from textual.widget import Widget

from recital_player.events import SeekRequested
from recital_player.utils.time_format import format_time_pair_s


class SeekBar(Widget):
    """Single-line position slider with mouse drag and arrow-key seeking.

    While the user drags, engine position updates do not move the thumb;
    the seek is only requested when the drag ends.
    """

    DEFAULT_CSS = """
    SeekBar {
        height: 1;
    }
    SeekBar:focus {
        background: $boost;
    }
    """

    def __init__(self, *, key_step_s: float = 5.0, **kwargs) -> None:
        if key_step_s <= 0:
            raise ValueError("key_step_s must be > 0")
        super().__init__(**kwargs)
        self.key_step_s = key_step_s
        self.position_s = 0.0
        self.duration_s = 0.0
        self._dragging = False
        self._last_interaction = 0.0
        self.drag_timeout = 0.5
        self._bar_start = 0
        self._bar_length = 0
        self.can_focus = True

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    @property
    def fraction(self) -> float:
        return time_fraction(self.position_s, self.duration_s)

    def set_progress(self, position_s: float, duration_s: float) -> None:
        self._maybe_end_stale_drag()
        self.duration_s = max(0.0, duration_s)
        if not self._dragging:
            self.position_s = max(0.0, position_s)
        self.refresh()

    def render(self) -> Text:
        width = self.size.width
        if width <= 0:
            return Text("")
        position, duration = format_time_pair_s(self.position_s, self.duration_s)
        value_text = f"{position}/{duration}"
        bar_length = width - len(value_text) - 1
        if bar_length < 3:
            self._bar_start = 0
            self._bar_length = 0
            return Text(value_text[:width], no_wrap=True)
        self._bar_start = 0
        self._bar_length = bar_length
        bar = render_bar(self.fraction, bar_length)
        return Text(f"{bar} {value_text}", no_wrap=True)

    def on_mouse_down(self, event: MouseDown) -> None:
        if event.button != 1 or not self._point_in_bar(event.x):
            return
        self.focus()
        self._dragging = True
        self._last_interaction = monotonic()
        self.capture_mouse()
        self._move_to_x(event.x)
        event.stop()

    def on_mouse_move(self, event: MouseMove) -> None:
        if not self._dragging:
            return
        self._last_interaction = monotonic()
        self._move_to_x(event.x)
        event.stop()

    def on_mouse_up(self, event: MouseUp) -> None:
        if not self._dragging:
            return
        self._dragging = False
        self.release_mouse()
        self._move_to_x(event.x)
        self._request_seek()
        event.stop()

    def on_blur(self, event: Blur) -> None:
        if not self._dragging:
            return
        self._dragging = False
        self.release_mouse()
        self.refresh()
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"left", "right"}:
            return
        delta = -self.key_step_s if event.key == "left" else self.key_step_s
        self.position_s = clamp_float(self.position_s + delta, 0.0, self.duration_s)
        self._request_seek()
        self.refresh()
        event.stop()

    def _point_in_bar(self, x: int) -> bool:
        if self._bar_length <= 0:
            return False
        return self._bar_start <= x < self._bar_start + self._bar_length

    def _move_to_x(self, x: int) -> None:
        if self._bar_length <= 0:
            return
        relative = x - self._bar_start
        fraction = 0.0 if self._bar_length == 1 else relative / (self._bar_length - 1)
        self.position_s = position_from_fraction(fraction, self.duration_s)
        self.refresh()

    def _request_seek(self) -> None:
        if self.duration_s <= 0:
            return
        self.post_message(SeekRequested(self.position_s))

    def _maybe_end_stale_drag(self) -> None:
        if not self._dragging or self._last_interaction <= 0:
            return
        if monotonic() - self._last_interaction <= self.drag_timeout:
            return
        self._dragging = False
        self.release_mouse()


def render_bar(fraction: float, bar_length: int) -> str:
    if bar_length <= 0:
        return ""
    if bar_length == 1:
        return "●"
    thumb_index = int(round(clamp_float(fraction, 0.0, 1.0) * (bar_length - 1)))
    chars = ["="] * thumb_index + ["●"] + ["-"] * (bar_length - thumb_index - 1)
    return "".join(chars)


def time_fraction(position_s: float, duration_s: float) -> float:
    if duration_s <= 0 or not math.isfinite(position_s):
        return 0.0
    return clamp_float(position_s / duration_s, 0.0, 1.0)


def position_from_fraction(fraction: float, duration_s: float) -> float:
    if duration_s <= 0 or not math.isfinite(fraction):
        return 0.0
    return clamp_float(fraction, 0.0, 1.0) * duration_s


def clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
