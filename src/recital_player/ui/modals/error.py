"""Modal used to surface playback and startup failures."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class ErrorModal(ModalScreen[None]):
    """Show a what-failed / likely-cause / next-step message until dismissed.

    The first line of the message becomes the heading.
    """

    BINDINGS = [("escape", "close", "Close"), ("enter", "close", "Close")]

    def __init__(self, message: str) -> None:
        super().__init__()
        self.message = message

    @property
    def heading(self) -> str:
        return self.message.splitlines()[0] if self.message else "Error"

    def compose(self) -> ComposeResult:
        details = "\n".join(self.message.splitlines()[1:])
        with Vertical(id="modal-body"):
            yield Static(self.heading, id="modal-heading")
            if details:
                yield Label(details, id="modal-details")
            yield Button("OK", id="ok", variant="error")

    def on_mount(self) -> None:
        self.query_one("#ok", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)
