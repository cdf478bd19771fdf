"""Textual TUI app for recital-player."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from . import __version__
from .events import (
    PlayerStateChanged,
    SeekRequested,
    TrackActivated,
    TrackChanged,
    TransportAction,
)
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    BACKEND_NAMES,
    DEFAULT_BACKEND,
    resolve_backend_name,
    resolve_library_dir,
    resolve_log_level,
)
from .services.fake_backend import FakePlaybackBackend
from .services.library_loader import LibraryResolver, load_library
from .services.playback_backend import PlaybackBackend, SourceResolver
from .services.playback_session import PlaybackSession
from .services.track_catalog import TrackCatalog
from .services.transport import TransportController
from .services.vlc_backend import VLCPlaybackBackend
from .ui.modals.error import ErrorModal
from .ui.now_playing import NowPlayingPane
from .ui.track_list import TrackListPane
from .utils.async_utils import run_blocking
from .version import build_help_epilog

logger = logging.getLogger(__name__)
SEEK_STEP_S = 5.0


class RecitalPlayerApp(App):
    TITLE = "recital-player"
    CSS = """
    Screen {
        layout: vertical;
    }

    #track-list-pane {
        height: 1fr;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }
    """
    BINDINGS = [
        ("space", "play_pause", "Play/Pause"),
        ("n", "next_track", "Next"),
        ("left", "seek_back", "Seek -5s"),
        ("right", "seek_forward", "Seek +5s"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        auto_init: bool = True,
        backend_name: str | None = None,
        library_dir: str | None = None,
    ) -> None:
        super().__init__()
        self._auto_init = auto_init
        self._backend_name = backend_name
        self._library_dir = library_dir
        self.catalog = TrackCatalog()
        self.transport: TransportController | None = None
        self._last_error: str | None = None
        self._closing = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield TrackListPane(id="track-list-pane")
        yield NowPlayingPane(id="now-playing")
        yield Footer()

    def on_mount(self) -> None:
        if self._auto_init:
            asyncio.create_task(self._initialize())

    async def _initialize(self) -> None:
        try:
            library = resolve_library_dir(self._library_dir)
            self.catalog = await run_blocking(load_library, library)
            await self.query_one(TrackListPane).set_tracks(self.catalog)
            resolver = LibraryResolver(library)
            backend_name = resolve_backend_name(self._backend_name)
            self.transport = self._build_transport(backend_name, resolver)
            try:
                await self.transport.start()
            except Exception as exc:
                logger.exception("Failed to start backend %s: %s", backend_name, exc)
                if backend_name == "fake":
                    raise
                self.transport = self._build_transport("fake", resolver)
                await self.transport.start()
                await self.push_screen(
                    ErrorModal(
                        "VLC backend unavailable; using fake backend.\n"
                        "Cause: VLC/libVLC runtime is not available.\n"
                        "Next step: install VLC/libVLC and restart with --backend vlc."
                    )
                )
            if not len(self.catalog):
                await self.push_screen(
                    ErrorModal(
                        f"No audio files found in {library}.\n"
                        "Next step: add audio files and restart, or pass --library."
                    )
                )
            self._refresh_now_playing()
        except Exception as exc:
            logger.exception("Failed to initialize app: %s", exc)
            await self.push_screen(
                ErrorModal(
                    "Failed to initialize app.\n"
                    "Likely cause: library or backend startup failure.\n"
                    "Next step: verify the library path and review the log file."
                )
            )

    def _build_transport(
        self, backend_name: str, resolver: SourceResolver
    ) -> TransportController:
        session = PlaybackSession(
            backend=_build_backend(backend_name, resolver),
            catalog=self.catalog,
            emit_event=self._handle_player_event,
        )
        return TransportController(session)

    async def on_unmount(self) -> None:
        self._closing = True
        if self.transport is not None:
            await self.transport.shutdown()

    async def action_play_pause(self) -> None:
        if self.transport is None:
            return
        await self.transport.toggle_play_pause()

    async def action_next_track(self) -> None:
        if self.transport is None:
            return
        await self.transport.next_track()

    async def action_seek_back(self) -> None:
        await self._seek_relative(-SEEK_STEP_S)

    async def action_seek_forward(self) -> None:
        await self._seek_relative(SEEK_STEP_S)

    async def action_quit(self) -> None:
        self.exit()

    async def on_track_activated(self, message: TrackActivated) -> None:
        if self.transport is None:
            return
        await self.transport.play(message.track_id)

    async def on_transport_action(self, message: TransportAction) -> None:
        if message.action == "next":
            await self.action_next_track()
        else:
            await self.action_play_pause()

    async def on_seek_requested(self, message: SeekRequested) -> None:
        if self.transport is None:
            return
        await self.transport.seek_to(message.position_s)

    async def _seek_relative(self, delta_s: float) -> None:
        if self.transport is None:
            return
        status = self.transport.current_status()
        await self.transport.seek_to(status.position_s + delta_s)

    async def _handle_player_event(self, event: object) -> None:
        if self._closing:
            return
        if isinstance(event, TrackChanged):
            track_id = event.track.track_id if event.track is not None else None
            self.query_one(TrackListPane).set_playing_track(track_id)
        elif isinstance(event, PlayerStateChanged):
            self._refresh_now_playing()
            error = event.state.error
            if error is not None and error != self._last_error:
                await self.push_screen(ErrorModal(error))
            self._last_error = error

    def _refresh_now_playing(self) -> None:
        if self.transport is None:
            return
        self.query_one(NowPlayingPane).update_status(self.transport.current_status())


def _build_backend(name: str, resolver: SourceResolver) -> PlaybackBackend:
    logger.info("Playback backend selected: %s", name)
    if name == "vlc":
        return VLCPlaybackBackend(resolver=resolver)
    return FakePlaybackBackend(resolver=resolver)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recital-player",
        description="Sequential recitation player with per-track speed.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        default=DEFAULT_BACKEND,
        help="Playback backend to use (fake or vlc).",
    )
    parser.add_argument("--library", help="Directory holding the audio files")
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logging.getLogger(__name__).info("Starting recital-player TUI")
        RecitalPlayerApp(backend_name=args.backend, library_dir=args.library).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Check the library and log paths; re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
