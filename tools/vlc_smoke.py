"""Manual smoke run of the VLC backend against a real recitation library.

Plays the first tracks of the library through `PlaybackSession`, skipping to
the next one every few seconds, and prints every session event together with
the rate libVLC reports. Useful to check the buffering rate reset by ear.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from recital_player.services.library_loader import (  # noqa: E402
    LibraryResolver,
    load_library,
)
from recital_player.services.playback_session import PlaybackSession  # noqa: E402
from recital_player.services.vlc_backend import VLCPlaybackBackend  # noqa: E402


async def _run(library: Path, seconds: float, tracks: int) -> None:
    catalog = load_library(library)
    if not len(catalog):
        print(f"No audio files found in {library}")
        return
    backend = VLCPlaybackBackend(resolver=LibraryResolver(library))

    async def _print_event(event: object) -> None:
        print(event)

    session = PlaybackSession(backend=backend, catalog=catalog, emit_event=_print_event)
    await session.start()
    try:
        first = catalog.first()
        assert first is not None
        await session.select_track(first)
        for _ in range(tracks):
            await asyncio.sleep(seconds)
            print(f"engine rate: {await backend.get_rate()}")
            await session.advance()
    finally:
        await session.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="VLC backend smoke test.")
    parser.add_argument("library", type=Path, help="Directory of audio files.")
    parser.add_argument("--seconds", type=float, default=5.0)
    parser.add_argument("--tracks", type=int, default=3)
    args = parser.parse_args()
    asyncio.run(_run(args.library, args.seconds, args.tracks))


if __name__ == "__main__":
    main()
