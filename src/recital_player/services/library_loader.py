"""Build the track catalog from a directory of recitation files.

Each file name carries a numeric token (all of its digits, concatenated) that
fixes the playback order and the playback speed: the tokens in
`SLOW_TOKENS` play at `SLOW_SPEED`, everything else at `DEFAULT_SPEED`.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from pathlib import Path

from recital_player.media_formats import is_supported_audio_file
from recital_player.services.audio_tags import read_title
from recital_player.services.playback_backend import ResolutionError
from recital_player.services.track_catalog import TrackCatalog, TrackDescriptor

logger = logging.getLogger(__name__)

SLOW_TOKENS = frozenset({30, 59})
SLOW_SPEED = 1.5
DEFAULT_SPEED = 2.0

_NON_DIGITS = re.compile(r"\D+")


def extract_token(name: str) -> int:
    """Return the integer formed by every digit in `name`, or 0 without digits."""
    digits = _NON_DIGITS.sub("", name)
    if not digits:
        return 0
    return int(digits)


def speed_for_token(token: int) -> float:
    return SLOW_SPEED if token in SLOW_TOKENS else DEFAULT_SPEED


class LibraryResolver:
    """Resolves catalog source keys to files inside one library directory."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def __call__(self, source_key: str) -> Path:
        return self.resolve(source_key)

    def resolve(self, source_key: str) -> Path:
        if not source_key:
            raise ResolutionError(source_key, "empty source key")
        root = self._root.resolve()
        path = (root / source_key).resolve()
        if path.parent != root:
            raise ResolutionError(source_key, "outside the library directory")
        if not path.is_file():
            raise ResolutionError(source_key, "file not found")
        if not is_supported_audio_file(path):
            raise ResolutionError(source_key, "unsupported audio format")
        return path


def discover_audio_files(root: Path) -> list[Path]:
    """List supported audio files directly under `root` in sorted name order."""
    if not root.is_dir():
        logger.warning("Library directory does not exist: %s", root)
        return []
    return sorted(
        (path for path in root.iterdir() if path.is_file()),
        key=lambda path: path.name,
    )


def load_library(
    root: Path,
    *,
    title_reader: Callable[[Path], str | None] = read_title,
    id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
) -> TrackCatalog:
    """Scan `root` and return the ordered catalog.

    Blocking (directory listing and tag reads); call through `run_blocking`
    from the event loop.
    """
    entries: list[TrackDescriptor] = []
    for path in discover_audio_files(root):
        if not is_supported_audio_file(path):
            continue
        token = extract_token(path.stem)
        try:
            title = title_reader(path)
        except Exception as exc:
            logger.warning("Failed to read title for %s: %s", path, exc)
            title = None
        entries.append(
            TrackDescriptor(
                track_id=id_factory(),
                display_name=title or path.stem,
                source_key=path.name,
                speed=speed_for_token(token),
                token=token,
            )
        )
    # sorted() is stable, so equal tokens keep discovery order.
    entries = sorted(entries, key=lambda track: track.token)
    logger.info("Loaded %d tracks from %s", len(entries), root)
    return TrackCatalog(entries)
