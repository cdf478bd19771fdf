"""Audio file suffixes a recitation library may contain."""

from __future__ import annotations

from pathlib import Path

# Containers libVLC decodes out of the box that recitation sets ship in.
LIBRARY_AUDIO_SUFFIXES = frozenset(
    {".aac", ".aiff", ".flac", ".m4a", ".mp3", ".ogg", ".opus", ".wav", ".wma"}
)


def is_supported_audio_file(path: Path) -> bool:
    return path.suffix.lower() in LIBRARY_AUDIO_SUFFIXES
