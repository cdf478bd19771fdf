"""Embedded-tag lookup for library files, backed by mutagen."""

from __future__ import annotations

import math
import wave
from dataclasses import dataclass
from pathlib import Path

from mutagen import File as MutagenFile


@dataclass(frozen=True)
class AudioTags:
    """Title and length of one file; `error` is set when nothing could be read."""

    title: str | None = None
    duration_s: float | None = None
    error: str | None = None


def read_audio_tags(path: Path) -> AudioTags:
    """Read tags with mutagen; WAV files without tags fall back to `wave`."""
    try:
        audio = MutagenFile(path, easy=True)
    except Exception as exc:
        tags = AudioTags(error=str(exc))
    else:
        if audio is None:
            tags = AudioTags(error="Unsupported or unreadable file")
        else:
            tags = AudioTags(
                title=_first_text(audio.tags, "title"),
                duration_s=_positive_seconds(getattr(audio.info, "length", None)),
            )
    if tags.error is None:
        return tags
    return _wave_duration(path) or tags


def read_title(path: Path) -> str | None:
    return read_audio_tags(path).title


def _wave_duration(path: Path) -> AudioTags | None:
    try:
        with wave.open(str(path), "rb") as handle:
            rate = handle.getframerate()
            frames = handle.getnframes()
    except (OSError, EOFError, wave.Error):
        return None
    if rate <= 0:
        return None
    return AudioTags(duration_s=_positive_seconds(frames / rate))


def _first_text(tags: object, key: str) -> str | None:
    # Easy tags map keys to lists of strings.
    values = tags.get(key) if hasattr(tags, "get") else None  # type: ignore[union-attr]
    if isinstance(values, list):
        values = values[0] if values else None
    if values is None:
        return None
    return str(values).strip() or None


def _positive_seconds(value: object) -> float | None:
    if not isinstance(value, (int, float)):
        return None
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds
