"""Tests for library discovery, ordering, speed rules and source resolution."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from recital_player.services.library_loader import (
    DEFAULT_SPEED,
    SLOW_SPEED,
    LibraryResolver,
    discover_audio_files,
    extract_token,
    load_library,
    speed_for_token,
)
from recital_player.services.playback_backend import ResolutionError


def _touch(root: Path, *names: str) -> None:
    for name in names:
        (root / name).write_bytes(b"\x00" * 16)


def _no_title(_path: Path) -> str | None:
    return None


def _counter_ids():
    counter = iter(range(1000))
    return lambda: f"id-{next(counter)}"


@pytest.mark.parametrize(
    ("name", "token"),
    [
        ("001", 1),
        ("surah_030", 30),
        ("059-al-hashr", 59),
        ("a1b2", 12),
        ("intro", 0),
        ("", 0),
    ],
)
def test_extract_token(name: str, token: int) -> None:
    assert extract_token(name) == token


def test_speed_rule() -> None:
    assert speed_for_token(30) == SLOW_SPEED == 1.5
    assert speed_for_token(59) == SLOW_SPEED
    assert speed_for_token(1) == DEFAULT_SPEED == 2.0
    assert speed_for_token(0) == DEFAULT_SPEED
    assert speed_for_token(300) == DEFAULT_SPEED


def test_load_library_orders_by_token(tmp_path: Path) -> None:
    _touch(tmp_path, "surah_059.mp3", "surah_002.mp3", "surah_030.mp3", "surah_001.mp3")
    _touch(tmp_path, "notes.txt", "cover.jpg")
    (tmp_path / "nested.mp3").mkdir()

    catalog = load_library(tmp_path, title_reader=_no_title, id_factory=_counter_ids())

    assert [track.token for track in catalog] == [1, 2, 30, 59]
    assert [track.speed for track in catalog] == [2.0, 2.0, 1.5, 1.5]
    assert [track.display_name for track in catalog] == [
        "surah_001",
        "surah_002",
        "surah_030",
        "surah_059",
    ]
    assert catalog[0].source_key == "surah_001.mp3"
    assert len({track.track_id for track in catalog}) == 4


def test_equal_tokens_keep_name_order(tmp_path: Path) -> None:
    _touch(tmp_path, "b_intro.mp3", "a_intro.mp3", "007.mp3")
    catalog = load_library(tmp_path, title_reader=_no_title, id_factory=_counter_ids())
    assert [track.source_key for track in catalog] == [
        "a_intro.mp3",
        "b_intro.mp3",
        "007.mp3",
    ]


def test_embedded_title_used_when_present(tmp_path: Path) -> None:
    _touch(tmp_path, "001.mp3", "002.mp3")

    def reader(path: Path) -> str | None:
        return "Al-Fatiha" if path.stem == "001" else None

    catalog = load_library(tmp_path, title_reader=reader, id_factory=_counter_ids())
    assert [track.display_name for track in catalog] == ["Al-Fatiha", "002"]


def test_title_reader_failure_falls_back_to_stem(tmp_path: Path, caplog) -> None:
    _touch(tmp_path, "001.mp3")

    def reader(_path: Path) -> str | None:
        raise OSError("boom")

    with caplog.at_level(logging.WARNING):
        catalog = load_library(tmp_path, title_reader=reader, id_factory=_counter_ids())
    assert catalog[0].display_name == "001"
    assert "Failed to read title" in caplog.text


def test_track_ids_are_unique_by_default(tmp_path: Path) -> None:
    _touch(tmp_path, "001.mp3", "002.mp3", "003.mp3")
    catalog = load_library(tmp_path, title_reader=_no_title)
    ids = [track.track_id for track in catalog]
    assert len(set(ids)) == 3


def test_missing_library_yields_empty_catalog(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        catalog = load_library(tmp_path / "absent", title_reader=_no_title)
    assert len(catalog) == 0
    assert "does not exist" in caplog.text
    assert discover_audio_files(tmp_path / "absent") == []


def test_resolver_returns_library_file(tmp_path: Path) -> None:
    _touch(tmp_path, "001.mp3")
    resolver = LibraryResolver(tmp_path)
    assert resolver("001.mp3") == (tmp_path / "001.mp3").resolve()
    assert resolver.root == tmp_path


@pytest.mark.parametrize(
    ("source_key", "reason"),
    [
        ("", "empty source key"),
        ("missing.mp3", "file not found"),
        ("../escape.mp3", "outside the library directory"),
        ("notes.txt", "unsupported audio format"),
    ],
)
def test_resolver_rejects_bad_keys(
    tmp_path: Path, source_key: str, reason: str
) -> None:
    library = tmp_path / "library"
    library.mkdir()
    _touch(library, "notes.txt")
    _touch(tmp_path, "escape.mp3")
    resolver = LibraryResolver(library)
    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve(source_key)
    assert excinfo.value.reason == reason
    assert excinfo.value.source_key == source_key
