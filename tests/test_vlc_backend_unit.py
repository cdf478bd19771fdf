"""Unit tests for VLC backend command behavior without VLC."""

from __future__ import annotations

import asyncio
import threading
from types import SimpleNamespace

import pytest

from recital_player.services.playback_backend import (
    EndOfMedia,
    MediaChanged,
    MediaHandle,
    PlaybackFailed,
    RateApplied,
)
from recital_player.services.vlc_backend import (
    VLCPlaybackBackend,
    _Command,
    _state_name,
    _ThreadMedia,
)


class _DummyMedia:
    def __init__(self, path: str) -> None:
        self.path = path
        self.released = False

    def release(self) -> None:
        self.released = True


class _DummyInstance:
    def media_new_path(self, path: str) -> _DummyMedia:
        return _DummyMedia(path)


class _DummyPlayer:
    def __init__(self) -> None:
        self.media: _DummyMedia | None = None
        self.play_called = False
        self.stop_called = False
        self.paused: int | None = None
        self.time_set: int | None = None
        self.rate = 1.0
        self.time_ms = 0
        self.length_ms = 0
        self.state = "Playing"

    def set_media(self, media: _DummyMedia) -> None:
        self.media = media

    def play(self) -> None:
        self.play_called = True

    def set_pause(self, value: int) -> None:
        self.paused = value

    def set_time(self, time_ms: int) -> None:
        self.time_set = time_ms

    def set_rate(self, rate: float) -> None:
        self.rate = rate

    def get_rate(self) -> float:
        return self.rate

    def get_time(self) -> int:
        return self.time_ms

    def get_length(self) -> int:
        return self.length_ms

    def get_state(self) -> object:
        return SimpleNamespace(name=self.state)

    def stop(self) -> None:
        self.stop_called = True


class _RecordingBackend(VLCPlaybackBackend):
    def __init__(self) -> None:
        super().__init__()
        self.emitted: list[object] = []

    def _emit_event(self, event: object) -> None:  # type: ignore[override]
        self.emitted.append(event)


class _Harness:
    """Backend plus the thread-side objects `_handle_command` works on."""

    def __init__(self) -> None:
        self.backend = _RecordingBackend()
        self.instance = _DummyInstance()
        self.player = _DummyPlayer()
        self.current = _ThreadMedia()

    def command(self, name: str, *args: object) -> object:
        return self.backend._handle_command(  # noqa: SLF001
            _Command(name, args, None), self.instance, self.player, self.current
        )

    def poll(self) -> None:
        self.backend._poll_media(self.player, self.current)  # noqa: SLF001


def _loaded() -> _Harness:
    harness = _Harness()
    harness.command("load", MediaHandle(1, "001.mp3", "/library/001.mp3"))
    return harness


def test_load_and_transport_commands() -> None:
    harness = _loaded()
    player = harness.player
    assert harness.current.handle is not None
    assert player.media is not None
    assert player.media.path == "/library/001.mp3"

    harness.command("play")
    assert player.play_called is True
    harness.command("pause")
    assert player.paused == 1
    harness.command("seek", 12.5)
    assert player.time_set == 12500
    harness.command("seek", -3.0)
    assert player.time_set == 0
    harness.command("set_rate", 1.5)
    assert harness.command("get_rate") == 1.5


def test_position_and_duration_queries() -> None:
    harness = _loaded()
    harness.player.time_ms = 4500
    harness.player.length_ms = 0
    assert harness.command("get_position") == 4.5
    assert harness.command("get_duration") is None
    harness.player.length_ms = 90_000
    assert harness.command("get_duration") == 90.0


def test_commands_without_media_are_idle() -> None:
    harness = _Harness()
    harness.command("play")
    assert harness.player.play_called is False
    assert harness.command("get_rate") is None
    assert harness.command("get_position") == 0.0


def test_release_stops_player_and_frees_media() -> None:
    harness = _loaded()
    media = harness.player.media
    harness.command("release")
    assert harness.player.stop_called is True
    assert media is not None and media.released is True
    assert harness.current.handle is None


def test_load_replaces_previous_media() -> None:
    harness = _loaded()
    first = harness.player.media
    harness.command("load", MediaHandle(2, "002.mp3", "/library/002.mp3"))
    assert first is not None and first.released is True
    assert harness.current.handle == MediaHandle(2, "002.mp3", "/library/002.mp3")


def test_unknown_command_raises() -> None:
    harness = _loaded()
    with pytest.raises(ValueError, match="Unknown command"):
        harness.command("warp")


def test_poll_emits_end_of_media_once() -> None:
    harness = _loaded()
    handle = harness.current.handle
    harness.player.state = "Ended"
    harness.poll()
    harness.poll()
    assert harness.backend.emitted == [EndOfMedia(handle)]  # type: ignore[arg-type]


def test_poll_emits_failure_once() -> None:
    harness = _loaded()
    harness.player.state = "Error"
    harness.poll()
    harness.poll()
    assert len(harness.backend.emitted) == 1
    assert isinstance(harness.backend.emitted[0], PlaybackFailed)


def test_poll_reports_duration_and_rate_changes() -> None:
    harness = _loaded()
    handle = harness.current.handle
    assert handle is not None
    harness.player.length_ms = 60_000
    harness.player.rate = 2.0
    harness.poll()
    harness.poll()
    assert harness.backend.emitted == [
        MediaChanged(handle, 60.0),
        RateApplied(handle, 2.0),
    ]

    harness.player.rate = 1.0
    harness.poll()
    assert harness.backend.emitted[-1] == RateApplied(handle, 1.0)


def test_poll_without_media_is_silent() -> None:
    harness = _Harness()
    harness.player.state = "Ended"
    harness.poll()
    assert harness.backend.emitted == []



def test_state_name_normalizes_enum_and_errors() -> None:
    class _EnumLike:
        def __str__(self) -> str:
            return "State.Buffering"

    class _Player:
        def __init__(self, state: object) -> None:
            self._state = state

        def get_state(self) -> object:
            if isinstance(self._state, Exception):
                raise self._state
            return self._state

    assert _state_name(_Player(SimpleNamespace(name="Paused"))) == "paused"
    assert _state_name(_Player(_EnumLike())) == "buffering"
    assert _state_name(_Player(RuntimeError("gone"))) == "error"


def test_resolve_future_result_ignores_done_future() -> None:
    async def run() -> None:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[int] = loop.create_future()
        future.set_result(1)
        VLCPlaybackBackend._resolve_future_result(future, 2)
        assert future.result() == 1

    asyncio.run(run())


def test_resolve_future_exception_ignores_done_future() -> None:
    async def run() -> None:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[int] = loop.create_future()
        future.set_result(1)
        VLCPlaybackBackend._resolve_future_exception(future, RuntimeError("x"))
        assert future.result() == 1

    asyncio.run(run())


def test_submit_rejects_when_backend_thread_not_running() -> None:
    async def run() -> None:
        backend = VLCPlaybackBackend()
        backend._loop = asyncio.get_running_loop()  # noqa: SLF001
        backend._thread = threading.Thread()  # noqa: SLF001
        with pytest.raises(RuntimeError, match="VLC backend not started"):
            await backend.get_rate()

    asyncio.run(run())


def test_load_before_start_raises() -> None:
    async def run() -> None:
        backend = VLCPlaybackBackend()
        with pytest.raises(RuntimeError, match="VLC backend not started"):
            await backend.load("001.mp3")

    asyncio.run(run())


def test_shutdown_raises_when_thread_does_not_stop() -> None:
    class _StuckThread:
        def join(self, timeout: float | None = None) -> None:
            return None

        def is_alive(self) -> bool:
            return True

    async def run() -> None:
        backend = VLCPlaybackBackend()
        backend._thread = _StuckThread()  # type: ignore[assignment]  # noqa: SLF001
        with pytest.raises(RuntimeError, match="did not stop within 2\\.0 seconds"):
            await backend.shutdown()

    asyncio.run(run())
