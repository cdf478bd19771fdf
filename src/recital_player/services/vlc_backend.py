"""VLC playback backend using python-vlc."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, cast

from .playback_backend import (
    BackendEvent,
    EndOfMedia,
    MediaChanged,
    MediaHandle,
    PlaybackFailed,
    RateApplied,
    SourceResolver,
)

logger = logging.getLogger(__name__)


@dataclass
class _Command:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future[Any] | None


@dataclass
class _ThreadMedia:
    """Engine-thread view of the loaded media; only touched on that thread."""

    handle: MediaHandle | None = None
    media: Any = None
    ended: bool = False
    failed: bool = False
    last_duration_ms: int = -1
    last_rate: float | None = None


class VLCPlaybackBackend:
    """Playback backend backed by a dedicated VLC thread.

    All libVLC calls run on the backend thread. Events are marshaled back to
    the event loop that called `start()`.
    """

    def __init__(
        self, *, resolver: SourceResolver | None = None, poll_interval_ms: int = 100
    ) -> None:
        self._resolver = resolver
        self._poll_interval = poll_interval_ms / 1000
        self._handler: Callable[[BackendEvent], Awaitable[None]] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: queue.Queue[_Command] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._generation = 0

    def set_event_handler(
        self, handler: Callable[[BackendEvent], Awaitable[None]]
    ) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._thread is not None:
            return
        self._loop = asyncio.get_running_loop()
        ready_future: asyncio.Future[None] = self._loop.create_future()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            args=(ready_future,),
            name="VLCBackendThread",
            daemon=True,
        )
        self._thread.start()
        try:
            await ready_future
        except Exception:
            self._thread = None
            raise

    async def shutdown(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._queue.put(_Command("wake", (), None))
        self._thread.join(timeout=2.0)
        if self._thread.is_alive():
            raise RuntimeError("VLC backend thread did not stop within 2.0 seconds.")
        self._thread = None

    async def load(self, source_key: str) -> MediaHandle:
        # Release first so a failed resolution never leaves the old media alive.
        await self._submit("release")
        location = source_key
        if self._resolver is not None:
            location = str(self._resolver(source_key))
        self._generation += 1
        handle = MediaHandle(self._generation, source_key, location)
        await self._submit("load", handle)
        return handle

    async def release(self) -> None:
        await self._submit("release")

    async def play(self) -> None:
        await self._submit("play")

    async def pause(self) -> None:
        await self._submit("pause")

    async def seek(self, position_s: float) -> None:
        await self._submit("seek", position_s)

    async def set_rate(self, rate: float) -> None:
        await self._submit("set_rate", rate)

    async def get_rate(self) -> float | None:
        return await self._submit("get_rate")

    async def get_position(self) -> float:
        return float(await self._submit("get_position"))

    async def get_duration(self) -> float | None:
        return await self._submit("get_duration")

    async def _submit(self, name: str, *args: Any) -> Any:
        if self._loop is None or self._thread is None or not self._thread.is_alive():
            raise RuntimeError("VLC backend not started.")
        future: asyncio.Future[Any] = self._loop.create_future()
        self._queue.put(_Command(name, args, future))
        return await future

    def _thread_main(self, ready_future: asyncio.Future[None]) -> None:
        try:
            import vlc

            instance = vlc.Instance()
            player = instance.media_player_new()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            logger.error("Failed to initialize libVLC: %s", exc)
            self._notify_future_exception(
                ready_future,
                RuntimeError("VLC backend unavailable. Install VLC/libVLC."),
            )
            return

        self._notify_future_result(ready_future, None)
        current = _ThreadMedia()

        while not self._stop_event.is_set():
            try:
                cmd = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                cmd = None

            if cmd is not None and cmd.name != "wake":
                try:
                    result = self._handle_command(cmd, instance, player, current)
                    self._notify_future_result(cmd.future, result)
                except Exception as exc:  # pragma: no cover - backend safety net
                    self._notify_future_exception(cmd.future, exc)

            self._poll_media(player, current)

        self._release_media(player, current)

    def _handle_command(
        self, cmd: _Command, instance: Any, player: Any, current: _ThreadMedia
    ) -> Any:
        name = cmd.name
        if name == "load":
            (handle,) = cmd.args
            self._release_media(player, current)
            media = instance.media_new_path(handle.location)
            player.set_media(media)
            current.handle = handle
            current.media = media
            return None
        if name == "release":
            self._release_media(player, current)
            return None
        if current.handle is None:
            return _idle_result(name)
        if name == "play":
            current.ended = False
            player.play()
            return None
        if name == "pause":
            player.set_pause(1)
            return None
        if name == "seek":
            (position_s,) = cmd.args
            player.set_time(max(0, int(position_s * 1000)))
            return None
        if name == "set_rate":
            (rate,) = cmd.args
            player.set_rate(float(rate))
            return None
        if name == "get_rate":
            return float(player.get_rate())
        if name == "get_position":
            return max(player.get_time(), 0) / 1000
        if name == "get_duration":
            length = player.get_length()
            return length / 1000 if length > 0 else None
        raise ValueError(f"Unknown command {name}")

    def _poll_media(self, player: Any, current: _ThreadMedia) -> None:
        handle = current.handle
        if handle is None:
            return
        state = _state_name(player)
        if state == "ended" and not current.ended:
            current.ended = True
            self._emit_event(EndOfMedia(handle))
            return
        if state == "error" and not current.failed:
            current.failed = True
            self._emit_event(PlaybackFailed(handle, "libVLC reported a playback error"))
            return
        if state not in {"playing", "paused"}:
            return
        duration_ms = player.get_length()
        if duration_ms > 0 and duration_ms != current.last_duration_ms:
            current.last_duration_ms = duration_ms
            self._emit_event(MediaChanged(handle, duration_ms / 1000))
        rate = float(player.get_rate())
        if rate != current.last_rate:
            current.last_rate = rate
            self._emit_event(RateApplied(handle, rate))

    def _release_media(self, player: Any, current: _ThreadMedia) -> None:
        if current.handle is None:
            return
        player.stop()
        if current.media is not None:
            current.media.release()
        current.handle = None
        current.media = None
        current.ended = False
        current.failed = False
        current.last_duration_ms = -1
        current.last_rate = None

    def _emit_event(self, event: BackendEvent) -> None:
        if self._handler is None or self._loop is None:
            return
        coro = self._handler(event)
        asyncio.run_coroutine_threadsafe(
            cast(Coroutine[Any, Any, None], coro), self._loop
        )

    def _notify_future_result(
        self, future: asyncio.Future[Any] | None, value: Any
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._resolve_future_result, future, value)

    def _notify_future_exception(
        self, future: asyncio.Future[Any] | None, exc: Exception
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._resolve_future_exception, future, exc)

    @staticmethod
    def _resolve_future_result(future: asyncio.Future[Any], value: Any) -> None:
        if not future.done():
            future.set_result(value)

    @staticmethod
    def _resolve_future_exception(
        future: asyncio.Future[Any], exc: Exception
    ) -> None:
        if not future.done():
            future.set_exception(exc)


def _idle_result(name: str) -> Any:
    if name == "get_position":
        return 0.0
    return None


def _state_name(player: Any) -> str:
    try:
        state = player.get_state()
    except Exception:
        return "error"
    name = getattr(state, "name", None) or str(state).rsplit(".", 1)[-1]
    return str(name).lower()
