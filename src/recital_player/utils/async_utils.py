"""Bridge for running blocking library scans off the Textual event loop."""

from __future__ import annotations

import asyncio
import atexit
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")

# Library scans run one at a time.
_SCAN_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="recital-scan")
_WAKEUP_POLL_S = 0.1


@atexit.register
def _shutdown_scan_executor() -> None:
    _SCAN_EXECUTOR.shutdown(wait=False, cancel_futures=True)


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run `func` on the scan executor and await its result."""
    if not callable(func):
        raise TypeError("func must be callable")
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(_SCAN_EXECUTOR, partial(func, *args, **kwargs))
    # Executor completions can miss the loop wakeup on some platforms.
    while True:
        try:
            return await asyncio.wait_for(asyncio.shield(future), _WAKEUP_POLL_S)
        except asyncio.TimeoutError:
            continue
