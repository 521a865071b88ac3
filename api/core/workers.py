"""
Bounded worker pool for CPU-bound image work.

This module owns the executor. FastAPI initializes it on startup and shuts
it down on shutdown (see `api/main.py`). Request handlers stay on the event
loop; decode/resize/encode runs here so one large batch cannot stall
dispatch of other requests.
"""

from __future__ import annotations

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_pool: ThreadPoolExecutor | None = None
_max_workers: int = 0


def init_pool(max_workers: int) -> None:
    global _pool, _max_workers
    if _pool is not None:
        return None
    _pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="transcode")
    _max_workers = max_workers


def close_pool() -> None:
    global _pool, _max_workers
    if _pool is None:
        return None
    _pool.shutdown(wait=True)
    _pool = None
    _max_workers = 0


def pool() -> ThreadPoolExecutor:
    if _pool is None:
        raise RuntimeError("Transcode pool is not initialized. Call init_pool() on startup.")
    return _pool


def max_workers() -> int:
    pool()
    return _max_workers


async def run(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run `fn(*args, **kwargs)` on the transcode pool and await the result.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(pool(), functools.partial(fn, *args, **kwargs))
