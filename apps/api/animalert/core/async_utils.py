"""Bridge from sync service code to the async clients (Playwright, httpx)."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Coroutine, TypeVar

import anyio

T = TypeVar("T")


async def _with_deadline(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    # Cancels the awaited work on expiry and raises TimeoutError.
    with anyio.fail_after(timeout):
        return await awaitable


def _inside_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(coro: Coroutine[object, object, T], *, timeout: float | None = None) -> T:
    """
    Drive a coroutine to completion from synchronous code.

    Sync FastAPI endpoints run in AnyIO worker threads, so the coroutine is
    handed back to the app's event loop. The CLI and plain tests have no
    loop and get a fresh one. Calling this from a coroutine on the loop
    thread is a bug (it would block the loop) and raises RuntimeError.

    With a timeout, TimeoutError is raised once the deadline passes.
    """
    try:
        return anyio.from_thread.run(_with_deadline, coro, timeout)
    except RuntimeError as exc:
        if "worker thread" not in str(exc) and "from_thread" not in str(exc):
            raise

    if _inside_event_loop():
        coro.close()
        raise RuntimeError("run_async called from async context; use await instead")
    return anyio.run(_with_deadline, coro, timeout)
