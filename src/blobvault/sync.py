"""Run blob store coroutines from synchronous code.

The synchronous API never runs coroutines on the calling thread. Instead it
submits them to one event loop living on a background daemon thread and
blocks on the result. This works the same whether or not the caller is
itself inside a running event loop, where ``asyncio.run`` would refuse to
start and blocking the caller's loop would deadlock.
"""

import asyncio
import logging
import threading
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoopThread:
    """An asyncio event loop running forever on its own daemon thread."""

    def __init__(self, name: str = "blobvault-sync"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def run(self, awaitable: Awaitable[T]) -> T:
        """Run ``awaitable`` on the loop thread and wait for its result."""
        if threading.current_thread() is self._thread:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError("Cannot block on the sync loop from inside the sync loop")
        future = asyncio.run_coroutine_threadsafe(_await(awaitable), self._loop)
        return future.result()

    def stop(self) -> None:
        """Stop the loop and wait for the thread to exit."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


_loop_thread: Optional[LoopThread] = None
_loop_thread_lock = threading.Lock()


def get_loop_thread() -> LoopThread:
    """Return the process-wide loop thread, starting it on first use."""
    global _loop_thread
    with _loop_thread_lock:
        if _loop_thread is None:
            logger.debug("Starting event loop thread for synchronous blob store calls")
            _loop_thread = LoopThread()
        return _loop_thread


def run_sync(awaitable: Awaitable[T]) -> T:
    """Block until ``awaitable`` completes on the process-wide loop thread."""
    return get_loop_thread().run(awaitable)
