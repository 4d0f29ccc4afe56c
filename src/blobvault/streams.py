"""Stream types returned by blob stores."""

import io
from typing import Protocol, runtime_checkable

from .errors import InvalidArgumentError
from .sync import LoopThread


@runtime_checkable
class AsyncBlobStream(Protocol):
    """
    Readable async byte stream returned by ``BlobStore.get_async``.

    aiofiles file objects satisfy this protocol. Callers own the stream and
    must close it (``await stream.close()`` or ``async with``).
    """

    async def read(self, size: int = -1) -> bytes:
        ...

    async def close(self) -> None:
        ...


class _AsyncStreamRaw(io.RawIOBase):
    """Blocking raw reader over an async stream that lives on a loop thread."""

    def __init__(self, stream: AsyncBlobStream, loop_thread: LoopThread):
        self._stream = stream
        self._loop_thread = loop_thread

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self._loop_thread.run(self._stream.read(len(buffer)))
        n = len(data)
        buffer[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._loop_thread.run(self._stream.close())
            finally:
                super().close()


class BlobReader(io.BufferedReader):
    """
    Synchronous file-like view of a blob returned by ``BlobStore.get``.

    Reads are forwarded to the underlying async stream on the sync loop
    thread. Use as a context manager or call ``close()`` when done.
    """

    def __init__(self, stream: AsyncBlobStream, loop_thread: LoopThread,
                 buffer_size: int = io.DEFAULT_BUFFER_SIZE):
        super().__init__(_AsyncStreamRaw(stream, loop_thread), buffer_size)


def check_readable(stream) -> None:
    """
    Validate an input stream for ``put``.

    Raises:
        InvalidArgumentError: If ``stream`` is None or not readable
    """
    if stream is None:
        raise InvalidArgumentError("stream is required")

    readable = getattr(stream, "readable", None)
    if not callable(getattr(stream, "read", None)) or not callable(readable):
        raise InvalidArgumentError(f"Expected a readable binary stream, got {type(stream).__name__}")

    try:
        ok = readable()
    except ValueError:  # closed file
        ok = False
    if not ok:
        raise InvalidArgumentError("The stream is not readable.")
