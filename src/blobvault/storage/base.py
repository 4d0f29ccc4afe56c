"""Base class for blob storage providers."""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, BinaryIO, Optional

from ..config import BlobStoreConfig
from ..errors import InvalidArgumentError
from ..identifiers import normalize_extension
from ..streams import AsyncBlobStream, BlobReader, check_readable
from ..sync import get_loop_thread, run_sync
from ..uris import to_relative

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """
    Base class for blob storage providers.

    Providers implement three coroutines (``_put``, ``_get``, ``_delete``).
    This class validates arguments and exposes two entry points for each
    operation:

    - ``put_async`` / ``get_async`` / ``delete_async`` validate their
      arguments immediately and return an awaitable, so invalid input raises
      at the call site rather than when the coroutine is first awaited.
    - ``put`` / ``get`` / ``delete`` block until the operation completes.
      The coroutine runs on a dedicated loop thread, so these are safe to
      call from inside a running event loop.

    Providers hold no per-call state and may be shared between callers.
    """

    def __init__(self, config: BlobStoreConfig):
        """
        Initialize the store.

        Args:
            config: Provider configuration; ``base_uri`` is already validated
                and slash-terminated by the config model
        """
        self._base_uri = config.base_uri

    @property
    def base_uri(self) -> str:
        """Logical root of every blob URI this store creates or accepts."""
        return self._base_uri

    def _check_uri(self, uri: str) -> str:
        """
        Validate that ``uri`` names a blob in this store.

        Returns:
            The part of ``uri`` below ``base_uri``

        Raises:
            InvalidArgumentError: If ``uri`` is None, relative, outside this
                store's namespace, or equal to the base URI itself
        """
        relative = to_relative(uri, self._base_uri)
        if not relative or relative[0] in "?#":
            raise InvalidArgumentError(f"The URI '{uri}' does not identify a blob.")
        return relative

    # ---- Async entry points ------------------------------------------------

    def put_async(self, stream: BinaryIO, extension: Optional[str] = None) -> Awaitable[str]:
        """
        Store the content of ``stream`` as a new blob.

        Args:
            stream: Readable binary stream; read to its end but not closed
            extension: Optional file extension, with or without leading dot

        Returns:
            Awaitable resolving to the new blob's URI

        Raises:
            InvalidArgumentError: If ``stream`` is None or not readable
        """
        check_readable(stream)
        return self._put(stream, normalize_extension(extension))

    def get_async(self, uri: str) -> Awaitable[AsyncBlobStream]:
        """
        Open a blob for reading.

        Returns:
            Awaitable resolving to an async stream the caller must close

        Raises:
            InvalidArgumentError: If ``uri`` is not a blob URI of this store
            BlobNotFoundError: (when awaited) if the blob does not exist
        """
        self._check_uri(uri)
        return self._get(uri)

    def delete_async(self, uri: str) -> Awaitable[bool]:
        """
        Delete a blob.

        Returns:
            Awaitable resolving to True if the blob existed and was deleted,
            False if it did not exist

        Raises:
            InvalidArgumentError: If ``uri`` is not a blob URI of this store
        """
        self._check_uri(uri)
        return self._delete(uri)

    async def aclose(self) -> None:
        """Release provider resources (network clients)."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ---- Sync entry points -------------------------------------------------

    def put(self, stream: BinaryIO, extension: Optional[str] = None) -> str:
        """Blocking version of ``put_async``."""
        return run_sync(self.put_async(stream, extension))

    def get(self, uri: str) -> BlobReader:
        """
        Blocking version of ``get_async``.

        Returns:
            File-like reader; close it (or use ``with``) when done
        """
        loop_thread = get_loop_thread()
        stream = loop_thread.run(self.get_async(uri))
        return BlobReader(stream, loop_thread)

    def delete(self, uri: str) -> bool:
        """Blocking version of ``delete_async``."""
        return run_sync(self.delete_async(uri))

    def close(self) -> None:
        """Blocking version of ``aclose``."""
        run_sync(self.aclose())

    # ---- Provider hooks ----------------------------------------------------

    @abstractmethod
    async def _put(self, stream: BinaryIO, extension: Optional[str]) -> str:
        """Store a blob; ``extension`` is already dot-prefixed or None."""
        ...

    @abstractmethod
    async def _get(self, uri: str) -> AsyncBlobStream:
        """Open a blob; ``uri`` is already validated."""
        ...

    @abstractmethod
    async def _delete(self, uri: str) -> bool:
        """Delete a blob; ``uri`` is already validated."""
        ...
