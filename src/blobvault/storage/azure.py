"""Azure blob storage implementation."""

import asyncio
import logging
import urllib.parse
from typing import BinaryIO, Callable, Optional

try:
    from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
    from azure.storage.blob import ContainerClient as SyncContainerClient
    from azure.storage.blob.aio import ContainerClient
except ImportError:
    raise ImportError(
        "azure-storage-blob and aiohttp required for Azure blob storage. "
        "Install with: pip install azure-storage-blob aiohttp"
    )

from ..config import AzureBlobStoreConfig
from ..errors import (
    BlobCollisionError,
    BlobNotFoundError,
    FatalBlobIOError,
    InvalidArgumentError,
)
from ..identifiers import next_name
from ..uris import to_relative
from .base import BlobStore

logger = logging.getLogger(__name__)

# Transfer tuning; the SDK's default retry policy (3 retries, exponential
# backoff) applies on top of these.
SINGLE_PUT_SIZE = 2 * 1024 * 1024  # larger uploads are split into blocks
BLOCK_SIZE = 1 * 1024 * 1024
DOWNLOAD_CHUNK_SIZE = 1 * 1024 * 1024


async def _read_chunks(stream: BinaryIO, size: int):
    """Yield the rest of ``stream`` in chunks, reading off the event loop."""
    while True:
        chunk = await asyncio.to_thread(stream.read, size)
        if not chunk:
            return
        yield chunk


class AzureBlobStream:
    """
    Async stream over a blob download.

    Owns the container client used for the download and closes it along
    with the stream.
    """

    def __init__(self, downloader, container: ContainerClient):
        self._downloader = downloader
        self._container = container
        self._closed = False

    async def read(self, size: int = -1) -> bytes:
        return await self._downloader.read(size)

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._container.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()


class AzureBlobStore(BlobStore):
    """
    Azure Blob Storage implementation.

    Blobs are named by creation date: YYYY/MMDD/YYYYMMDD_HHMMSS_xxxxxxxx.ext

    Each operation opens its own async container client, so one store may be
    used from the sync API and from any number of event loops.
    """

    def __init__(
        self,
        config: AzureBlobStoreConfig,
        client_factory: Optional[Callable[[], ContainerClient]] = None,
    ):
        """
        Initialize Azure blob store, creating the container if needed.

        Args:
            config: Store configuration
            client_factory: Builds an async container client (replaced in tests)
        """
        if config is None:
            raise InvalidArgumentError("config is required")
        super().__init__(config)

        self.container_name = config.container_name
        self._connection_string = config.connection_string
        self._client_factory = client_factory or self._make_client

        self._ensure_container()
        logger.info("Using Azure blob storage container '%s'", self.container_name)

    def _make_client(self) -> ContainerClient:
        return ContainerClient.from_connection_string(
            self._connection_string,
            self.container_name,
            max_single_put_size=SINGLE_PUT_SIZE,
            max_block_size=BLOCK_SIZE,
            max_chunk_get_size=DOWNLOAD_CHUNK_SIZE,
        )

    def _ensure_container(self) -> None:
        try:
            with SyncContainerClient.from_connection_string(
                self._connection_string, self.container_name
            ) as container:
                if not container.exists():
                    try:
                        container.create_container()
                    except ResourceExistsError:
                        # Created concurrently by another process
                        pass
        except AzureError as e:
            raise FatalBlobIOError(f"Failed to open container {self.container_name}: {e}") from e

    def _blob_name(self, uri: str) -> str:
        """Blob name for ``uri``; slashes stay unencoded, query and fragment are dropped."""
        relative = to_relative(uri, self.base_uri)
        path = relative.split("#", 1)[0].split("?", 1)[0]
        return urllib.parse.unquote(path)

    # ---- BlobStore hooks ---------------------------------------------------

    async def _put(self, stream: BinaryIO, extension: Optional[str]) -> str:
        name = next_name("/", extension)

        logger.debug("Uploading blob: %s", name)
        async with self._client_factory() as container:
            blob = container.get_blob_client(name)
            try:
                await blob.upload_blob(
                    _read_chunks(stream, BLOCK_SIZE), overwrite=False, max_concurrency=1
                )
            except ResourceExistsError as e:
                raise BlobCollisionError(name) from e
            except AzureError as e:
                raise FatalBlobIOError(f"Failed to upload blob {name}: {e}") from e

        # Build the URI from the name; the SDK's blob.url percent-encodes slashes
        return self.base_uri + name

    async def _get(self, uri: str) -> AzureBlobStream:
        name = self._blob_name(uri)

        logger.debug("Downloading blob: %s", name)
        container = self._client_factory()
        try:
            try:
                downloader = await container.get_blob_client(name).download_blob()
            except ResourceNotFoundError as e:
                raise BlobNotFoundError(uri) from e
            except AzureError as e:
                raise FatalBlobIOError(f"Failed to download blob {name}: {e}") from e
        except BaseException:
            await container.close()
            raise
        return AzureBlobStream(downloader, container)

    async def _delete(self, uri: str) -> bool:
        name = self._blob_name(uri)

        logger.debug("Deleting blob: %s", name)
        async with self._client_factory() as container:
            try:
                await container.delete_blob(name)
            except ResourceNotFoundError:
                return False
            except AzureError as e:
                raise FatalBlobIOError(f"Failed to delete blob {name}: {e}") from e
        return True
