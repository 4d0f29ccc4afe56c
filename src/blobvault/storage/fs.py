"""File-system blob storage implementation."""

import asyncio
import errno
import logging
import os
import urllib.parse
import urllib.request
from pathlib import Path
from typing import BinaryIO, Optional

from ..config import FileBlobStoreConfig
from ..errors import (
    BlobCollisionError,
    BlobNotFoundError,
    FatalBlobIOError,
    InvalidArgumentError,
    TransientBlobIOError,
)
from ..identifiers import IdentifierGenerator, next_name
from ..streams import AsyncBlobStream
from ..uris import change_base, ensure_trailing_slash
from .base import BlobStore
from .filesystem import DEFAULT_FILE_SYSTEM, FileSystem

logger = logging.getLogger(__name__)

TEMP_EXTENSION = ".upl"
CREATE_ATTEMPTS = 3


class FileBlobStore(BlobStore):
    """
    Blob store that saves each blob as a file under a root directory.

    Blobs are laid out by creation date: root/YYYY/MMDD/YYYYMMDD_HHMMSS_xxxxxxxx.ext

    Writes go to a temporary ``.upl`` sibling first and are moved onto the
    final name only when complete, so readers never see a partial blob.
    Deleting the last blob in a directory also removes the directories
    left empty, up to but never including the root.
    """

    def __init__(
        self,
        config: FileBlobStoreConfig,
        file_system: FileSystem = DEFAULT_FILE_SYSTEM,
        generator: Optional[IdentifierGenerator] = None,
    ):
        """
        Initialize file-system store.

        Args:
            config: Store configuration
            file_system: File operations to use (replaced in tests)
            generator: Name generator; defaults to the process-wide one

        Raises:
            InvalidArgumentError: If ``config`` is None or its path is malformed
            FatalBlobIOError: If the root directory cannot be created
        """
        if config is None:
            raise InvalidArgumentError("config is required")
        super().__init__(config)

        self.file_system = file_system
        self.read_buffer_size = config.read_buffer_size
        self.write_buffer_size = config.write_buffer_size
        self.delete_retry_limit = config.delete_retry_limit
        self.delete_retry_delay = config.delete_retry_delay
        self._next_name = generator.next_name if generator else next_name

        root = Path(config.path)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid storage path {config.path!r}: {e}") from e
        except OSError as e:
            raise FatalBlobIOError(f"Cannot create storage root {root}: {e}") from e

        base_path = os.path.abspath(root)
        if not base_path.endswith(os.sep):
            base_path += os.sep
        self.base_path = base_path
        self.physical_base_uri = ensure_trailing_slash(Path(base_path).as_uri())

        logger.info("Using file-based blob storage at '%s'", self.base_path)

    # ---- BlobStore hooks ---------------------------------------------------

    async def _put(self, stream: BinaryIO, extension: Optional[str]) -> str:
        name = self._next_name(os.sep, extension)
        real_path = os.path.join(self.base_path, name)
        temp_path = os.path.splitext(real_path)[0] + TEMP_EXTENSION

        logger.debug("Writing file: %s", real_path)
        try:
            target = await self._open_temp_file(temp_path, name)
        except OSError as e:
            raise FatalBlobIOError(f"Failed to write blob {real_path}: {e}") from e

        # From here on the temp file is ours to remove
        try:
            await self._write_file(stream, target)

            # Commit point; refuses to replace an existing blob
            try:
                await self.file_system.move_file(temp_path, real_path)
            except FileExistsError as e:
                raise BlobCollisionError(name) from e
        except OSError as e:
            raise FatalBlobIOError(f"Failed to write blob {real_path}: {e}") from e
        finally:
            # Must not hide an exception from the try block
            await self._try_delete_file(temp_path)

        return change_base(Path(real_path).as_uri(), self.physical_base_uri, self.base_uri)

    async def _get(self, uri: str) -> AsyncBlobStream:
        path = self._local_path(uri)

        logger.debug("Reading file: %s", path)
        try:
            return await self.file_system.open_read(path, self.read_buffer_size)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise BlobNotFoundError(uri) from e
        except OSError as e:
            raise FatalBlobIOError(f"Failed to open blob {path}: {e}") from e

    async def _delete(self, uri: str) -> bool:
        path = self._local_path(uri)

        # Existence check first: a failed delete cannot tell absent from locked
        if not await self.file_system.file_exists(path):
            return False

        logger.debug("Deleting file: %s", path)
        await self._delete_file(path)
        await self._prune_empty_directories(path)
        return True

    # ---- Helpers -----------------------------------------------------------

    def _local_path(self, uri: str) -> str:
        """
        Translate a blob URI to a path under the root directory.

        Raises:
            InvalidArgumentError: If the URI is foreign or escapes the root
        """
        file_uri = change_base(uri, self.base_uri, self.physical_base_uri)
        path = urllib.request.url2pathname(urllib.parse.urlsplit(file_uri).path)
        path = os.path.normpath(path)

        if not self._is_subdirectory(path):
            raise InvalidArgumentError(f"The URI '{uri}' resolves outside the storage root.")
        return path

    def _is_subdirectory(self, path: str) -> bool:
        """True if ``path`` is strictly below the root directory."""
        path = os.path.normcase(path)
        base = os.path.normcase(self.base_path)
        return path.startswith(base) and len(path) > len(base)

    async def _open_temp_file(self, path: str, name: str):
        """
        Create the directory for ``path`` and open ``path`` exclusively.

        A concurrent delete may prune the freshly created directory before
        the file is opened; the directory is then recreated, a bounded
        number of times.

        Raises:
            BlobCollisionError: If the temp file already exists
            OSError: If the file cannot be created
        """
        directory = os.path.dirname(path)
        attempts = 0
        while True:
            await self.file_system.create_directory(directory)
            try:
                return await self.file_system.open_write(path, self.write_buffer_size)
            except FileExistsError as e:
                # Another writer drew the same name and owns the temp file
                raise BlobCollisionError(name) from e
            except FileNotFoundError:
                attempts += 1
                if attempts >= CREATE_ATTEMPTS:
                    raise
                logger.debug("Directory %s removed before %s was created; retrying", directory, path)

    async def _write_file(self, stream: BinaryIO, target) -> None:
        try:
            while True:
                chunk = await asyncio.to_thread(stream.read, self.write_buffer_size)
                if not chunk:
                    break
                await target.write(chunk)
        finally:
            await target.close()

    async def _delete_file(self, path: str) -> None:
        """
        Delete a file, retrying while it is held open by another process.

        Raises:
            FatalBlobIOError: If the path is too long
            TransientBlobIOError: If deletion still fails after all retries
        """
        retries = 0
        while True:
            try:
                await self.file_system.delete_file(path)
                return
            except FileNotFoundError:
                # Directory removed since the existence check
                return
            except OSError as e:
                if e.errno == errno.ENAMETOOLONG:
                    raise FatalBlobIOError(f"Cannot delete {path}: {e}") from e
                if retries >= self.delete_retry_limit:
                    raise TransientBlobIOError(path, retries + 1) from e
                logger.warning(
                    "Delete of %s failed (%s); retrying in %ss", path, e, self.delete_retry_delay
                )

            retries += 1
            await asyncio.sleep(self.delete_retry_delay)

    async def _prune_empty_directories(self, path: str) -> None:
        """Remove empty ancestors of ``path`` up to, not including, the root."""
        directory = os.path.dirname(path)
        while self._is_subdirectory(directory):
            try:
                await self.file_system.delete_directory(directory)
            except OSError as e:
                # The blob is already gone; a non-empty parent is expected
                logger.debug("Keeping directory %s: %s", directory, e)
                return
            directory = os.path.dirname(directory)

    async def _try_delete_file(self, path: str) -> None:
        try:
            await self.file_system.delete_file(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Could not remove %s: %s", path, e)
