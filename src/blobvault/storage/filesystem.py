"""File operations used by the file-system blob store.

``FileBlobStore`` performs every file operation through a ``FileSystem``
instance. Tests substitute a subclass to induce failure modes (sharing
violations, vanished directories) that are hard to produce on a real disk.
"""

import errno

import aiofiles
import aiofiles.os


class FileSystem:
    """Async file operations backed by the operating system via aiofiles."""

    async def file_exists(self, path: str) -> bool:
        """True if ``path`` is an existing regular file."""
        return await aiofiles.os.path.isfile(path)

    async def open_read(self, path: str, buffer_size: int):
        """Open an existing file for shared reading."""
        return await aiofiles.open(path, "rb", buffering=buffer_size)

    async def open_write(self, path: str, buffer_size: int):
        """Create a new file for writing; fails if ``path`` exists."""
        return await aiofiles.open(path, "xb", buffering=buffer_size)

    async def move_file(self, source: str, target: str) -> None:
        """
        Move ``source`` to ``target`` without replacing an existing target.

        A hard link is the atomic no-clobber rename available on POSIX;
        ``os.rename`` would silently overwrite. Where hard links are not
        supported, fall back to an existence check followed by rename.

        Raises:
            FileExistsError: If ``target`` already exists
        """
        try:
            await aiofiles.os.link(source, target)
        except FileExistsError:
            raise
        except OSError:
            if await aiofiles.os.path.exists(target):
                raise FileExistsError(errno.EEXIST, "File exists", target)
            await aiofiles.os.rename(source, target)
            return
        await aiofiles.os.remove(source)

    async def delete_file(self, path: str) -> None:
        await aiofiles.os.remove(path)

    async def create_directory(self, path: str) -> None:
        """Create ``path`` and any missing parents."""
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def delete_directory(self, path: str) -> None:
        """Remove ``path``; fails unless it is an empty directory."""
        await aiofiles.os.rmdir(path)


DEFAULT_FILE_SYSTEM = FileSystem()
