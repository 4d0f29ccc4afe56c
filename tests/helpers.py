"""Test helpers shared across test modules."""

import io

from blobvault.storage.filesystem import FileSystem

TEST_TEXT = "Testing, testing, one two three."

BLOB_PATH_PATTERN = r"^/\d{4}/\d{4}/\d{8}_\d{6}_[0-9a-f]{8}\.txt$"


def text_stream(text: str = TEST_TEXT) -> io.BytesIO:
    return io.BytesIO(text.encode("utf-8"))


class FaultyFileSystem(FileSystem):
    """
    FileSystem double that fails file deletion with queued errors.

    Reports every file as existing; once the queued errors run out, deletes
    succeed without touching the disk.
    """

    def __init__(self, *errors: BaseException, repeat: bool = False):
        self.errors = list(errors)
        self.repeat = repeat
        self.delete_calls = 0

    async def file_exists(self, path: str) -> bool:
        return True

    async def delete_file(self, path: str) -> None:
        self.delete_calls += 1
        if self.errors:
            error = self.errors[0] if self.repeat else self.errors.pop(0)
            raise error


class PruningFileSystem(FileSystem):
    """
    FileSystem that runs ``after_create`` right after creating a directory.

    Lets a test interleave a concurrent delete, which prunes the directory
    again, between directory creation and opening the temp file.
    """

    def __init__(self, after_create, times: int = 1):
        self.after_create = after_create
        self.times = times
        self.create_calls = 0

    async def create_directory(self, path: str) -> None:
        await super().create_directory(path)
        self.create_calls += 1
        if self.create_calls <= self.times:
            await self.after_create(path)
