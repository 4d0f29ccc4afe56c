"""Custom exceptions for blobvault.

Every provider surfaces the same small set of error kinds, so callers can
handle not-found, invalid input and storage failures without knowing which
backend they are talking to. Original OS or SDK exceptions are chained via
``__cause__``.
"""


class BlobStoreError(RuntimeError):
    """Base class for all blobvault errors."""
    pass


class InvalidArgumentError(BlobStoreError, ValueError):
    """Missing or malformed input: None, relative URI, foreign URI, unreadable stream."""
    pass


class BlobNotFoundError(BlobStoreError):
    """No blob exists at the requested URI."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Blob not found: {uri}")


class BlobCollisionError(BlobStoreError):
    """A generated blob name was already occupied when the blob was committed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"A blob named '{name}' already exists. "
            f"Generated names should never collide; check the clock and random source."
        )


# Storage I/O Errors
class BlobIOError(BlobStoreError):
    """Base class for failures of the underlying storage medium."""
    pass


class TransientBlobIOError(BlobIOError):
    """I/O failure that persisted after the configured number of retries."""

    def __init__(self, path: str, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"Could not delete {path} after {attempts} attempt(s)")


class FatalBlobIOError(BlobIOError):
    """I/O failure that retrying cannot fix (path too long, medium unavailable)."""
    pass


# Configuration Errors
class ConfigError(BlobStoreError):
    """Configuration file missing, unparseable or invalid."""
    pass
