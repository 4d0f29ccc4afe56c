"""URI-addressed blob storage over the local file system or Azure Blob Storage."""

from .config import AzureBlobStoreConfig, FileBlobStoreConfig, load_config
from .errors import (
    BlobCollisionError,
    BlobIOError,
    BlobNotFoundError,
    BlobStoreError,
    ConfigError,
    FatalBlobIOError,
    InvalidArgumentError,
    TransientBlobIOError,
)
from .storage import BlobStore, FileBlobStore, make_blob_store, open_blob_store

__version__ = "0.1.0"

__all__ = [
    "AzureBlobStoreConfig",
    "BlobCollisionError",
    "BlobIOError",
    "BlobNotFoundError",
    "BlobStore",
    "BlobStoreError",
    "ConfigError",
    "FatalBlobIOError",
    "FileBlobStore",
    "FileBlobStoreConfig",
    "InvalidArgumentError",
    "TransientBlobIOError",
    "load_config",
    "make_blob_store",
    "open_blob_store",
]
