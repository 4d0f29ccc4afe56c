"""Storage package: blob store providers."""

from .base import BlobStore
from .factory import make_blob_store, open_blob_store
from .filesystem import FileSystem
from .fs import FileBlobStore

__all__ = ["BlobStore", "FileBlobStore", "FileSystem", "make_blob_store", "open_blob_store"]
