"""Shared test fixtures and utilities."""

import errno
import os

import pytest

from blobvault.config import FileBlobStoreConfig
from blobvault.storage.fs import FileBlobStore
from tests.helpers import TEST_TEXT


@pytest.fixture
def store_root(tmp_path):
    """Root directory for a file blob store."""
    return tmp_path / "blobs"


@pytest.fixture
def store_config(store_root):
    """File store config with small buffers and no retry delay."""
    return FileBlobStoreConfig(
        path=str(store_root),
        read_buffer_size=8192,
        write_buffer_size=4096,
        delete_retry_delay=0,
    )


@pytest.fixture
def store(store_config):
    """A file blob store rooted under tmp_path."""
    return FileBlobStore(store_config)


@pytest.fixture
def write_blob(store_root):
    """Factory fixture to place a file directly under the store root."""
    def _write(*parts: str, content: str = TEST_TEXT):
        path = store_root.joinpath(*parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def sharing_violation():
    """OSError like the one raised while another process holds the file open."""
    return OSError(errno.EACCES, os.strerror(errno.EACCES))
