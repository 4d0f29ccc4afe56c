"""Factory for creating blob storage instances."""

from pathlib import Path
from typing import Optional, Union

from ..config import AzureBlobStoreConfig, FileBlobStoreConfig, load_config
from .base import BlobStore
from .fs import FileBlobStore


def make_blob_store(config: Union[FileBlobStoreConfig, AzureBlobStoreConfig]) -> BlobStore:
    """
    Create blob store instance based on configuration.

    Args:
        config: Provider configuration

    Returns:
        BlobStore for the configured provider

    Raises:
        NotImplementedError: If the provider is not supported
    """
    if isinstance(config, FileBlobStoreConfig):
        return FileBlobStore(config)

    elif isinstance(config, AzureBlobStoreConfig):
        # Imported here so the file provider works without the Azure SDK
        from .azure import AzureBlobStore
        return AzureBlobStore(config)

    else:
        raise NotImplementedError(f"Provider {type(config).__name__} not supported")


def open_blob_store(path: Optional[Path] = None) -> BlobStore:
    """
    Create a blob store from a YAML configuration file.

    Args:
        path: Config file; defaults to the BLOBVAULT_CONFIG environment variable

    Raises:
        ConfigError: If the configuration is missing or invalid
    """
    return make_blob_store(load_config(path))
