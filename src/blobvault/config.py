"""Blob store configuration models and YAML loading."""

import os
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import ConfigError
from .uris import ensure_trailing_slash

DEFAULT_BASE_URI = "blob:///"
DEFAULT_BUFFER_SIZE = 1 * 1024 * 1024  # 1 MiB

CONFIG_ENV_VAR = "BLOBVAULT_CONFIG"
AZURE_CONNECTION_STRING_ENV_VAR = "AZURE_STORAGE_CONNECTION_STRING"


class BlobStoreConfig(BaseModel):
    """
    Settings shared by all providers.

    ``base_uri`` is the logical root of every URI the provider hands out.
    It must be absolute and is normalized to end with a slash.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    base_uri: str = DEFAULT_BASE_URI

    @field_validator("base_uri")
    @classmethod
    def validate_base_uri(cls, v: str) -> str:
        """Require an absolute URI and normalize its trailing slash."""
        return ensure_trailing_slash(v)


class FileBlobStoreConfig(BlobStoreConfig):
    """Settings for blobs stored as files under a local directory."""
    provider: Literal["file"] = "file"
    path: str = Field(min_length=1)
    read_buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, gt=0)
    write_buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, gt=0)

    # Deleting a file can fail while a virus scanner or indexer holds it open
    delete_retry_limit: int = Field(default=3, ge=0)
    delete_retry_delay: float = Field(default=10.0, ge=0)


class AzureBlobStoreConfig(BlobStoreConfig):
    """Settings for blobs stored in an Azure Storage blob container."""
    provider: Literal["azure"] = "azure"
    connection_string: str = Field(min_length=1)
    container_name: str = Field(min_length=1)


StoreConfig = Annotated[
    Union[FileBlobStoreConfig, AzureBlobStoreConfig],
    Field(discriminator="provider"),
]

_store_config_adapter = TypeAdapter(StoreConfig)


def parse_config(data: dict) -> Union[FileBlobStoreConfig, AzureBlobStoreConfig]:
    """
    Build a provider config from a plain mapping.

    Accepts the settings at top level or nested under ``storage:``. When the
    provider is azure and no connection string is given, it is taken from
    AZURE_STORAGE_CONNECTION_STRING.

    Raises:
        ConfigError: If the settings are invalid
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping of storage settings, got {type(data).__name__}")

    settings = dict(data.get("storage", data))
    settings.setdefault("provider", "file")

    if settings["provider"] == "azure" and not settings.get("connection_string"):
        conn_str = os.environ.get(AZURE_CONNECTION_STRING_ENV_VAR)
        if conn_str:
            settings["connection_string"] = conn_str

    try:
        return _store_config_adapter.validate_python(settings)
    except ValidationError as e:
        raise ConfigError(f"Invalid storage configuration: {e}") from e


def load_config(path: Optional[Path] = None) -> Union[FileBlobStoreConfig, AzureBlobStoreConfig]:
    """
    Load provider configuration from a YAML file.

    Args:
        path: Config file; defaults to the BLOBVAULT_CONFIG environment variable

    Raises:
        ConfigError: If no file is given, it is missing, or its contents are invalid
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            raise ConfigError(f"No configuration file given and {CONFIG_ENV_VAR} is not set")
        path = Path(env_path)

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    return parse_config(data)
