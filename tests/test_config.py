"""Tests for configuration models, YAML loading and the store factory."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from blobvault.config import (
    AzureBlobStoreConfig,
    FileBlobStoreConfig,
    load_config,
    parse_config,
)
from blobvault.errors import ConfigError
from blobvault.storage import FileBlobStore, make_blob_store, open_blob_store


class TestFileBlobStoreConfig:
    """Test file store settings validation."""

    def test_defaults(self, tmp_path):
        config = FileBlobStoreConfig(path=str(tmp_path))
        assert config.provider == "file"
        assert config.base_uri == "blob:///"
        assert config.read_buffer_size == 1024 * 1024
        assert config.write_buffer_size == 1024 * 1024
        assert config.delete_retry_limit == 3
        assert config.delete_retry_delay == 10.0

    def test_base_uri_gets_trailing_slash(self, tmp_path):
        config = FileBlobStoreConfig(path=str(tmp_path), base_uri="blob://store/data")
        assert config.base_uri == "blob://store/data/"

    def test_relative_base_uri_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path=str(tmp_path), base_uri="not/absolute")

    def test_path_required(self):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig()

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path="")

    @pytest.mark.parametrize("field", ["read_buffer_size", "write_buffer_size"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_buffer_sizes_must_be_positive(self, tmp_path, field, value):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path=str(tmp_path), **{field: value})

    def test_negative_retry_settings_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path=str(tmp_path), delete_retry_limit=-1)
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path=str(tmp_path), delete_retry_delay=-0.5)

    def test_immutable(self, tmp_path):
        config = FileBlobStoreConfig(path=str(tmp_path))
        with pytest.raises(ValidationError):
            config.path = "/elsewhere"

    def test_unknown_fields_rejected(self, tmp_path):
        with pytest.raises(ValidationError):
            FileBlobStoreConfig(path=str(tmp_path), compression="gzip")


class TestAzureBlobStoreConfig:
    """Test Azure store settings validation."""

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            AzureBlobStoreConfig(container_name="blobs")
        with pytest.raises(ValidationError):
            AzureBlobStoreConfig(connection_string="UseDevelopmentStorage=true")

    def test_empty_fields_rejected(self):
        with pytest.raises(ValidationError):
            AzureBlobStoreConfig(connection_string="", container_name="blobs")


class TestLoadConfig:
    """Test loading settings from YAML."""

    def test_load_file_provider(self, tmp_path):
        cfg = tmp_path / "blobvault.yaml"
        cfg.write_text(
            "provider: file\n"
            f"path: {tmp_path / 'blobs'}\n"
            "write_buffer_size: 4096\n"
        )
        config = load_config(cfg)
        assert isinstance(config, FileBlobStoreConfig)
        assert config.path == str(tmp_path / "blobs")
        assert config.write_buffer_size == 4096

    def test_provider_defaults_to_file(self, tmp_path):
        config = parse_config({"path": str(tmp_path)})
        assert isinstance(config, FileBlobStoreConfig)

    def test_nested_storage_section(self, tmp_path):
        config = parse_config({"storage": {"provider": "file", "path": str(tmp_path)}})
        assert config.path == str(tmp_path)

    def test_azure_connection_string_from_env(self, monkeypatch):
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "UseDevelopmentStorage=true")
        config = parse_config({"provider": "azure", "container_name": "blobs"})
        assert isinstance(config, AzureBlobStoreConfig)
        assert config.connection_string == "UseDevelopmentStorage=true"

    def test_explicit_connection_string_wins(self, monkeypatch):
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "from-env")
        config = parse_config({
            "provider": "azure",
            "connection_string": "from-file",
            "container_name": "blobs",
        })
        assert config.connection_string == "from-file"

    def test_azure_without_connection_string(self, monkeypatch):
        monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
        with pytest.raises(ConfigError, match="Invalid storage configuration"):
            parse_config({"provider": "azure", "container_name": "blobs"})

    def test_unknown_provider(self, tmp_path):
        with pytest.raises(ConfigError):
            parse_config({"provider": "s3", "path": str(tmp_path)})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            parse_config(["provider", "file"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("provider: [file\n")
        with pytest.raises(ConfigError, match="Could not parse"):
            load_config(cfg)

    def test_path_from_env(self, tmp_path, monkeypatch):
        cfg = tmp_path / "env.yaml"
        cfg.write_text(f"path: {tmp_path / 'blobs'}\n")
        monkeypatch.setenv("BLOBVAULT_CONFIG", str(cfg))
        assert load_config().path == str(tmp_path / "blobs")

    def test_no_path_and_no_env(self, monkeypatch):
        monkeypatch.delenv("BLOBVAULT_CONFIG", raising=False)
        with pytest.raises(ConfigError, match="BLOBVAULT_CONFIG"):
            load_config()


class TestFactory:
    """Test building stores from configuration."""

    def test_make_file_store(self, tmp_path):
        store = make_blob_store(FileBlobStoreConfig(path=str(tmp_path / "blobs")))
        assert isinstance(store, FileBlobStore)
        assert (tmp_path / "blobs").is_dir()

    def test_make_azure_store(self):
        from blobvault.storage.azure import AzureBlobStore

        config = AzureBlobStoreConfig(
            connection_string="UseDevelopmentStorage=true", container_name="blobs"
        )
        with patch.object(AzureBlobStore, "_ensure_container") as ensure:
            store = make_blob_store(config)
        assert isinstance(store, AzureBlobStore)
        ensure.assert_called_once()

    def test_unsupported_config(self):
        with pytest.raises(NotImplementedError):
            make_blob_store(object())

    def test_open_from_yaml(self, tmp_path):
        cfg = tmp_path / "blobvault.yaml"
        cfg.write_text(f"storage:\n  path: {tmp_path / 'blobs'}\n  base_uri: blob://vault\n")
        store = open_blob_store(cfg)
        assert isinstance(store, FileBlobStore)
        assert store.base_uri == "blob://vault/"
