"""
Tests for the SecureColumnsConfig class.
"""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

from secure_columns.config import SecureColumnsConfig


class TestSecureColumnsConfig:
    """Tests for the SecureColumnsConfig class."""

    def setup_method(self) -> None:
        """Reset the configuration state before each test."""
        SecureColumnsConfig._config = {}
        SecureColumnsConfig._initialized = False

    def _write_yaml(self, data: dict) -> str:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(data, f)
            return f.name

    def test_default_config(self) -> None:
        """Test the default configuration values."""
        # Reading a value triggers initialization
        assert SecureColumnsConfig.get("mode") == "DEV"

        assert SecureColumnsConfig.get("encryption.algorithm") == "AES-GCM"
        assert SecureColumnsConfig.get("encryption.key_iterations") == 100000
        assert SecureColumnsConfig.get("columns.storage_type") == "binary"
        assert SecureColumnsConfig.get("database.url") == "http://localhost:8529"

    def test_missing_key_returns_default(self) -> None:
        assert SecureColumnsConfig.get("encryption.nothing", "fallback") == "fallback"
        assert SecureColumnsConfig.get("mode.too.deep") is None

    def test_environment_override(self) -> None:
        """Test overriding configuration with environment variables."""
        os.environ["SECURE_COLUMNS_MODE"] = "PROD"
        os.environ["SECURE_COLUMNS_ENCRYPTION_KEY"] = "env-key"
        os.environ["SECURE_COLUMNS_ALGORITHM"] = "ChaCha20-Poly1305"
        os.environ["SECURE_COLUMNS_DB_URL"] = "http://db.example.com:8529"

        SecureColumnsConfig.initialize()

        assert SecureColumnsConfig.get("mode") == "PROD"
        assert SecureColumnsConfig.get("encryption.key") == "env-key"
        assert SecureColumnsConfig.get("encryption.algorithm") == "ChaCha20-Poly1305"
        assert SecureColumnsConfig.get("database.url") == "http://db.example.com:8529"

    def test_invalid_mode_in_environment_is_ignored(self) -> None:
        os.environ["SECURE_COLUMNS_MODE"] = "STAGING"

        SecureColumnsConfig.initialize()

        assert SecureColumnsConfig.get("mode") == "DEV"

    def test_file_config(self) -> None:
        """Test loading configuration from a file."""
        config_path = self._write_yaml({
            "mode": "PROD",
            "encryption": {"algorithm": "ChaCha20-Poly1305"},
            "columns": {"storage_type": "text"},
        })

        try:
            SecureColumnsConfig.initialize(config_path)

            assert SecureColumnsConfig.get("mode") == "PROD"
            assert SecureColumnsConfig.get("encryption.algorithm") == "ChaCha20-Poly1305"
            assert SecureColumnsConfig.get_default_storage_type() == "text"

            # Sections are merged, untouched keys keep their defaults
            assert SecureColumnsConfig.get("encryption.key_iterations") == 100000
            assert SecureColumnsConfig.get("database.url") == "http://localhost:8529"
        finally:
            Path(config_path).unlink()

    def test_environment_overrides_file(self) -> None:
        """Test that environment variables override file configuration."""
        config_path = self._write_yaml({"mode": "DEV"})

        try:
            os.environ["SECURE_COLUMNS_MODE"] = "PROD"

            SecureColumnsConfig.initialize(config_path)

            assert SecureColumnsConfig.get("mode") == "PROD"
        finally:
            Path(config_path).unlink()

    def test_missing_file_is_fatal(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            SecureColumnsConfig.initialize("/nonexistent/secure_columns.yaml")

        assert excinfo.value.code == 1

    def test_malformed_file_is_fatal(self) -> None:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("mode: [unclosed\n")
            config_path = f.name

        try:
            with pytest.raises(SystemExit) as excinfo:
                SecureColumnsConfig.initialize(config_path)
            assert excinfo.value.code == 1
        finally:
            Path(config_path).unlink()

    def test_secrets_file_merges_sections(self) -> None:
        secrets_path = self._write_yaml({"database": {"password": "s3cret"}})

        try:
            SecureColumnsConfig.initialize()
            SecureColumnsConfig.load_from_secrets_file(secrets_path)

            credentials = SecureColumnsConfig.get_database_credentials()
            assert credentials["password"] == "s3cret"
            assert credentials["username"] == "root"
        finally:
            Path(secrets_path).unlink()

    def test_missing_secrets_file_is_not_fatal(self) -> None:
        SecureColumnsConfig.load_from_secrets_file("/nonexistent/secrets.yaml")

        assert SecureColumnsConfig.get("database.password") == ""

    def test_config_helpers(self) -> None:
        """Test the helper methods for commonly used configuration values."""
        os.environ["SECURE_COLUMNS_MODE"] = "PROD"
        SecureColumnsConfig.initialize()

        assert SecureColumnsConfig.is_dev_mode() is False
        assert SecureColumnsConfig.get_default_storage_type() == "binary"
        assert SecureColumnsConfig.get_database_url() == "http://localhost:8529"
        assert SecureColumnsConfig.get_database_credentials() == {
            "username": "root",
            "password": "",
            "database": "secure_columns",
        }
