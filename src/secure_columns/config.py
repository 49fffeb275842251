"""
Configuration management for secure columns.

This module provides configuration utilities for controlling the behavior
of the encryption providers and the reference record stores, including
development/production modes and database settings.
"""

import os
import sys
from copy import deepcopy
from pathlib import Path

import yaml


class SecureColumnsConfig:
    """
    Process-wide settings for secure columns.

    Values are layered: built-in defaults, then an optional YAML file,
    then environment variables.
    """

    # Default configuration values
    _default_config: dict[str, object] = {
        "mode": "DEV",  # DEV or PROD
        "encryption": {
            "algorithm": "AES-GCM",
            "key_iterations": 100000,
        },
        "columns": {
            "storage_type": "binary",
        },
        "database": {
            "url": "http://localhost:8529",
            "database": "secure_columns",
            "username": "root",
            "password": "",
            "collection": "secure_records",
        },
    }

    # Active configuration values
    _config: dict[str, object] = {}

    _initialized: bool = False

    @classmethod
    def initialize(cls, config_path: str | None = None) -> None:
        """
        Initialize the configuration.

        Args:
            config_path: Optional path to a YAML configuration file
        """
        # Deep copy so nested sections are never shared with the defaults
        cls._config = deepcopy(cls._default_config)

        if config_path:
            cls._load_from_file(config_path)

        cls._load_from_env()

        cls._initialized = True

    @classmethod
    def _merge(cls, values: dict[str, object]) -> None:
        """Merge a mapping into the configuration one section at a time."""
        for section, section_values in values.items():
            current = cls._config.get(section)
            if isinstance(section_values, dict) and isinstance(current, dict):
                current.update(section_values)
            else:
                cls._config[section] = section_values

    @classmethod
    def _load_from_file(cls, config_path: str) -> None:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file
        """
        path = Path(config_path)
        if not path.exists():
            print(f"Configuration file not found: {config_path}", file=sys.stderr)
            sys.exit(1)

        try:
            with open(path, "r") as f:
                file_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Error loading configuration file: {e}", file=sys.stderr)
            sys.exit(1)

        if file_config:
            if not isinstance(file_config, dict):
                print(f"Configuration file must contain a mapping: {config_path}", file=sys.stderr)
                sys.exit(1)
            cls._merge(file_config)

    @classmethod
    def _load_from_env(cls) -> None:
        """Load configuration from environment variables."""
        env_mode = os.environ.get("SECURE_COLUMNS_MODE")
        if env_mode in ("DEV", "PROD"):
            cls._config["mode"] = env_mode

        env_key = os.environ.get("SECURE_COLUMNS_ENCRYPTION_KEY")
        if env_key:
            cls._config["encryption"]["key"] = env_key

        env_algorithm = os.environ.get("SECURE_COLUMNS_ALGORITHM")
        if env_algorithm:
            cls._config["encryption"]["algorithm"] = env_algorithm

        env_db_url = os.environ.get("SECURE_COLUMNS_DB_URL")
        if env_db_url:
            cls._config["database"]["url"] = env_db_url

        env_db_username = os.environ.get("SECURE_COLUMNS_DB_USERNAME")
        if env_db_username:
            cls._config["database"]["username"] = env_db_username

        env_db_password = os.environ.get("SECURE_COLUMNS_DB_PASSWORD")
        if env_db_password:
            cls._config["database"]["password"] = env_db_password

    @classmethod
    def _ensure_initialized(cls) -> None:
        if not cls._initialized:
            cls.initialize()

    @classmethod
    def get(cls, key: str, default: object = None) -> object:
        """
        Get a configuration value.

        Args:
            key: The configuration key, nested keys use dot notation
            default: Default value to return if key is not found

        Returns:
            The configuration value, or default if not found
        """
        cls._ensure_initialized()

        if "." in key:
            value: object = cls._config
            for part in key.split("."):
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    return default
            return value

        return cls._config.get(key, default)

    @classmethod
    def is_dev_mode(cls) -> bool:
        """Check if the system is in development mode."""
        return cls.get("mode") == "DEV"

    @classmethod
    def get_default_storage_type(cls) -> str:
        """Storage type used by record types that do not name one."""
        return cls.get("columns.storage_type", "binary")

    @classmethod
    def get_database_url(cls) -> str:
        return cls.get("database.url", "http://localhost:8529")

    @classmethod
    def get_database_credentials(cls) -> dict:
        """
        Get the database credentials.

        Returns:
            Dictionary containing database name, username and password
        """
        return {
            "username": cls.get("database.username", "root"),
            "password": cls.get("database.password", ""),
            "database": cls.get("database.database", "secure_columns"),
        }

    @classmethod
    def load_from_secrets_file(cls, file_path: str) -> None:
        """
        Load configuration from a secrets file.

        Sections in the secrets file are merged into the existing
        configuration rather than replacing it.

        Args:
            file_path: Path to the secrets file
        """
        cls._ensure_initialized()

        path = Path(file_path)
        if not path.exists():
            print(f"Secrets file not found: {file_path}", file=sys.stderr)
            return

        try:
            with open(path, "r") as f:
                secrets = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Error loading secrets file: {e}", file=sys.stderr)
            sys.exit(1)

        if secrets:
            cls._merge(secrets)

        print(f"Loaded configuration from secrets file: {file_path}", file=sys.stderr)
