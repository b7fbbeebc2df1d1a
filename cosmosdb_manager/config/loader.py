"""
Configuration loader for accounts and server profiles.

Handles loading from the YAML configuration file with the path resolved in
priority order: explicit argument > COSMOSDB_MANAGER_CONFIG > default location.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .models import ProfilesConfig


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


class ConfigLoader:
    """
    Loads accounts and server profiles from a YAML file.

    A missing file yields an empty configuration so commands that do not need
    profiles still work.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "cosmosdb-manager"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
    CONFIG_PATH_ENV = "COSMOSDB_MANAGER_CONFIG"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to configuration file. If None, uses the
                environment variable or the default location.
        """
        self.config_path = config_path or self._get_config_path_from_env()

    @classmethod
    def _get_config_path_from_env(cls) -> Path:
        """Get configuration path from environment variable or default."""
        env_path = os.environ.get(cls.CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path).expanduser()
        return cls.DEFAULT_CONFIG_FILE

    def load(self) -> ProfilesConfig:
        """
        Load and validate the configuration file.

        Returns:
            Validated ProfilesConfig object

        Raises:
            ConfigError: If configuration is invalid
        """
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            config_dict = self._load_file(self.config_path)

        try:
            return ProfilesConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e}") from e

    def _load_file(self, path: Path) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Top level of {path} must be a mapping")
        return data

    def create_default_config(self, force: bool = False) -> Path:
        """
        Create default configuration file with comments.

        Args:
            force: Overwrite existing file if True

        Returns:
            Path to created configuration file

        Raises:
            ConfigError: If file exists and force=False
        """
        if self.config_path.exists() and not force:
            raise ConfigError(
                f"Configuration file already exists at {self.config_path}. "
                "Use force=True to overwrite."
            )

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, "w") as f:
                f.write(self._get_default_config_yaml())
        except OSError as e:
            raise ConfigError(
                f"Cannot write config file {self.config_path}: {e}"
            ) from e

        return self.config_path

    def _get_default_config_yaml(self) -> str:
        """
        Get default configuration as commented YAML.

        Returns:
            YAML string with inline documentation
        """
        return """\
# Cosmos DB Manager - Accounts and Servers
# ========================================

# Azure accounts used for AzureMFA (federated) servers
accounts:
  - id: "me@contoso.com"
    display_name: "Contoso"
    # cli, default, or client_secret
    auth: cli
    tenant_ids: ["00000000-0000-0000-0000-000000000000"]
    arm_endpoint: "https://management.azure.com"
    portal_endpoint: "https://portal.azure.com"

# Servers (database accounts) the tool can connect to
servers:
  # Connection string authentication
  - name: "local-mongo"
    api: mongo
    authentication_type: SqlLogin
    connection_string_env: "LOCAL_MONGO_CONNECTION_STRING"

  # Federated authentication; the resource id is discovered when omitted
  - name: "contoso-cosmos"
    api: mongo
    authentication_type: AzureMFA
    azure_account: "me@contoso.com"
    azure_tenant_id: "00000000-0000-0000-0000-000000000000"
    # azure_resource_id: "/subscriptions/<sub>/resourceGroups/<rg>/providers/Microsoft.DocumentDB/databaseAccounts/contoso-cosmos"
"""


def load_config(config_path: Optional[Path] = None) -> ProfilesConfig:
    """
    Convenience function to load configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    return ConfigLoader(config_path).load()


def create_default_config(config_path: Optional[Path] = None, force: bool = False) -> Path:
    """
    Convenience function to create default configuration file.

    Raises:
        ConfigError: If file exists and force=False
    """
    return ConfigLoader(config_path).create_default_config(force)
