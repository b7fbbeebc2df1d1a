"""
Configuration for accounts and server profiles.

Provides type-safe loading and validation of the YAML configuration file.
"""

from .loader import ConfigError, ConfigLoader, create_default_config, load_config
from .models import AccountConfig, ApiKind, ProfilesConfig, ServerProfile

__all__ = [
    "AccountConfig",
    "ApiKind",
    "ConfigError",
    "ConfigLoader",
    "ProfilesConfig",
    "ServerProfile",
    "create_default_config",
    "load_config",
]
