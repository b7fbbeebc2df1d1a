import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import colorlog
from dotenv import load_dotenv

from .constants import PICK_MAX_ATTEMPTS

# Load environment variables
load_dotenv(override=False)

"""
Configuration Management for Cosmos DB Manager

This module provides runtime settings (logging, pipeline limits) read from
environment variables. Accounts and server profiles live in the YAML
configuration handled by the ``config`` package.
"""

ENV_PREFIX = "COSMOSDB_MANAGER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _set_azure_http_log_level(log_level: str) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    http_loggers = [
        "azure.core.pipeline.policies.http_logging_policy",
        "azure.core.pipeline",
        "azure.identity",
        "azure.mgmt",
        "azure.cosmos",
        "azure",
        "pymongo",
        "urllib3",
        "aiohttp",
    ]
    # HTTP logging should only appear at DEBUG level
    target_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in http_loggers:
        logging.getLogger(name).setLevel(target_level)


logger = logging.getLogger(__name__)


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    format: str = field(
        default_factory=lambda: _env(
            "LOG_FORMAT", "%(log_color)s%(levelname)s:%(name)s:%(message)s"
        )
    )
    file_output: Optional[str] = field(
        default_factory=lambda: os.getenv(f"{ENV_PREFIX}LOG_FILE")
    )

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class PipelineConfig:
    """Limits applied by the connection pipeline and ARM enrichment."""

    pick_max_attempts: int = field(
        default_factory=lambda: int(_env("PICK_MAX_ATTEMPTS", str(PICK_MAX_ATTEMPTS)))
    )
    max_concurrency: int = field(
        default_factory=lambda: int(_env("MAX_CONCURRENCY", "8"))
    )
    connect_timeout_ms: int = field(
        default_factory=lambda: int(_env("CONNECT_TIMEOUT_MS", "10000"))
    )

    def __post_init__(self) -> None:
        """Validate pipeline limits."""
        if self.pick_max_attempts < 1:
            raise ValueError("Pick max attempts must be at least 1")
        if self.max_concurrency < 1:
            raise ValueError("Max concurrency must be at least 1")
        if self.connect_timeout_ms < 1:
            raise ValueError("Connect timeout must be at least 1 ms")


@dataclass
class CosmosDbManagerConfig:
    """Main configuration class that aggregates all configuration sections."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def from_environment(
        cls,
        log_level: Optional[str] = None,
        pick_max_attempts: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> "CosmosDbManagerConfig":
        """
        Create configuration from environment variables.

        Args:
            log_level: Optional override for the log level
            pick_max_attempts: Optional override for connection string prompts
            max_concurrency: Optional override for ARM enrichment fan-out

        Returns:
            CosmosDbManagerConfig: Configured instance
        """
        config = cls()
        if log_level is not None:
            config.logging.level = log_level.upper()
        if pick_max_attempts is not None:
            config.pipeline.pick_max_attempts = pick_max_attempts
        if max_concurrency is not None:
            config.pipeline.max_concurrency = max_concurrency
        return config

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        try:
            self.logging.__post_init__()
            self.pipeline.__post_init__()
        except ValueError as e:
            logger.exception(f"Configuration validation failed: {e}")
            raise

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration."""
        logger.info("Cosmos DB Manager configuration:")
        logger.info(f"   - Log Level: {self.logging.level}")
        if self.logging.file_output:
            logger.info(f"   - Log File: {self.logging.file_output}")
        logger.info(f"   - Pick Max Attempts: {self.pipeline.pick_max_attempts}")
        logger.info(f"   - Max Concurrency: {self.pipeline.max_concurrency}")
        logger.info(f"   - Connect Timeout: {self.pipeline.connect_timeout_ms} ms")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
            "pipeline": {
                "pick_max_attempts": self.pipeline.pick_max_attempts,
                "max_concurrency": self.pipeline.max_concurrency,
                "connect_timeout_ms": self.pipeline.connect_timeout_ms,
            },
        }


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration based on config.
    """
    _set_azure_http_log_level(config.level.upper())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(config.get_log_level())

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(colorlog.ColoredFormatter(config.format))
    root_logger.addHandler(console_handler)

    if config.file_output:
        file_handler = logging.FileHandler(config.file_output)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s:%(name)s:%(message)s")
        )
        root_logger.addHandler(file_handler)

    # Suppress Azure HTTP request/response logs unless debugging
    if config.level != "DEBUG":
        logging.getLogger("azure").setLevel(logging.WARNING)
        logging.getLogger(
            "azure.core.pipeline.policies.http_logging_policy"
        ).setLevel(logging.WARNING)

    logger.debug(
        f"Logging configured: level={config.level}, file={config.file_output or 'console'}"
    )


def create_config_from_env(
    log_level: Optional[str] = None,
    pick_max_attempts: Optional[int] = None,
    max_concurrency: Optional[int] = None,
) -> CosmosDbManagerConfig:
    """
    Factory function to create and validate configuration from environment.

    Raises:
        ValueError: If configuration is invalid
    """
    config = CosmosDbManagerConfig.from_environment(
        log_level, pick_max_attempts, max_concurrency
    )
    config.validate_all()
    return config
