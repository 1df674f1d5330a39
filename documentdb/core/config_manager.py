"""
Configuration management for the DocumentDB client.

Handles loading, validation, and access to client settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'documentdb.client.executor': 'DEBUG'}"
    )


class BackoffConfig(BaseModel):
    """Backoff policy configuration."""
    ceiling: int = Field(
        default=8,
        ge=0,
        description="Highest retry count used in the backoff exponent"
    )
    min_window_ms: int = Field(
        default=300,
        gt=0,
        description="Lower bound of the jitter window in milliseconds"
    )


class ClientConfig(BaseModel):
    """Main DocumentDB client configuration schema."""

    url: str = Field(default="", description="Account endpoint, e.g. https://account.documents.azure.com")

    master_key: str = Field(default="", description="Base64-encoded master key")

    max_retries: int = Field(
        default=5,
        ge=0,
        description="Retries allowed for throttled (429) or unavailable (503) responses"
    )

    api_version: str = "2017-02-22"

    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-attempt HTTP timeout in seconds"
    )

    backoff: BackoffConfig = Field(default_factory=BackoffConfig)

    ignore_cancellation: bool = Field(
        default=False,
        description="Sleep through backoff delays even when the caller's token fires"
    )

    debug: bool = Field(
        default=False,
        description="Log request and response details at DEBUG level"
    )

    response_hook: Optional[Callable[..., Any]] = Field(
        default=None,
        exclude=True,
        description="Called with (method, response headers, request context) after every response"
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate endpoint scheme and strip surrounding slashes."""
        v = v.strip().strip("/")
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages DocumentDB client configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (DOCUMENTDB_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[ClientConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> ClientConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated ClientConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading DocumentDB client configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            overrides = {k: v for k, v in cli_overrides.items() if v is not None}
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} CLI argument overrides")

        try:
            self._config = ClientConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Connection
        if url := os.getenv("DOCUMENTDB_URL"):
            config["url"] = url
        if master_key := os.getenv("DOCUMENTDB_MASTER_KEY"):
            config["master_key"] = master_key
        if api_version := os.getenv("DOCUMENTDB_API_VERSION"):
            config["api_version"] = api_version

        # Retries and timeouts
        if max_retries := os.getenv("DOCUMENTDB_MAX_RETRIES"):
            config["max_retries"] = int(max_retries)
        if timeout := os.getenv("DOCUMENTDB_TIMEOUT"):
            config["timeout"] = float(timeout)

        # Logging
        if log_level := os.getenv("DOCUMENTDB_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("DOCUMENTDB_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file
        if debug := os.getenv("DOCUMENTDB_DEBUG"):
            config["debug"] = debug.lower() in ['true', '1', 'yes']

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration (with the master key redacted)."""
        if not self._config:
            return

        config_dict = self._config.model_dump()

        if config_dict.get("master_key"):
            config_dict["master_key"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> ClientConfig:
        """
        Get the loaded configuration.

        Returns:
            ClientConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> ClientConfig:
        """
        Reload configuration from the same sources.

        Returns:
            Reloaded ClientConfig instance
        """
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
