"""Core module initialization."""

from .config_manager import BackoffConfig, ClientConfig, ConfigManager, LoggingConfig
from .logging_config import setup_logging, log_with_context

__all__ = [
    "BackoffConfig",
    "ClientConfig",
    "ConfigManager",
    "LoggingConfig",
    "setup_logging",
    "log_with_context",
]
