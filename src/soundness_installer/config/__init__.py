"""Configuration package for the installer."""

from .exceptions import ConfigurationError
from .logging import configure_logging, get_logger
from .settings import InstallerSettings, LoggingConfig, load_settings

__all__ = [
    "ConfigurationError",
    "InstallerSettings",
    "LoggingConfig",
    "configure_logging",
    "get_logger",
    "load_settings",
]
