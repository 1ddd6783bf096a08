"""Injective blockchain actions for conversational agents."""

from .config import ClientConfig, ConfigurationError, Settings, resolve_client_config
from .logging_config import setup_logging
from .plugin import InjecthivePlugin, build_plugin

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "Settings",
    "resolve_client_config",
    "InjecthivePlugin",
    "build_plugin",
    "setup_logging",
]
