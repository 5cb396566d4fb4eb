"""Core modules for datecases.

Configuration, logging, and error types shared by the extraction engine
and its data loaders.
"""

from .config_manager import ConfigManager, EngineConfig, LoggingConfig
from .error_handler import (
    ConfigurationError,
    DateCasesError,
    ErrorSeverity,
    LexiconError,
)
from .logging_manager import LoggingManager

__all__ = [
    "ConfigManager",
    "EngineConfig",
    "LoggingConfig",
    "ConfigurationError",
    "DateCasesError",
    "ErrorSeverity",
    "LexiconError",
    "LoggingManager"
]
