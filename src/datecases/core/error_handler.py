"""Error Types for datecases

Exception hierarchy raised by the collaborators around the extraction engine
(configuration and lexicon loading). The engine itself never raises for
natural-language input; unusable values degrade to low-confidence records.
"""

import logging
from enum import Enum
from typing import Optional


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DateCasesError(Exception):
    """Base exception class for datecases."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM):
        self.message = message
        self.severity = severity
        super().__init__(self.message)


class ConfigurationError(DateCasesError):
    """Error raised when configuration is invalid."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.HIGH):
        super().__init__(message, severity)


class LexiconError(DateCasesError):
    """Error raised when lexicon data cannot be loaded or is malformed."""

    def __init__(self, message: str, source: Optional[str] = None,
                 severity: ErrorSeverity = ErrorSeverity.HIGH):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message, severity)


def log_error(logger: logging.Logger, error: Exception, context: Optional[str] = None):
    """Log an error at the level matching its severity.

    Args:
        logger: Logger to write to
        error: The exception that occurred
        context: Additional context about where the error occurred
    """
    severity = error.severity if isinstance(error, DateCasesError) else ErrorSeverity.MEDIUM
    message = str(error)
    if context:
        message = f"{context}: {message}"

    log_methods = {
        ErrorSeverity.LOW: logger.info,
        ErrorSeverity.MEDIUM: logger.warning,
        ErrorSeverity.HIGH: logger.error,
        ErrorSeverity.CRITICAL: logger.critical,
    }
    log_methods[severity](message)
