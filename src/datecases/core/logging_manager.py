"""Centralized Logging Management for datecases

Every module obtains its logger through :meth:`LoggingManager.get_logger`.
Output handlers hang off the ``datecases`` package logger and are installed
from the logging section of the engine configuration.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from .config_manager import LoggingConfig

CONSOLE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s'


def _level_number(level: str) -> Optional[int]:
    """Numeric value of a level name, None when the name is unknown."""
    number = getattr(logging, level.upper(), None)
    return number if isinstance(number, int) else None


class ColoredFormatter(logging.Formatter):
    """Console formatter wrapping each line in its level's ANSI color."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m',
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        return f"{color}{super().format(record)}{self.COLORS['RESET']}"


class LoggingManager:
    """Centralized logging configuration and management.

    Loggers are handed out under the ``datecases`` namespace. Handlers are only
    installed once :meth:`configure` is called, so importing the library never
    touches the host application's root logger.
    """

    ROOT_NAME = "datecases"

    _instance: Optional['LoggingManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LoggingManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.log_dir: Optional[Path] = None
        self.loggers: Dict[str, logging.Logger] = {}
        self.handlers: Dict[str, logging.Handler] = {}
        self._initialized = True

    @property
    def package_logger(self) -> logging.Logger:
        return logging.getLogger(self.ROOT_NAME)

    def configure(self, config: 'LoggingConfig'):
        """Replace the package handlers according to configuration.

        Args:
            config: Logging section of the engine configuration
        """
        package_logger = self.package_logger
        package_logger.setLevel(logging.DEBUG)
        self._remove_handlers()

        if config.log_to_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(config.level)
            console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
            self._install('console', console_handler)

        if config.log_to_file:
            self.log_dir = Path(config.log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime('%Y%m%d')

            self._install('file', self._rotating_handler(
                self.log_dir / f"datecases_{stamp}.log", logging.DEBUG, config))
            self._install('errors', self._rotating_handler(
                self.log_dir / f"datecases_errors_{stamp}.log", logging.ERROR, config))

    def _rotating_handler(self, log_file: Path, level: int,
                          config: 'LoggingConfig') -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.max_file_bytes,
            backupCount=config.backup_count,
            encoding='utf-8',
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        return handler

    def _install(self, key: str, handler: logging.Handler):
        self.package_logger.addHandler(handler)
        self.handlers[key] = handler

    def _remove_handlers(self):
        for handler in self.handlers.values():
            self.package_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Logger for a module, cached by name.

        Args:
            name: Logger name (typically __name__ of the module)

        Returns:
            Logger under the package namespace when ``name`` is a module path
        """
        manager = cls()
        if name not in manager.loggers:
            manager.loggers[name] = logging.getLogger(name)
        return manager.loggers[name]

    def set_log_level(self, level: str):
        """Set the level of the console handler.

        Raises:
            ValueError: If the level name is unknown
        """
        number = _level_number(level)
        if number is None:
            raise ValueError(f'Invalid log level: {level}')

        console_handler = self.handlers.get('console')
        if console_handler is not None:
            console_handler.setLevel(number)

    def add_custom_handler(self, handler: logging.Handler, level: Optional[str] = None):
        """Attach an extra handler to the package logger.

        Args:
            handler: The logging handler to add
            level: Optional level name for the handler
        """
        if level and _level_number(level) is not None:
            handler.setLevel(_level_number(level))
        self._install(f"custom_{id(handler)}", handler)
