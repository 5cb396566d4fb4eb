"""Configuration Management for datecases

Handles loading, validation, and management of engine configuration.
Supports hierarchical configuration files with environment overrides and reloading.
"""

import os
import re
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .error_handler import ConfigurationError
from .logging_manager import LoggingManager


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_to_console: bool = Field(default=True)
    log_to_file: bool = Field(default=False)
    log_dir: str = Field(default="logs")
    max_file_size: str = Field(default="10MB")
    backup_count: int = Field(default=5, ge=1, le=20)

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        """Accept lowercase level names"""
        return v.upper() if isinstance(v, str) else v

    @field_validator('max_file_size')
    @classmethod
    def validate_file_size(cls, v):
        """Validate file size format"""
        if not re.match(r'^\d+[KMG]B$', v.upper()):
            raise ValueError("File size must be in format: 10KB, 10MB, or 1GB")
        return v.upper()

    @property
    def max_file_bytes(self) -> int:
        """Rotating file size limit in bytes."""
        units = {'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3}
        return int(self.max_file_size[:-2]) * units[self.max_file_size[-2]]


class EngineConfig(BaseModel):
    """Main engine configuration."""
    model_config = ConfigDict(validate_assignment=True)

    environment: str = Field(default="development", pattern="^(development|testing|production)$")
    minimum_prevalence: int = Field(default=50, ge=0, le=100)
    lexicon_path: Optional[str] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('lexicon_path')
    @classmethod
    def validate_lexicon_path(cls, v):
        """Lexicon files are YAML documents"""
        if v is not None and Path(v).suffix.lower() not in ('.yaml', '.yml'):
            raise ValueError("Lexicon path must point to a .yaml or .yml file")
        return v


SettingValue = Union[str, int, float, bool, List[str]]


def _deep_merge(target: Dict[str, Any], overrides: Dict[str, Any]):
    """Merge ``overrides`` into ``target`` in place, section by section."""
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _deep_merge(current, value)
        else:
            target[key] = value


def _changed_settings(old: Dict[str, Any], new: Dict[str, Any], prefix: str = "") -> Iterator[str]:
    """Describe every setting that differs between two dumped configurations."""
    for key in sorted(old.keys() | new.keys()):
        path = f"{prefix}.{key}" if prefix else key
        if key not in old:
            yield f"{path} added"
        elif key not in new:
            yield f"{path} removed"
        elif isinstance(old[key], dict) and isinstance(new[key], dict):
            yield from _changed_settings(old[key], new[key], path)
        elif old[key] != new[key]:
            yield f"{path}: {old[key]} -> {new[key]}"


def _parse_env_value(raw: str) -> SettingValue:
    """Convert an environment variable string to the closest YAML-like type."""
    lowered = raw.lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'

    for number_type in (int, float):
        try:
            return number_type(raw)
        except ValueError:
            continue

    if ',' in raw:
        return [item.strip() for item in raw.split(',')]
    return raw


class ConfigManager:
    """Loads the engine configuration from layered YAML files.

    Layers apply in order: ``default_config.yaml``, ``<environment>.yaml``,
    ``local.yaml``, then ``DATECASES_*`` environment variables. The validated
    result is cached until :meth:`reload_config` is called.
    """

    ENV_PREFIX = "DATECASES_"
    ENV_NAME_VARIABLE = "DATECASES_ENV"
    SECTIONS = {'logging'}

    def __init__(self, config_path: Optional[Path] = None, environment: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Directory holding the configuration files
            environment: Environment name (development, testing, production)
        """
        self.config_base_path = Path(config_path) if config_path else self._get_default_config_path()
        self.environment = environment or os.getenv(self.ENV_NAME_VARIABLE, 'development')
        self._config: Optional[EngineConfig] = None
        # update_config() loads under the same lock
        self._lock = threading.RLock()
        self.logger = LoggingManager.get_logger(__name__)
        self.config_files = self._get_config_files()

    def _get_default_config_path(self) -> Path:
        """First existing of ./config and ~/.datecases, else ./config."""
        for candidate in (Path("config"), Path.home() / ".datecases"):
            if candidate.is_dir():
                return candidate
        return Path("config")

    def _get_config_files(self) -> Dict[str, Path]:
        """Configuration layers, lowest precedence first."""
        return {
            'default': self.config_base_path / 'default_config.yaml',
            'environment': self.config_base_path / f'{self.environment}.yaml',
            'local': self.config_base_path / 'local.yaml',
        }

    def load_config(self) -> EngineConfig:
        """Load and validate configuration with hierarchical overrides.

        Returns:
            Validated engine configuration

        Raises:
            ConfigurationError: If a file cannot be parsed or validation fails
        """
        with self._lock:
            if self._config:
                return self._config

            settings: Dict[str, Any] = {'environment': self.environment}
            for layer, config_file in self.config_files.items():
                if config_file.exists():
                    self.logger.info(f"Loading {layer} config from {config_file}")
                    _deep_merge(settings, self._load_yaml_file(config_file))

            env_overrides = self._get_env_overrides()
            if env_overrides:
                self.logger.info(f"Applying environment overrides: {sorted(env_overrides)}")
                _deep_merge(settings, env_overrides)

            self._config = self._build_config(settings, "Invalid configuration")
            return self._config

    def _build_config(self, settings: Dict[str, Any], failure: str) -> EngineConfig:
        try:
            return EngineConfig(**settings)
        except ValidationError as e:
            self.logger.error(f"{failure}: {e}")
            raise ConfigurationError(f"{failure}: {e}") from e

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Read one configuration layer.

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            self.logger.error(f"Cannot parse {file_path}: {e}")
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {file_path} must be a mapping")
        return data

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Collect ``DATECASES_*`` overrides.

        ``DATECASES_<SECTION>_<KEY>`` targets a key of a section, any other name
        a top-level key: ``DATECASES_LOGGING_LOG_TO_FILE`` sets
        ``logging.log_to_file`` and ``DATECASES_MINIMUM_PREVALENCE`` sets
        ``minimum_prevalence``.
        """
        overrides: Dict[str, Any] = {}

        for name, raw in os.environ.items():
            if not name.startswith(self.ENV_PREFIX) or name == self.ENV_NAME_VARIABLE:
                continue

            key = name[len(self.ENV_PREFIX):].lower()
            section, _, section_key = key.partition('_')
            if section in self.SECTIONS and section_key:
                overrides.setdefault(section, {})[section_key] = _parse_env_value(raw)
            else:
                overrides[key] = _parse_env_value(raw)

        return overrides

    def update_config(self, updates: Dict[str, Any]) -> EngineConfig:
        """Apply a partial update on top of the current configuration.

        Args:
            updates: Nested mapping of settings to change

        Returns:
            Updated configuration

        Raises:
            ConfigurationError: If the result fails validation; the current
                configuration is kept
        """
        with self._lock:
            settings = self.load_config().model_dump()
            _deep_merge(settings, updates)
            self._config = self._build_config(settings, "Invalid configuration update")
            return self._config

    def reload_config(self) -> EngineConfig:
        """Re-read every layer, keeping the previous configuration on failure."""
        self.logger.info("Reloading configuration...")

        with self._lock:
            previous, self._config = self._config, None
            try:
                current = self.load_config()
            except ConfigurationError:
                self._config = previous
                raise

            if previous:
                changes = list(_changed_settings(previous.model_dump(), current.model_dump()))
                if changes:
                    self.logger.info(f"Configuration changes: {changes}")
            return current

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data without applying it.

        Returns:
            ``"<dotted.field>: <message>"`` per problem, empty when valid
        """
        try:
            EngineConfig(**config_data)
        except ValidationError as e:
            return [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
        return []

    def export_config(self, file_path: Path) -> bool:
        """Write the current configuration to a YAML file.

        Returns:
            True if the file was written
        """
        config = self.load_config()
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            self.logger.error(f"Failed to export configuration: {e}")
            return False

        self.logger.info(f"Configuration exported to {file_path}")
        return True
