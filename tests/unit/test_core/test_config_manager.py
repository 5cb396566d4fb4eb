"""
Unit tests for configuration loading and validation.
"""

import logging
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from datecases.core.config_manager import ConfigManager, EngineConfig, LoggingConfig
from datecases.core.error_handler import ConfigurationError, ErrorSeverity


def write_yaml(path, data):
    with open(path, "w") as f:
        yaml.dump(data, f)


class TestConfigModels:
    """Test suite for the pydantic configuration models"""

    @pytest.mark.unit
    def test_defaults(self):
        """Test default engine configuration"""
        config = EngineConfig()

        assert config.environment == "development"
        assert config.minimum_prevalence == 50
        assert config.lexicon_path is None
        assert config.logging.level == "INFO"

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [-1, 101])
    def test_threshold_bounds(self, value):
        """Test that the threshold stays within 0..100"""
        with pytest.raises(ValidationError):
            EngineConfig(minimum_prevalence=value)

    @pytest.mark.unit
    def test_assignment_is_validated(self):
        """Test validation on attribute assignment"""
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.minimum_prevalence = 150

    @pytest.mark.unit
    def test_lexicon_path_must_be_yaml(self):
        """Test the lexicon file suffix check"""
        assert EngineConfig(lexicon_path="lexicons/en.yml").lexicon_path == "lexicons/en.yml"
        with pytest.raises(ValidationError):
            EngineConfig(lexicon_path="lexicons/en.json")

    @pytest.mark.unit
    def test_logging_values_are_normalized(self):
        """Test level and file size normalization"""
        config = LoggingConfig(level="debug", max_file_size="1mb")

        assert config.level == "DEBUG"
        assert config.max_file_size == "1MB"
        assert config.max_file_bytes == 1024 ** 2

    @pytest.mark.unit
    @pytest.mark.parametrize("field,value", [
        ("level", "VERBOSE"),
        ("max_file_size", "10 MB"),
        ("backup_count", 0),
    ])
    def test_invalid_logging_values(self, field, value):
        """Test rejected logging settings"""
        with pytest.raises(ValidationError):
            LoggingConfig(**{field: value})


class TestConfigLoading:
    """Test suite for hierarchical loading"""

    @pytest.mark.unit
    def test_load_default_file(self, temp_config_dir):
        """Test loading the default configuration file"""
        config = ConfigManager(temp_config_dir, "testing").load_config()

        assert config.environment == "testing"
        assert config.minimum_prevalence == 60
        assert config.logging.level == "DEBUG"

    @pytest.mark.unit
    def test_missing_directory_gives_defaults(self, tmp_path):
        """Test that absent files leave model defaults"""
        config = ConfigManager(tmp_path / "nowhere", "production").load_config()

        assert config.environment == "production"
        assert config.minimum_prevalence == 50

    @pytest.mark.unit
    def test_environment_and_local_precedence(self, temp_config_dir):
        """Test that local overrides environment which overrides default"""
        write_yaml(temp_config_dir / "testing.yaml",
                   {"minimum_prevalence": 70, "logging": {"backup_count": 3}})
        write_yaml(temp_config_dir / "local.yaml", {"minimum_prevalence": 75})

        config = ConfigManager(temp_config_dir, "testing").load_config()

        assert config.minimum_prevalence == 75
        assert config.logging.backup_count == 3
        # Deep merge keeps the default file's level
        assert config.logging.level == "DEBUG"

    @pytest.mark.unit
    def test_environment_variable_overrides(self, temp_config_dir, monkeypatch):
        """Test DATECASES_ overrides for top-level and section keys"""
        monkeypatch.setenv("DATECASES_MINIMUM_PREVALENCE", "80")
        monkeypatch.setenv("DATECASES_LOGGING_LEVEL", "warning")
        monkeypatch.setenv("DATECASES_LOGGING_LOG_TO_FILE", "false")

        config = ConfigManager(temp_config_dir, "testing").load_config()

        assert config.minimum_prevalence == 80
        assert config.logging.level == "WARNING"
        assert config.logging.log_to_file is False

    @pytest.mark.unit
    def test_environment_name_from_variable(self, tmp_path, monkeypatch):
        """Test DATECASES_ENV selecting the environment file"""
        monkeypatch.setenv("DATECASES_ENV", "production")
        manager = ConfigManager(tmp_path)

        assert manager.environment == "production"
        assert manager.config_files["environment"] == tmp_path / "production.yaml"

    @pytest.mark.unit
    def test_default_config_path(self, temp_config_dir):
        """Test default directory lookup"""
        with patch.object(ConfigManager, "_get_default_config_path", return_value=temp_config_dir):
            manager = ConfigManager(environment="testing")

        assert manager.config_base_path == temp_config_dir
        assert manager.load_config().minimum_prevalence == 60

    @pytest.mark.unit
    def test_config_is_cached(self, temp_config_dir):
        """Test that repeated loads return the same object"""
        manager = ConfigManager(temp_config_dir, "testing")
        assert manager.load_config() is manager.load_config()

    @pytest.mark.unit
    def test_invalid_yaml(self, temp_config_dir):
        """Test that unparseable YAML raises ConfigurationError"""
        (temp_config_dir / "local.yaml").write_text("minimum_prevalence: [60\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(temp_config_dir, "testing").load_config()
        assert exc_info.value.severity is ErrorSeverity.HIGH

    @pytest.mark.unit
    def test_non_mapping_file(self, temp_config_dir):
        """Test that a YAML list is rejected"""
        (temp_config_dir / "local.yaml").write_text("- 60\n- 70\n")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            ConfigManager(temp_config_dir, "testing").load_config()

    @pytest.mark.unit
    def test_invalid_values(self, temp_config_dir):
        """Test that out-of-range values raise ConfigurationError"""
        write_yaml(temp_config_dir / "local.yaml", {"minimum_prevalence": 150})

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager(temp_config_dir, "testing").load_config()


class TestConfigUpdates:
    """Test suite for updating, reloading and exporting"""

    @pytest.mark.unit
    def test_update_config(self, temp_config_dir):
        """Test a partial update"""
        manager = ConfigManager(temp_config_dir, "testing")
        config = manager.update_config({"logging": {"level": "ERROR"}})

        assert config.logging.level == "ERROR"
        assert config.minimum_prevalence == 60

    @pytest.mark.unit
    def test_invalid_update_keeps_config(self, temp_config_dir):
        """Test that a rejected update leaves the current configuration"""
        manager = ConfigManager(temp_config_dir, "testing")
        original = manager.load_config()

        with pytest.raises(ConfigurationError):
            manager.update_config({"minimum_prevalence": -5})
        assert manager.load_config() is original

    @pytest.mark.unit
    def test_reload_reports_changes(self, temp_config_dir, caplog):
        """Test that reloading picks up file edits and logs the changes"""
        manager = ConfigManager(temp_config_dir, "testing")
        manager.load_config()
        write_yaml(temp_config_dir / "local.yaml", {"minimum_prevalence": 65})

        with caplog.at_level(logging.INFO, logger="datecases"):
            config = manager.reload_config()

        assert config.minimum_prevalence == 65
        assert "minimum_prevalence: 60 -> 65" in caplog.text

    @pytest.mark.unit
    def test_failed_reload_restores_config(self, temp_config_dir):
        """Test that a broken file does not discard the loaded configuration"""
        manager = ConfigManager(temp_config_dir, "testing")
        original = manager.load_config()
        (temp_config_dir / "local.yaml").write_text("minimum_prevalence: [\n")

        with pytest.raises(ConfigurationError):
            manager.reload_config()
        assert manager.load_config() is original

    @pytest.mark.unit
    def test_validate_config(self, temp_config_dir):
        """Test validation without applying"""
        manager = ConfigManager(temp_config_dir, "testing")

        assert manager.validate_config({"minimum_prevalence": 40}) == []
        errors = manager.validate_config({"minimum_prevalence": 140, "logging": {"level": "LOUD"}})
        assert len(errors) == 2
        assert errors[0].startswith("minimum_prevalence:")
        assert errors[1].startswith("logging.level:")

    @pytest.mark.unit
    def test_export_config(self, temp_config_dir, tmp_path):
        """Test exporting to YAML"""
        manager = ConfigManager(temp_config_dir, "testing")
        export_file = tmp_path / "exported.yaml"

        assert manager.export_config(export_file) is True
        with open(export_file) as f:
            exported = yaml.safe_load(f)
        assert exported["minimum_prevalence"] == 60
        assert exported["logging"]["level"] == "DEBUG"

    @pytest.mark.unit
    def test_export_to_missing_directory(self, temp_config_dir, tmp_path):
        """Test that an unwritable target returns False"""
        manager = ConfigManager(temp_config_dir, "testing")
        assert manager.export_config(tmp_path / "missing" / "exported.yaml") is False
