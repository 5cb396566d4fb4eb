"""
Pytest configuration and shared fixtures for datecases testing.

Provides a fixed current moment, token builders, the packaged lexicon and a
configured extractor for unit and integration tests.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List

import pytest
import yaml

from datecases.core.config_manager import EngineConfig
from datecases.lexicon.loader import Lexicon, default_lexicon
from datecases.processors.core.field_types import Token
from datecases.processors.core.contexts import split_context
from datecases.processors.core.scan_state import ScanState
from datecases.processors.core.temporal_extractor import TemporalExtractor
from tests.fixtures.sample_data import FIXED_MOMENT, SENTENCES, make_tokens


@pytest.fixture
def fixed_moment():
    """Wednesday 2024-03-13 10:20:30"""
    return FIXED_MOMENT


@pytest.fixture
def token_builder() -> Callable[[List[tuple]], List[Token]]:
    """Token factory taking (text, code, value, maximum) tuples"""
    return make_tokens


@pytest.fixture
def sentence():
    """Tokens of a named sample sentence, built fresh for every call"""
    def build(name: str) -> List[Token]:
        return make_tokens(SENTENCES[name])
    return build


@pytest.fixture
def lexicon() -> Lexicon:
    """Packaged default lexicon"""
    return default_lexicon()


@pytest.fixture
def engine_config() -> EngineConfig:
    """Engine configuration with the default threshold"""
    return EngineConfig(environment="testing", minimum_prevalence=50)


@pytest.fixture
def extractor(engine_config, lexicon) -> TemporalExtractor:
    """Temporal extractor bound to the packaged lexicon"""
    return TemporalExtractor(config=engine_config, lexicon=lexicon)


@pytest.fixture
def scan_state_for(lexicon, fixed_moment):
    """Scan state factory over fresh tokens"""
    def build(entries: List[tuple]) -> ScanState:
        tokens = make_tokens(entries)
        context_set, _ = split_context(tokens, lexicon.compiled_separators)
        return ScanState(tokens, context_set, fixed_moment, lexicon.month_sizes)
    return build


@pytest.fixture
def temp_config_dir(tmp_path) -> Path:
    """Temporary directory with a default configuration file"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_config = {
        "minimum_prevalence": 60,
        "logging": {
            "level": "DEBUG",
            "log_to_console": True,
            "log_to_file": False,
        },
    }
    with open(config_dir / "default_config.yaml", "w") as f:
        yaml.dump(default_config, f)

    return config_dir


@pytest.fixture(autouse=True)
def clean_datecases_env(monkeypatch):
    """Keep host environment overrides out of the tests"""
    for key in list(os.environ):
        if key.startswith("DATECASES_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def caplog_debug(caplog):
    """Capture datecases debug logs"""
    caplog.set_level(logging.DEBUG, logger="datecases")
    return caplog


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")

