"""datecases - Temporal Expression Extraction

Extracts target dates, recurrence periods and upper-bound dates from
tokenized natural-language sentences.
"""

__version__ = "0.1.0"
__author__ = "datecases Team"
__description__ = "Temporal expression extraction engine"

from .core.config_manager import ConfigManager, EngineConfig
from .lexicon.loader import Lexicon, load_lexicon
from .processors.core import (
    DateType,
    FieldRecord,
    TemporalExtractionResult,
    TemporalExtractor,
    TimeType,
    Token,
    ValidMode,
    extract_time,
)

__all__ = [
    "ConfigManager",
    "EngineConfig",
    "Lexicon",
    "load_lexicon",
    "DateType",
    "FieldRecord",
    "TemporalExtractionResult",
    "TemporalExtractor",
    "TimeType",
    "Token",
    "ValidMode",
    "extract_time"
]
