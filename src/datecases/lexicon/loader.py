"""Lexicon Loader for datecases

Loads the lexicon data the extraction engine consumes: the trailing separator
patterns that close a clause and the month-length table used by the calendar
validity checks. Lexicon files are YAML documents validated with pydantic.
"""

import re
from functools import lru_cache
from pathlib import Path
from re import Pattern
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..core.error_handler import LexiconError
from ..core.logging_manager import LoggingManager

DEFAULT_LEXICON_PATH = Path(__file__).parent / "data" / "default.yaml"


class MonthSize(BaseModel):
    """Length of one month in normal and leap years."""
    normal_days: int = Field(..., ge=28, le=31)
    leap_days: int = Field(..., ge=28, le=31)

    @model_validator(mode='after')
    def check_leap_days(self):
        if self.leap_days < self.normal_days:
            raise ValueError("leap_days cannot be shorter than normal_days")
        return self


class Lexicon(BaseModel):
    """Separator patterns and month table for one locale."""
    name: str = Field(default="default")
    separators: List[str] = Field(default_factory=list)
    month_sizes: Dict[int, MonthSize]

    @field_validator('separators')
    @classmethod
    def validate_separators(cls, v):
        """Every separator must be a valid regular expression"""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid separator pattern {pattern!r}: {e}")
        return v

    @field_validator('month_sizes')
    @classmethod
    def validate_month_sizes(cls, v):
        """The table must describe exactly the twelve months"""
        if set(v.keys()) != set(range(1, 13)):
            raise ValueError("month_sizes must define months 1 through 12")
        return v

    @property
    def compiled_separators(self) -> List[Pattern]:
        return [re.compile(pattern) for pattern in self.separators]


def load_lexicon(path: Optional[Union[str, Path]] = None) -> Lexicon:
    """Load and validate a lexicon file.

    Args:
        path: YAML lexicon file, the packaged default when omitted

    Returns:
        Validated lexicon

    Raises:
        LexiconError: If the file is missing, unparseable or malformed
    """
    logger = LoggingManager.get_logger(__name__)
    lexicon_file = Path(path) if path else DEFAULT_LEXICON_PATH

    if not lexicon_file.exists():
        raise LexiconError("Lexicon file not found", source=str(lexicon_file))

    try:
        with open(lexicon_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise LexiconError(f"Invalid YAML: {e}", source=str(lexicon_file)) from e

    if not isinstance(data, dict):
        raise LexiconError("Lexicon must be a mapping", source=str(lexicon_file))

    try:
        lexicon = Lexicon(**data)
    except ValidationError as e:
        raise LexiconError(f"Invalid lexicon: {e}", source=str(lexicon_file)) from e

    logger.debug(
        f"Loaded lexicon '{lexicon.name}' from {lexicon_file} "
        f"({len(lexicon.separators)} separators)"
    )
    return lexicon


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    """Packaged lexicon, loaded once per process."""
    return load_lexicon(DEFAULT_LEXICON_PATH)
