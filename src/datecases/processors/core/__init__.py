"""Core extraction engine: data model, rule tiers and the extractor."""

from .field_types import (
    Context,
    ContextSet,
    DateType,
    FieldRecord,
    TimeType,
    Token,
    ValidMode,
    get_date_property,
    is_date_type,
    is_time_type,
    set_date_property,
)
from .temporal_extractor import TemporalExtractionResult, TemporalExtractor, extract_time

__all__ = [
    "Context",
    "ContextSet",
    "DateType",
    "FieldRecord",
    "TimeType",
    "Token",
    "ValidMode",
    "get_date_property",
    "is_date_type",
    "is_time_type",
    "set_date_property",
    "TemporalExtractionResult",
    "TemporalExtractor",
    "extract_time"
]
