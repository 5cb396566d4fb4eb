"""Field Types for Temporal Extraction

Data model shared by every rule tier: lexicon tokens, extracted field records,
clause contexts, and the enumerations that make up the public contract.

Class codes carried by tokens (one character each):

    n N     number / long number        D t     d.m(.y) date / h:m(:s) clock
    s m h   second / minute / hour unit  d S     weekday or "day" / day-of-month unit
    w       week unit                   M K     named month / "months from now" unit
    y       year unit                   Q       "of" between a day and a month
    p P     preposition (weak / strong) F       "next" before a weekday
    B       "without" / "to" before H    O       day part (morning, p.m., ...)
    H L     "half" / "past"             C       "after" / "in" (relative offset)
    A       tomorrow-style day          X       relative "a while" marker
    E       "every"                     V Z     range "from" / "to, until"
    I !     clause breaks               0-5     compact number+unit literal (20S, 7M)

Any other code, such as ``x``, marks a word no rule reacts to.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Optional, Union

from dateutil.relativedelta import relativedelta

Number = Union[int, float]

CONSUMED_CODE = "."
CONTEXT_BREAK_CODES = frozenset("!I")


class DateType(str, Enum):
    """Which date a field belongs to."""
    TARGET = "target_date"
    PERIOD = "period_time"
    MAX = "max_date"


class TimeType(str, Enum):
    """Calendar component carried by a field."""
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DATES = "dates"
    MONTHS = "months"
    MONTH_OFFSET = "nMonth"
    YEARS = "years"


class ValidMode(IntEnum):
    """Confidence level of an extracted field."""
    CERTIFIED = 1
    NOT_CERTIFIED = 0
    NOT_VALID = -1
    IGNORED = -100


def is_date_type(value: Any) -> bool:
    """Check whether a value names one of the date types."""
    return any(value == date_type.value for date_type in DateType)


def is_time_type(value: Any) -> bool:
    """Check whether a value names one of the time types."""
    return any(value == time_type.value for time_type in TimeType)


def parse_number(text: str) -> Number:
    """Parse a numeric literal the lenient way the lexicon writes them.

    Blank text reads as zero; anything unparseable reads as NaN so that every
    later bound check fails.
    """
    text = text.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return math.nan


@dataclass
class Token:
    """One lexical unit produced by the lexicon tokenizer."""
    text: str
    class_code: str
    numeric_value: Optional[Number] = None
    semantic_value: int = 0
    maximum: Number = 0

    @property
    def number(self) -> Number:
        """Numeric value, falling back to the token text."""
        if self.numeric_value is not None:
            return self.numeric_value
        return parse_number(self.text)


@dataclass(eq=False)
class FieldRecord:
    """One extracted date/time component with its provenance.

    Records compare by identity: two rules may legitimately produce equal
    values for different tokens.
    """
    date_type: DateType
    time_type: TimeType
    value: Number
    indexes: List[int]
    context: int
    prevalence: Number
    valid_mode: ValidMode = ValidMode.NOT_CERTIFIED
    is_offset: bool = False
    is_fixed: bool = False

    @property
    def first_index(self) -> int:
        return self.indexes[0]

    def certify(self):
        """Upgrade the record to certified. Confidence never goes down."""
        self.valid_mode = ValidMode.CERTIFIED

    def retype(self, date_type: DateType) -> bool:
        """Move a target record to a range bound or a recurrence period.

        Returns:
            True if the record now has the requested date type
        """
        if self.date_type is DateType.TARGET:
            self.date_type = date_type
        return self.date_type is date_type

    def extend_indexes(self, indexes: Iterable[int]):
        self.indexes.extend(indexes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date_type": self.date_type.value,
            "time_type": self.time_type.value,
            "value": self.value,
            "indexes": list(self.indexes),
            "context": self.context,
            "prevalence": self.prevalence,
            "valid_mode": self.valid_mode.name,
            "is_offset": self.is_offset,
            "is_fixed": self.is_fixed,
        }


@dataclass(frozen=True)
class Context:
    """Inclusive token span of one clause."""
    start: int
    end: int

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end


@dataclass
class ContextSet:
    """Clause contexts of a sentence and the ones that received fields."""
    contexts: List[Context] = field(default_factory=list)
    used_context_ids: List[int] = field(default_factory=list)

    def mark_used(self, context_id: int):
        if context_id not in self.used_context_ids:
            self.used_context_ids.append(context_id)


def get_date_property(moment: datetime, time_type: TimeType) -> int:
    """Read one calendar component of a moment (months are 1-based)."""
    time_type = TimeType(time_type)
    if time_type is TimeType.SECONDS:
        return moment.second
    if time_type is TimeType.MINUTES:
        return moment.minute
    if time_type is TimeType.HOURS:
        return moment.hour
    if time_type is TimeType.DATES:
        return moment.day
    if time_type is TimeType.MONTHS:
        return moment.month
    if time_type is TimeType.YEARS:
        return moment.year
    raise ValueError(f"{time_type} has no calendar component")


def set_date_property(moment: datetime, time_type: TimeType, value: int) -> datetime:
    """Return a moment with one component replaced.

    Out-of-range values roll over into the next larger unit, so day 35 of a
    30-day month lands on the 5th of the following month and hour 25 on the
    next day at 01:00.
    """
    time_type = TimeType(time_type)
    value = int(value)
    if time_type is TimeType.SECONDS:
        return moment.replace(second=0) + relativedelta(seconds=value)
    if time_type is TimeType.MINUTES:
        return moment.replace(minute=0) + relativedelta(minutes=value)
    if time_type is TimeType.HOURS:
        return moment.replace(hour=0) + relativedelta(hours=value)
    if time_type is TimeType.DATES:
        return moment.replace(day=1) + relativedelta(days=value - 1)
    if time_type is TimeType.MONTHS:
        first = moment.replace(month=1, day=1) + relativedelta(months=value - 1)
        return first + relativedelta(days=moment.day - 1)
    if time_type is TimeType.YEARS:
        first = moment.replace(year=value, day=1)
        return first + relativedelta(days=moment.day - 1)
    raise ValueError(f"{time_type} has no calendar component")
