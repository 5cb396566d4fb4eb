"""Calendar Validity Checks

Pure bound checks used by the rule tiers before a decoded value is turned into
a field record, plus the day-part hour mapping and weekday distance helpers.
"""

from datetime import datetime
from enum import IntEnum
from typing import Mapping, Optional

from ...lexicon.loader import MonthSize, default_lexicon
from .field_types import Number


class DayPart(IntEnum):
    """Day-part codes carried in the semantic value of ``O`` tokens."""
    NIGHT = 1
    MORNING = 2
    AFTERNOON = 3
    EVENING = 4
    BEFORE_NOON = 5
    AFTER_NOON = 6


def check_hours(value: Number) -> bool:
    return 0 <= value <= 24


def check_minutes(value: Number) -> bool:
    """Minutes and seconds share the same range."""
    return 0 <= value <= 59


def check_month(value: Number) -> bool:
    return 0 <= value <= 12


def check_year(value: Number) -> bool:
    return 0 <= value


def is_leap_year(year: Number) -> bool:
    """Leap test used by the date checks.

    Century years are leap only when divisible by 16, so 1900 and 2100 are
    common years while 1600 and 2000 are leap years.
    """
    return year % 4 == 0 and (year % 100 != 0 or year % 16 == 0)


def check_date(day: Number, month: Number, year: Number,
               month_sizes: Optional[Mapping[int, MonthSize]] = None) -> bool:
    """Check a day of month against the month table.

    Args:
        day: Day of month
        month: 1-based month number
        year: Year, used for the leap-year length
        month_sizes: Month table, the packaged lexicon's when omitted

    Returns:
        True if the day fits in the month; unknown months are never valid
    """
    if month_sizes is None:
        month_sizes = default_lexicon().month_sizes

    month_size = month_sizes.get(month)
    if month_size is None:
        return False

    limit = month_size.leap_days if is_leap_year(year) else month_size.normal_days
    return 0 <= day <= limit


def day_part_adjusted_hour(hour: Number, day_part: int) -> Number:
    """Map a 12-hour style hour into 24 hours for a day part.

    Codes 1 to 4 describe two six-hour slots; the hour flips by twelve only
    when it lies inside one of them. ``BEFORE_NOON`` and ``AFTER_NOON`` fold
    the hour into the matching half of the day.

    Args:
        hour: Hour as written in the sentence
        day_part: Day-part code from the lexicon

    Returns:
        Adjusted hour, unchanged for unknown codes
    """
    if 1 <= day_part <= 4:
        lower = (6 * day_part) % 24
        upper = (6 * (day_part + 1)) % 24
        if lower < hour <= lower + 6 or upper <= hour <= upper + 6:
            return hour - 12 if hour >= 12 else hour + 12
    elif day_part == DayPart.BEFORE_NOON:
        if hour >= 12:
            return hour - 12
    elif day_part == DayPart.AFTER_NOON:
        if hour < 12:
            return hour + 12
    return hour


def week_day_number(moment: datetime) -> int:
    """Weekday of a moment, 1 for Sunday through 7 for Saturday."""
    return moment.isoweekday() % 7 + 1


def days_to_weekday(week_day: int, moment: datetime) -> int:
    """Days from ``moment`` until the next ``week_day`` (0 when it is today)."""
    difference = week_day - week_day_number(moment)
    if difference < 0:
        difference += 7
    return difference
