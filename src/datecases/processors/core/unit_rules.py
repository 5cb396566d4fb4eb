"""Number and Unit Rule Tier

Rules pairing a number with a unit word ("15 minutes", "3 weeks", "2 May"),
bare unit words, and compact number+unit literals. None of these are
certified on their own: they wait for a cross-reference marker to confirm
them, and values beyond the unit token's bound are kept as not valid.

All rules share one priority and run as a block, in list order.
"""

import math
import re
from typing import List

from .field_types import DateType, Number, TimeType, ValidMode, parse_number
from .scan_state import PatternRule, ScanState
from .validity import days_to_weekday

UNIT_PRIORITY = 50


def bounded_mode(value: Number, maximum: Number, inclusive: bool = True) -> ValidMode:
    """Validity of a value against a token bound (0 means unbounded).

    Args:
        value: Decoded value
        maximum: Bound from the lexicon
        inclusive: Whether the bound itself is an allowed value

    Returns:
        NOT_CERTIFIED when within the bound, NOT_VALID otherwise
    """
    if isinstance(value, float) and math.isnan(value):
        return ValidMode.NOT_VALID
    if maximum != 0 and (value > maximum if inclusive else value >= maximum):
        return ValidMode.NOT_VALID
    return ValidMode.NOT_CERTIFIED


def _number_with_unit(time_type: TimeType, any_preposition: bool, multiplier: int = 1):
    def handler(state: ScanState, match: re.Match, prevalence: Number):
        index = match.start()
        value = state.tokens[index].number * multiplier
        valid_mode = bounded_mode(value, state.tokens[match.end() - 1].maximum)
        indexes = state.mark(index, len(match.group()), True, any_preposition)
        context = state.resolve_context(indexes)
        state.add_record(DateType.TARGET, time_type, value, indexes, context, prevalence,
                         valid_mode=valid_mode)
    return handler


def _day_of_named_month(state: ScanState, match: re.Match, prevalence: Number):
    """<day> (of) <month name>."""
    index = match.start()
    month_token = state.tokens[match.end() - 1]
    day = state.tokens[index].number
    valid_mode = bounded_mode(day, month_token.maximum)
    indexes = state.mark(index, len(match.group()), True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.DATES, day, indexes, context, prevalence,
                     valid_mode=valid_mode)
    state.add_record(DateType.TARGET, TimeType.MONTHS, month_token.semantic_value, indexes,
                     context, prevalence, valid_mode=valid_mode)


def _months_from_now(state: ScanState, match: re.Match, prevalence: Number):
    """<n> months from now; only positive counts are offsets."""
    index = match.start()
    months = state.tokens[index].number
    if not 0 < months:
        return
    indexes = state.mark(index, len(match.group()), True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.MONTH_OFFSET, months, indexes, context,
                     prevalence)


def _unit_only(time_type: TimeType, value: Number):
    def handler(state: ScanState, match: re.Match, prevalence: Number):
        indexes = state.mark(match.start(), 1, True, False)
        context = state.resolve_context(indexes)
        state.add_record(DateType.TARGET, time_type, value, indexes, context, prevalence,
                         valid_mode=ValidMode.NOT_VALID)
    return handler


def _day_only(state: ScanState, match: re.Match, prevalence: Number):
    """A lone "day" or weekday word."""
    index = match.start()
    week_day = state.tokens[index].semantic_value
    if week_day == 0:
        value = 1
    else:
        value = state.now.day + days_to_weekday(week_day, state.now)
    indexes = state.mark(index, 1, True, False)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.DATES, value, indexes, context, prevalence,
                     valid_mode=ValidMode.NOT_VALID)


def _compact_literal(time_type: TimeType):
    def handler(state: ScanState, match: re.Match, prevalence: Number):
        index = match.start()
        token = state.tokens[index]
        value = parse_number(token.text[:-1])
        valid_mode = bounded_mode(value, token.maximum, inclusive=False)
        indexes = state.mark(index, 1, True, False)
        context = state.resolve_context(indexes)
        state.add_record(DateType.TARGET, time_type, value, indexes, context, prevalence,
                         valid_mode=valid_mode)
    return handler


def build_unit_rules() -> List[PatternRule]:
    """Number and unit rules in execution order."""
    rules = [
        ("seconds", r"ns", _number_with_unit(TimeType.SECONDS, False)),
        ("minutes", r"nm", _number_with_unit(TimeType.MINUTES, False)),
        ("hours", r"nh", _number_with_unit(TimeType.HOURS, True)),
        ("days", r"n[dS]", _number_with_unit(TimeType.DATES, True)),
        ("weeks", r"nw", _number_with_unit(TimeType.DATES, True, multiplier=7)),
        ("day_of_named_month", r"nQ?M", _day_of_named_month),
        ("months_from_now", r"nK", _months_from_now),
        ("years", r"[nN]y", _number_with_unit(TimeType.YEARS, False)),
        ("second_unit", r"s", _unit_only(TimeType.SECONDS, 1)),
        ("minute_unit", r"m", _unit_only(TimeType.MINUTES, 1)),
        ("hour_unit", r"h", _unit_only(TimeType.HOURS, 1)),
        ("week_unit", r"w", _unit_only(TimeType.DATES, 7)),
        ("month_unit", r"K", _unit_only(TimeType.MONTH_OFFSET, 1)),
        ("year_unit", r"y", _unit_only(TimeType.YEARS, 1)),
        ("day_unit", r"d", _day_only),
    ]

    compact_types = [TimeType.SECONDS, TimeType.MINUTES, TimeType.HOURS,
                     TimeType.DATES, TimeType.MONTHS, TimeType.YEARS]
    for code, time_type in enumerate(compact_types):
        rules.append((f"compact_{time_type.value}", str(code), _compact_literal(time_type)))

    return [PatternRule(name, UNIT_PRIORITY, pattern, handler) for name, pattern, handler in rules]


UNIT_RULES = build_unit_rules()
