"""Structural Rule Tier

Rules for explicit temporal grammar: numeric dates and clock times, weekday
references, "X minutes to H" and "half past H" phrasings, day parts, and the
relative words (tomorrow, after a while, every day). Matches found here are
trusted enough to be certified right away, except plain clock readings.

The list order is the execution order; equal priorities never reorder.
"""

import math
import re
from typing import List

from .field_types import DateType, Number, TimeType, ValidMode, get_date_property, parse_number
from .scan_state import PatternRule, ScanState
from .validity import (
    check_date,
    check_hours,
    check_minutes,
    check_month,
    check_year,
    day_part_adjusted_hour,
    days_to_weekday,
)

CERTIFIED = ValidMode.CERTIFIED


def _numeric_date(state: ScanState, match: re.Match, prevalence: Number):
    """d.m(.y) dates; a two-part value that cannot be a date may be a clock."""
    index = match.start()
    parts = state.tokens[index].text.split(".")
    day = parse_number(parts[0])
    month = parse_number(parts[1]) if len(parts) > 1 else math.nan
    year = parse_number(parts[2]) if len(parts) > 2 else -1

    if (check_date(day, month, year, state.month_sizes)
            and check_month(month)
            and (year == -1 or check_year(year))):
        indexes = state.mark(index, 1, True, True)
        context = state.resolve_context(indexes)
        state.add_record(DateType.TARGET, TimeType.DATES, day, indexes, context, prevalence,
                         valid_mode=CERTIFIED)
        state.add_record(DateType.TARGET, TimeType.MONTHS, month, indexes, context, prevalence,
                         valid_mode=CERTIFIED)
        if year != -1:
            state.add_record(DateType.TARGET, TimeType.YEARS, year, indexes, context, prevalence,
                             valid_mode=CERTIFIED)
    elif check_hours(day) and check_minutes(month) and len(parts) == 2:
        state.recode(index, "t")


def _clock_time(state: ScanState, match: re.Match, prevalence: Number):
    """h:m(:s) clock readings."""
    index = match.start()
    text = state.tokens[index].text
    parts = re.split(r"[:.]", text)
    hours = parse_number(parts[0])
    minutes = parse_number(parts[1]) if len(parts) > 1 else math.nan
    seconds = -1

    if len(parts) > 2:
        separators = re.findall(r"[:.]", text)
        if separators[0] == separators[1]:
            seconds = parse_number(parts[2])
        else:
            hours = 100

    if check_hours(hours) and check_minutes(minutes) and (seconds == -1 or check_minutes(seconds)):
        indexes = state.mark(index, 1, True, True)
        context = state.resolve_context(indexes)
        state.add_record(DateType.TARGET, TimeType.HOURS, hours, indexes, context, prevalence,
                         is_fixed=True)
        state.add_record(DateType.TARGET, TimeType.MINUTES, minutes, indexes, context, prevalence)
        if seconds != -1:
            state.add_record(DateType.TARGET, TimeType.SECONDS, seconds, indexes, context,
                             prevalence)


def _weekday(state: ScanState, match: re.Match, prevalence: Number):
    """this / next <weekday>."""
    index, length = match.start(), len(match.group())
    week_day = state.tokens[index + length - 1].semantic_value
    if week_day == 0:
        return

    difference = days_to_weekday(week_day, state.now)
    if match.group()[0] == "F" and difference == 0:
        difference += 7

    indexes = state.mark(index, length, True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.DATES, state.now.day + difference, indexes,
                     context, prevalence, valid_mode=CERTIFIED)


def _minutes_before_hour(state: ScanState, match: re.Match, prevalence: Number,
                         minutes: Number, hour: Number, pull_preposition: bool):
    text = match.group()
    if not (1 <= hour <= 25 and 0 < minutes < 60):
        return

    is_fixed = False
    if text.endswith("O"):
        hour = day_part_adjusted_hour(hour, state.tokens[match.end() - 1].semantic_value)
        is_fixed = True

    indexes = state.mark(match.start(), len(text), pull_preposition, False)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.HOURS, hour - 1, indexes, context, prevalence,
                     valid_mode=CERTIFIED, is_fixed=is_fixed)
    state.add_record(DateType.TARGET, TimeType.MINUTES, 60 - minutes, indexes, context,
                     prevalence, valid_mode=CERTIFIED)


def _in_without_minutes(state: ScanState, match: re.Match, prevalence: Number):
    """in without X minutes H."""
    index = match.start()
    minutes = state.tokens[index + 2].number
    hour = state.tokens[index + 3].number
    _minutes_before_hour(state, match, prevalence, minutes, hour, pull_preposition=False)


def _without_minutes(state: ScanState, match: re.Match, prevalence: Number):
    """without X (minutes) H."""
    index, text = match.start(), match.group()
    minutes = state.tokens[index + 1].number
    hour = state.tokens[index + 3 if text[2] == "m" else index + 2].number
    _minutes_before_hour(state, match, prevalence, minutes, hour, pull_preposition=True)


def _minutes_to_hour(state: ScanState, match: re.Match, prevalence: Number):
    """X (minutes) to H."""
    index, text = match.start(), match.group()
    minutes = state.tokens[index].number
    hour = state.tokens[index + 3 if text[1] == "m" else index + 2].number
    _minutes_before_hour(state, match, prevalence, minutes, hour, pull_preposition=True)


def _emit_half_hour(state: ScanState, match: re.Match, prevalence: Number,
                    hour: Number, is_fixed: bool):
    indexes = state.mark(match.start(), len(match.group()), True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.HOURS, hour, indexes, context, prevalence,
                     valid_mode=CERTIFIED, is_fixed=is_fixed)
    state.add_record(DateType.TARGET, TimeType.MINUTES, 30, indexes, context, prevalence,
                     valid_mode=CERTIFIED)


def _half_of_next_hour(state: ScanState, match: re.Match, prevalence: Number):
    """half <hour + 1>, read as <hour>:30."""
    index = match.start()
    hour = state.tokens[index + 1].number - 1
    if not 0 <= hour <= 23:
        return

    is_fixed = False
    if match.group().endswith("O"):
        hour = day_part_adjusted_hour(hour, state.tokens[index + 2].semantic_value)
        is_fixed = True
    _emit_half_hour(state, match, prevalence, hour, is_fixed)


def _half_past_hour(state: ScanState, match: re.Match, prevalence: Number):
    """half past <hour>, or half <hour + 1> followed by an hour word."""
    index, text = match.start(), match.group()
    offset = 1 if text[1] == "L" else 0
    hour = state.tokens[index + offset + 1].number
    lowest, highest = (0, 23) if offset else (1, 24)
    if not lowest <= hour <= highest:
        return

    is_fixed = False
    if text.endswith("O"):
        hour = day_part_adjusted_hour(hour, state.tokens[index + offset + 2].semantic_value)
        is_fixed = True
    if offset == 0:
        hour -= 1
    _emit_half_hour(state, match, prevalence, hour, is_fixed)


def _hour_with_day_part(state: ScanState, match: re.Match, prevalence: Number):
    """<hour> <day part>, e.g. "7 pm"."""
    index = match.start()
    hour = state.tokens[index].number
    if not check_hours(hour):
        return

    hour = day_part_adjusted_hour(hour, state.tokens[index + 1].semantic_value)
    indexes = state.mark(index, 2, True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.HOURS, hour, indexes, context, prevalence,
                     valid_mode=CERTIFIED, is_fixed=True)


def _after_relative_day(state: ScanState, match: re.Match, prevalence: Number):
    """after tomorrow."""
    index = match.start()
    days = state.tokens[index + 1].semantic_value + 1
    indexes = state.mark(index, 2, True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.DATES, state.now.day + days, indexes, context,
                     prevalence, valid_mode=CERTIFIED)


def _after_a_while(state: ScanState, match: re.Match, prevalence: Number):
    """after a while: half an hour from now."""
    now = state.now
    indexes = state.mark(match.start(), len(match.group()), False, True)
    context = state.resolve_context(indexes)
    values = [
        (TimeType.HOURS, now.hour),
        (TimeType.MINUTES, now.minute + 30),
    ]
    values.extend(
        (time_type, get_date_property(now, time_type))
        for time_type in (TimeType.DATES, TimeType.MONTHS, TimeType.SECONDS, TimeType.YEARS)
    )
    for time_type, value in values:
        state.add_record(DateType.TARGET, time_type, value, indexes, context, prevalence,
                         valid_mode=CERTIFIED, is_offset=True)


def _relative_day(state: ScanState, match: re.Match, prevalence: Number):
    """tomorrow / the day after tomorrow."""
    index = match.start()
    days = state.tokens[index].semantic_value
    indexes = state.mark(index, 1, True, True)
    context = state.resolve_context(indexes)
    state.add_record(DateType.TARGET, TimeType.DATES, state.now.day + days, indexes, context,
                     prevalence, valid_mode=CERTIFIED)
    state.add_record(DateType.TARGET, TimeType.MONTHS, state.now.month, indexes, context,
                     prevalence, valid_mode=CERTIFIED)


def _every_day(state: ScanState, match: re.Match, prevalence: Number):
    """every day / every <weekday>."""
    index = match.start()
    week_day = state.tokens[index + 1].semantic_value
    indexes = state.mark(index, 2, True, False)
    context = state.resolve_context(indexes)

    if week_day == 0:
        state.add_record(DateType.PERIOD, TimeType.DATES, 1, indexes, context, prevalence,
                         valid_mode=CERTIFIED)
        return

    state.add_record(DateType.PERIOD, TimeType.DATES, 7, indexes, context, prevalence,
                     valid_mode=CERTIFIED)
    state.add_record(DateType.TARGET, TimeType.DATES,
                     state.now.day + days_to_weekday(week_day, state.now), indexes, context,
                     prevalence, valid_mode=CERTIFIED)


def build_structural_rules() -> List[PatternRule]:
    """Structural rules in execution order."""
    return [
        PatternRule("numeric_date", 75, r"D", _numeric_date),
        PatternRule("clock_time", 75, r"t", _clock_time),
        PatternRule("weekday", 80, r"[FpP]d", _weekday),
        PatternRule("in_without_minutes", 90, r"[pP]BnnO?", _in_without_minutes),
        PatternRule("without_minutes", 90, r"Bnm?n[Oh]O?", _without_minutes),
        PatternRule("minutes_to_hour", 90, r"nm?Bn[Oh]O?", _minutes_to_hour),
        PatternRule("half_of_next_hour", 90, r"HnO?", _half_of_next_hour),
        PatternRule("half_past_hour", 90, r"HL?n(O|h?)", _half_past_hour),
        PatternRule("hour_with_day_part", 75, r"nO", _hour_with_day_part),
        PatternRule("after_relative_day", 90, r"CA", _after_relative_day),
        PatternRule("after_a_while", 90, r"CX", _after_a_while),
        PatternRule("relative_day", 60, r"A", _relative_day),
        PatternRule("every_day", 60, r"Ed", _every_day),
    ]


STRUCTURAL_RULES = build_structural_rules()
