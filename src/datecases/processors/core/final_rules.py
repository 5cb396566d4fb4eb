"""Final Cross-Reference Rule Tier

Marker words that carry no value of their own but qualify the fields found
next to them: day parts ("7 ... pm"), relative offsets ("in 10 minutes"),
ranges ("from 9 to 11"), upper bounds ("until 20 hours") and recurrences
("every 15 minutes"). Each rule locates its fields with the record scanner
and rewrites them in place.

Rules run as an ordered pipeline; every rule sees the records as the
previous one left them.
"""

import re
from typing import List

from .field_types import DateType, FieldRecord, Number, TimeType, ValidMode, get_date_property
from .scan_state import PatternRule, ScanState, has_exclusive_types
from .validity import day_part_adjusted_hour

FINAL_PRIORITY = 90

CLOCK_TYPES = frozenset({TimeType.HOURS, TimeType.MINUTES, TimeType.SECONDS})
OFFSET_TYPES = frozenset({
    TimeType.YEARS, TimeType.DATES, TimeType.MONTH_OFFSET,
    TimeType.HOURS, TimeType.MINUTES, TimeType.SECONDS,
})
RANGE_TYPES = frozenset({
    TimeType.YEARS, TimeType.DATES, TimeType.MONTHS,
    TimeType.HOURS, TimeType.MINUTES, TimeType.SECONDS,
})
SYNTHESIZED_TYPES = [
    TimeType.DATES, TimeType.HOURS, TimeType.MINUTES,
    TimeType.MONTHS, TimeType.SECONDS, TimeType.YEARS,
]


def _day_part(state: ScanState, match: re.Match, prevalence: Number):
    """Apply a day part to the nearest hour, looking back first."""
    state.sort_records()
    origin = match.start()
    records = state.scan(CLOCK_TYPES, -1, origin, exclusive=True)
    if not records:
        records = state.scan(CLOCK_TYPES, 1, origin, exclusive=True)

    # Walk order puts the hour closest to the marker first
    hours = next((r for r in records if r.time_type is TimeType.HOURS), None)
    if hours is None:
        return

    hours.value = day_part_adjusted_hour(hours.value, state.tokens[origin].semantic_value)
    hours.prevalence += prevalence
    hours.is_fixed = True
    hours.extend_indexes(state.mark(origin, 1, True, True))


def _relative_offset(state: ScanState, match: re.Match, prevalence: Number):
    """Turn the amounts after "in"/"after" into now-based values.

    Month counts become an absolute month. Every component the phrase does not
    mention is filled in from the current moment.
    """
    state.sort_records()
    origin = match.start()
    records = state.scan(OFFSET_TYPES, 1, origin, exclusive=True)
    if not records:
        return

    now = state.now
    indexes = state.mark(origin, 1, True, False)
    context = state.resolve_context(indexes)
    missing = list(SYNTHESIZED_TYPES)

    for record in reversed(records):
        if record.time_type in missing:
            missing.remove(record.time_type)

        if record.time_type is TimeType.MONTH_OFFSET:
            state.add_record(record.date_type, TimeType.MONTHS, now.month + record.value,
                             record.indexes + indexes, context, record.prevalence + prevalence,
                             valid_mode=ValidMode.CERTIFIED, is_offset=True)
            state.remove_record(record)
            if TimeType.MONTHS in missing:
                missing.remove(TimeType.MONTHS)
            continue

        record.value = get_date_property(now, record.time_type) + record.value
        record.prevalence += prevalence
        record.extend_indexes(indexes)
        record.certify()
        record.is_offset = True

    for time_type in missing:
        state.add_record(DateType.TARGET, time_type, get_date_property(now, time_type), indexes,
                         context, prevalence, valid_mode=ValidMode.CERTIFIED, is_offset=True)


def _bound_records(records: List[FieldRecord], marker_index: int, prevalence: Number):
    for record in records:
        if record.retype(DateType.MAX):
            record.extend_indexes([marker_index])
            record.certify()
            record.prevalence += prevalence


def _range(state: ScanState, match: re.Match, prevalence: Number):
    """from X to Y; each side must name every component at most once."""
    state.sort_records()
    origin = match.start()
    from_records = state.scan(RANGE_TYPES, 1, origin, ValidMode.IGNORED)
    if not from_records or not has_exclusive_types(from_records):
        return

    to_index = origin + re.search(r"[ZB]", match.group()).start()
    to_records = state.scan(RANGE_TYPES, 1, to_index, ValidMode.IGNORED)
    if not to_records or not has_exclusive_types(to_records):
        return

    for record in from_records:
        record.extend_indexes([origin])
        record.certify()
        record.prevalence += prevalence
    _bound_records(to_records, to_index, prevalence)


def _until(state: ScanState, match: re.Match, prevalence: Number):
    """to / until Y without a "from" side."""
    state.sort_records()
    origin = match.start()
    records = state.scan(RANGE_TYPES, 1, origin)
    if records and has_exclusive_types(records):
        _bound_records(records, origin, prevalence)


def _recurrence(state: ScanState, match: re.Match, prevalence: Number):
    """every X: the fields after the marker become the repetition period."""
    state.sort_records()
    origin = match.start()
    records = state.scan(OFFSET_TYPES, 1, origin, exclusive=True)
    if not records:
        return

    union = state.mark(origin, 1, True, False)
    for record in records:
        for index in record.indexes:
            if index not in union:
                union.append(index)

    for record in records:
        if not record.retype(DateType.PERIOD):
            continue
        record.extend_indexes([index for index in union if index not in record.indexes])
        record.certify()
        record.prevalence += prevalence
        if record.time_type is TimeType.MONTH_OFFSET:
            record.time_type = TimeType.MONTHS


def build_final_rules() -> List[PatternRule]:
    """Cross-reference rules in pipeline order."""
    return [
        PatternRule("day_part", FINAL_PRIORITY, r"O", _day_part),
        PatternRule("relative_offset", FINAL_PRIORITY, r"C", _relative_offset),
        PatternRule("range", FINAL_PRIORITY, r"V\.+I?[ZB]\.+", _range),
        PatternRule("until", FINAL_PRIORITY, r"Z\.+", _until),
        PatternRule("recurrence", FINAL_PRIORITY, r"E\.+", _recurrence),
    ]


FINAL_RULES = build_final_rules()
