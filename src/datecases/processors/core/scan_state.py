"""Scan State for the Rule Tiers

Per-call working state shared by every pattern rule: the class-code projection
rules match against, the consumed-token flags, and the accumulated field
records together with the scanner cross-reference rules use to find them.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Collection, List, Mapping, Sequence

from ...lexicon.loader import MonthSize
from .contexts import resolve_context
from .field_types import (
    CONSUMED_CODE,
    ContextSet,
    DateType,
    FieldRecord,
    Number,
    TimeType,
    Token,
    ValidMode,
)


class ScanState:
    """Mutable state of one extraction call.

    Token class codes are copied at construction; consuming a token only flips
    its flag here, so the caller's tokens keep their original codes.
    """

    def __init__(self, tokens: Sequence[Token], context_set: ContextSet,
                 current_moment: datetime, month_sizes: Mapping[int, MonthSize]):
        """Initialize scan state.

        Args:
            tokens: Tokens of the sentence
            context_set: Contexts produced by segmentation
            current_moment: The single "now" every relative rule reads
            month_sizes: Month table for date validity checks
        """
        self.tokens = tokens
        self.context_set = context_set
        self.now = current_moment
        self.month_sizes = month_sizes
        self.codes: List[str] = [token.class_code for token in tokens]
        self.consumed: List[bool] = [False] * len(tokens)
        self.records: List[FieldRecord] = []

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def projection(self) -> str:
        """Class-code string with consumed tokens rendered as ``.``."""
        return "".join(
            CONSUMED_CODE if consumed else code
            for code, consumed in zip(self.codes, self.consumed)
        )

    def find(self, pattern: str) -> List[re.Match]:
        """All matches of a pattern on the current projection.

        The list is a snapshot: marking done while handling one match does not
        remove later matches of the same pass.
        """
        return list(re.finditer(pattern, self.projection))

    def recode(self, index: int, code: str):
        """Reinterpret a token for the rules that run later."""
        self.codes[index] = code

    def mark(self, index: int, length: int, pull_preposition: bool = True,
             any_preposition: bool = False) -> List[int]:
        """Consume a token span.

        Args:
            index: First token of the span
            length: Number of tokens in the span
            pull_preposition: Also consume a weak preposition (``p``) right before the span
            any_preposition: Also accept a strong preposition (``P``)

        Returns:
            Consumed token indexes in ascending order
        """
        if pull_preposition and index > 0:
            previous = self.projection[index - 1]
            if previous == "p" or (any_preposition and previous == "P"):
                index -= 1
                length += 1

        indexes = list(range(max(0, index), min(index + length, len(self.tokens))))
        for i in indexes:
            self.consumed[i] = True
        return indexes

    def resolve_context(self, indexes: Sequence[int]) -> int:
        return resolve_context(self.context_set, indexes)

    def add_record(self, date_type: DateType, time_type: TimeType, value: Number,
                   indexes: Sequence[int], context: int, prevalence: Number,
                   valid_mode: ValidMode = ValidMode.NOT_CERTIFIED,
                   is_offset: bool = False, is_fixed: bool = False) -> FieldRecord:
        record = FieldRecord(
            date_type=date_type,
            time_type=time_type,
            value=value,
            indexes=list(indexes),
            context=context,
            prevalence=prevalence,
            valid_mode=valid_mode,
            is_offset=is_offset,
            is_fixed=is_fixed,
        )
        self.records.append(record)
        return record

    def remove_record(self, record: FieldRecord):
        self.records = [existing for existing in self.records if existing is not record]

    def records_at(self, index: int) -> List[FieldRecord]:
        """Records that consumed a token, most recently added first."""
        return [record for record in reversed(self.records) if index in record.indexes]

    def sort_records(self):
        """Order records by their first consumed index, keeping ties stable."""
        self.records.sort(key=lambda record: record.first_index)

    def scan(self, allowed: Collection[TimeType], step: int, origin: int,
             ignore_mode: ValidMode = ValidMode.CERTIFIED,
             exclusive: bool = False) -> List[FieldRecord]:
        """Collect the records covering the tokens next to a marker.

        Walks from ``origin + step`` in the direction of ``step``. The walk stops at
        the first token no record covers, or the first token covered by a record
        whose type is not allowed or whose mode equals ``ignore_mode``; records
        of that token are not collected. With ``exclusive`` the walk also stops
        before the first record repeating an already collected time type.

        Args:
            allowed: Time types the marker can apply to
            step: 1 to walk forward, -1 to walk backward
            origin: Index of the marker token
            ignore_mode: Validity mode that blocks the walk
            exclusive: Stop at a repeated time type

        Returns:
            Collected records in walk order
        """
        found: List[FieldRecord] = []
        index = origin + step

        while 0 <= index < len(self.tokens):
            covering = self.records_at(index)
            if not covering:
                break

            batch: List[FieldRecord] = []
            for record in covering:
                if record.time_type not in allowed or record.valid_mode == ignore_mode:
                    return found
                if record not in found:
                    batch.append(record)

            for record in batch:
                if exclusive and any(r.time_type is record.time_type for r in found):
                    return found
                found.append(record)

            index += step

        return found


def has_exclusive_types(records: Sequence[FieldRecord]) -> bool:
    """True when no two records share a time type."""
    time_types = [record.time_type for record in records]
    return len(time_types) == len(set(time_types))


RuleHandler = Callable[[ScanState, re.Match, Number], None]


@dataclass(frozen=True)
class PatternRule:
    """One pattern over the class-code projection and its match handler."""
    name: str
    priority: int
    pattern: str
    handler: RuleHandler

    def apply(self, state: ScanState) -> int:
        """Run the handler for every match of the pattern.

        Returns:
            Number of matches handled
        """
        matches = state.find(self.pattern)
        for match in matches:
            self.handler(state, match, self.priority)
        return len(matches)
