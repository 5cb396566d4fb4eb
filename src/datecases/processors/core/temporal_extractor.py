"""Temporal Extractor for Tokenized Sentences

Entry point of the extraction engine. Segments the sentence into clause
contexts, then runs the structural, number+unit and cross-reference rule tiers
over the class-code projection of the tokens, keeping only the rules whose
priority reaches the requested minimum prevalence.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ...core.config_manager import EngineConfig
from ...core.error_handler import LexiconError, log_error
from ...core.logging_manager import LoggingManager
from ...lexicon.loader import Lexicon, default_lexicon, load_lexicon
from .contexts import split_context
from .field_types import ContextSet, DateType, FieldRecord, TimeType, Token, ValidMode
from .final_rules import FINAL_RULES
from .scan_state import PatternRule, ScanState
from .structural_rules import STRUCTURAL_RULES
from .unit_rules import UNIT_PRIORITY, UNIT_RULES


@dataclass
class TemporalExtractionResult:
    """Complete temporal extraction result."""
    field_records: List[FieldRecord] = field(default_factory=list)
    context_set: ContextSet = field(default_factory=ContextSet)
    separator_token_indexes: List[int] = field(default_factory=list)
    current_moment: datetime = field(default_factory=datetime.now)
    extraction_metadata: Dict[str, Any] = field(default_factory=dict)

    def records_of(self, date_type: Optional[DateType] = None,
                   time_type: Optional[TimeType] = None) -> List[FieldRecord]:
        """Field records filtered by date type and/or time type."""
        return [
            record for record in self.field_records
            if (date_type is None or record.date_type is date_type)
            and (time_type is None or record.time_type is time_type)
        ]


def _run_tier(tier: str, rules: Sequence[PatternRule], state: ScanState,
              minimum_prevalence: int) -> Dict[str, int]:
    """Apply the rules of one tier that reach the threshold.

    Returns:
        Match count per applied rule
    """
    logger = LoggingManager.get_logger(__name__)
    applied: Dict[str, int] = {}

    for rule in rules:
        if rule.priority < minimum_prevalence:
            continue
        applied[rule.name] = rule.apply(state)

    logger.debug(
        f"{tier} tier: {len(applied)} rules applied, "
        f"{sum(applied.values())} matches, {len(state.records)} records"
    )
    return applied


def _create_extraction_metadata(state: ScanState, applied: Dict[str, int],
                                minimum_prevalence: int) -> Dict[str, Any]:
    records = state.records
    return {
        "token_count": len(state.tokens),
        "projection": state.projection,
        "minimum_prevalence": minimum_prevalence,
        "rules_applied": applied,
        "record_count": len(records),
        "certified_count": sum(1 for r in records if r.valid_mode is ValidMode.CERTIFIED),
        "not_valid_count": sum(1 for r in records if r.valid_mode is ValidMode.NOT_VALID),
        "date_types": sorted({r.date_type.value for r in records}),
        "context_count": len(state.context_set.contexts),
        "current_moment": state.now.isoformat(),
    }


def extract_time(tokens: Sequence[Token], minimum_prevalence: int,
                 current_moment: Optional[datetime] = None,
                 lexicon: Optional[Lexicon] = None) -> TemporalExtractionResult:
    """Extract field records from one tokenized sentence.

    Threshold filtering applies to whole rules, never to single matches: a
    rule either runs over the sentence or is skipped.

    Args:
        tokens: Tokens of the sentence; separator characters may be trimmed
        minimum_prevalence: Lowest rule priority allowed to run
        current_moment: The "now" relative expressions resolve against
        lexicon: Separator patterns and month table, the packaged one by default

    Returns:
        Field records, contexts and trimmed separator token indexes
    """
    current_moment = current_moment or datetime.now()
    lexicon = lexicon or default_lexicon()

    context_set, separator_token_indexes = split_context(tokens, lexicon.compiled_separators)
    state = ScanState(tokens, context_set, current_moment, lexicon.month_sizes)

    applied = _run_tier("Structural", STRUCTURAL_RULES, state, minimum_prevalence)
    if UNIT_PRIORITY >= minimum_prevalence:
        applied.update(_run_tier("Number+unit", UNIT_RULES, state, minimum_prevalence))
    applied.update(_run_tier("Cross-reference", FINAL_RULES, state, minimum_prevalence))

    return TemporalExtractionResult(
        field_records=state.records,
        context_set=context_set,
        separator_token_indexes=separator_token_indexes,
        current_moment=current_moment,
        extraction_metadata=_create_extraction_metadata(state, applied, minimum_prevalence),
    )


class TemporalExtractor:
    """Configured temporal extractor bound to one lexicon."""

    def __init__(self, config: Optional[EngineConfig] = None, lexicon: Optional[Lexicon] = None):
        """Initialize temporal extractor.

        Args:
            config: Engine configuration, defaults when omitted
            lexicon: Lexicon to use instead of the configured one

        Raises:
            LexiconError: If the configured lexicon cannot be loaded
        """
        self.logger = LoggingManager.get_logger(__name__)
        self.config = config or EngineConfig()

        if lexicon is not None:
            self.lexicon = lexicon
        else:
            try:
                self.lexicon = (load_lexicon(self.config.lexicon_path)
                                if self.config.lexicon_path else default_lexicon())
            except LexiconError as e:
                log_error(self.logger, e, "Loading lexicon")
                raise

        self.logger.debug(
            f"Temporal extractor ready: lexicon '{self.lexicon.name}', "
            f"minimum prevalence {self.config.minimum_prevalence}"
        )

    def extract(self, tokens: Sequence[Token], minimum_prevalence: Optional[int] = None,
                current_moment: Optional[datetime] = None) -> TemporalExtractionResult:
        """Extract field records using the configured threshold.

        Args:
            tokens: Tokens of the sentence
            minimum_prevalence: Overrides the configured threshold for this call
            current_moment: Fixed "now", the current time when omitted

        Returns:
            Temporal extraction result
        """
        if minimum_prevalence is None:
            minimum_prevalence = self.config.minimum_prevalence

        self.logger.debug(f"Starting temporal extraction over {len(tokens)} tokens")
        result = extract_time(tokens, minimum_prevalence, current_moment, self.lexicon)

        metadata = result.extraction_metadata
        self.logger.info(
            f"Temporal extraction complete: {metadata['record_count']} records, "
            f"{metadata['certified_count']} certified, "
            f"{len(result.context_set.used_context_ids)} of {metadata['context_count']} contexts used"
        )
        return result
