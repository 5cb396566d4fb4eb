"""
Integration tests for sentence extraction.

Runs complete token sentences through configuration, lexicon loading and all
three rule tiers, checking the field records a caller would receive.
"""

import json

import pytest

from datecases import ConfigManager, TemporalExtractor
from datecases.processors.core.field_types import DateType, TimeType, ValidMode
from tests.fixtures.sample_data import SENTENCES, make_tokens


def fields(result, date_type=DateType.TARGET):
    return {r.time_type: r.value for r in result.records_of(date_type)}


class TestSentenceExtraction:
    """Integration tests for complete sentences"""

    @pytest.mark.integration
    @pytest.mark.parametrize("name,expected", [
        ("at_six_pm", {TimeType.HOURS: 18}),
        ("five_to_seven_pm", {TimeType.HOURS: 18, TimeType.MINUTES: 55}),
        ("half_past_twelve", {TimeType.HOURS: 12, TimeType.MINUTES: 30}),
        ("numeric_date", {TimeType.DATES: 12, TimeType.MONTHS: 5, TimeType.YEARS: 2024}),
        ("numeric_clock", {TimeType.HOURS: 10, TimeType.MINUTES: 30}),
        ("next_friday", {TimeType.DATES: 15}),
        ("tomorrow_at_seven_pm", {TimeType.DATES: 14, TimeType.MONTHS: 3, TimeType.HOURS: 19}),
        ("after_a_while", {
            TimeType.HOURS: 10, TimeType.MINUTES: 50, TimeType.SECONDS: 30,
            TimeType.DATES: 13, TimeType.MONTHS: 3, TimeType.YEARS: 2024,
        }),
        ("in_ten_minutes", {
            TimeType.HOURS: 10, TimeType.MINUTES: 30, TimeType.SECONDS: 30,
            TimeType.DATES: 13, TimeType.MONTHS: 3, TimeType.YEARS: 2024,
        }),
        ("in_two_months", {
            TimeType.HOURS: 10, TimeType.MINUTES: 20, TimeType.SECONDS: 30,
            TimeType.DATES: 13, TimeType.MONTHS: 5, TimeType.YEARS: 2024,
        }),
    ])
    def test_target_dates(self, extractor, sentence, fixed_moment, name, expected):
        """Test target fields of single-clause sentences"""
        result = extractor.extract(sentence(name), current_moment=fixed_moment)
        assert fields(result) == expected

    @pytest.mark.integration
    def test_range(self, extractor, sentence, fixed_moment):
        """Test a start and end time"""
        result = extractor.extract(sentence("from_nine_am_to_eleven_pm"), current_moment=fixed_moment)

        assert fields(result) == {TimeType.HOURS: 9}
        assert fields(result, DateType.MAX) == {TimeType.HOURS: 23}

    @pytest.mark.integration
    def test_recurrence(self, extractor, sentence, fixed_moment):
        """Test weekly recurrence with its first occurrence"""
        result = extractor.extract(sentence("every_monday"), current_moment=fixed_moment)

        assert fields(result, DateType.PERIOD) == {TimeType.DATES: 7}
        assert fields(result) == {TimeType.DATES: 18}

    @pytest.mark.integration
    def test_recurrence_with_bound(self, extractor, sentence, fixed_moment):
        """Test a period that stops at an upper bound"""
        result = extractor.extract(sentence("every_five_minutes_until_twenty"),
                                   current_moment=fixed_moment)

        assert fields(result, DateType.PERIOD) == {TimeType.MINUTES: 5}
        assert fields(result, DateType.MAX) == {TimeType.HOURS: 20}

    @pytest.mark.integration
    def test_records_are_serializable(self, extractor, sentence, fixed_moment):
        """Test that records convert to plain JSON data"""
        result = extractor.extract(sentence("every_fifteen_minutes"), current_moment=fixed_moment)
        payload = json.loads(json.dumps([r.to_dict() for r in result.field_records]))

        assert payload == [{
            "date_type": "period_time",
            "time_type": "minutes",
            "value": 15,
            "indexes": [1, 2, 0],
            "context": 0,
            "prevalence": 140,
            "valid_mode": "CERTIFIED",
            "is_offset": False,
            "is_fixed": False,
        }]

    @pytest.mark.integration
    def test_clauses_keep_their_fields(self, extractor, fixed_moment):
        """Test two clauses separated by punctuation"""
        tokens = make_tokens([
            ("next", "F"), ("friday,", "d", 6), ("every", "E"), ("15", "n"), ("minutes", "m", 0, 60),
        ])
        result = extractor.extract(tokens, current_moment=fixed_moment)

        target = result.records_of(DateType.TARGET)[0]
        period = result.records_of(DateType.PERIOD)[0]
        assert (target.value, target.context) == (15, 0)
        assert (period.value, period.context) == (15, 1)
        assert result.separator_token_indexes == [1]
        assert result.context_set.used_context_ids == [0, 1]

    @pytest.mark.integration
    def test_fresh_tokens_give_equal_results(self, extractor, fixed_moment):
        """Test that extraction does not depend on earlier calls"""
        first = extractor.extract(make_tokens(SENTENCES["in_ten_minutes"]), current_moment=fixed_moment)
        second = extractor.extract(make_tokens(SENTENCES["in_ten_minutes"]), current_moment=fixed_moment)

        assert [r.to_dict() for r in first.field_records] == [r.to_dict() for r in second.field_records]


class TestConfiguredEngine:
    """Integration tests from configuration files to records"""

    @pytest.mark.integration
    def test_threshold_from_configuration_file(self, temp_config_dir, sentence, fixed_moment):
        """Test that the configured threshold filters the unit tier"""
        config = ConfigManager(temp_config_dir, "testing").load_config()
        extractor = TemporalExtractor(config)

        result = extractor.extract(sentence("every_fifteen_minutes"), current_moment=fixed_moment)
        assert result.field_records == []

        result = extractor.extract(sentence("five_to_seven_pm"), current_moment=fixed_moment)
        assert fields(result) == {TimeType.HOURS: 18, TimeType.MINUTES: 55}

    @pytest.mark.integration
    def test_environment_override_lowers_threshold(self, temp_config_dir, sentence, fixed_moment,
                                                   monkeypatch):
        """Test that DATECASES_MINIMUM_PREVALENCE reaches the engine"""
        monkeypatch.setenv("DATECASES_MINIMUM_PREVALENCE", "50")
        extractor = TemporalExtractor(ConfigManager(temp_config_dir, "testing").load_config())

        result = extractor.extract(sentence("every_fifteen_minutes"), current_moment=fixed_moment)
        assert [r.valid_mode for r in result.field_records] == [ValidMode.CERTIFIED]
