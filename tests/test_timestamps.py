"""
Tests for TimestampNormalizer - date/time parsing with a plausibility window.

Tests cover:
- Every explicit grammar (ISO, YMD, MDY with AM/PM, DMY)
- Direct parsing of other unambiguous formats
- Plausibility window bounds
- Timezone offsets normalized to naive UTC
- Prefix matching used by heuristic extraction
- Non-string and blank candidates
"""

import warnings
from datetime import datetime

import pytest

from auditlens.config import TimestampConfig
from auditlens.timestamps import TIMESTAMP_GRAMMARS, TimestampNormalizer, parse_timestamp


class TestParse:
    """Tests for TimestampNormalizer.parse."""

    @pytest.mark.parametrize("candidate,expected", [
        ("2025-01-15 10:30:00", datetime(2025, 1, 15, 10, 30, 0)),
        ("2025-01-15 10:30:00.250", datetime(2025, 1, 15, 10, 30, 0, 250000)),
        ("6/3/2025 3:54:15 PM", datetime(2025, 6, 3, 15, 54, 15)),
        ("6/3/2025 12:05:00 AM", datetime(2025, 6, 3, 0, 5, 0)),
        ("2025-01-15T10:30:00Z", datetime(2025, 1, 15, 10, 30, 0)),
        ("2025-01-15T10:30:00.000Z", datetime(2025, 1, 15, 10, 30, 0)),
    ])
    def test_supported_formats(self, normalizer, candidate, expected):
        assert normalizer.parse(candidate) == expected

    def test_offset_converted_to_utc(self, normalizer):
        assert normalizer.parse("2025-01-15T12:30:00+02:00") == datetime(2025, 1, 15, 10, 30, 0)

    def test_result_is_naive(self, normalizer):
        assert normalizer.parse("2025-01-15T10:30:00Z").tzinfo is None

    def test_day_first_when_month_is_impossible(self, normalizer):
        """25/12/2025 cannot be month-first, so it reads as 25 December."""
        assert normalizer.parse("25/12/2025 08:00:00") == datetime(2025, 12, 25, 8, 0, 0)

    def test_surrounding_whitespace(self, normalizer):
        assert normalizer.parse("  2025-01-15 10:30:00 ") == datetime(2025, 1, 15, 10, 30, 0)

    @pytest.mark.parametrize("candidate", [
        "notadate",
        "Unknown",
        "",
        "   ",
        "15",
        "1/1/1999 10:00:00",
        "2031-01-01 00:00:00",
        "13/13/2025 10:00:00",
    ])
    def test_rejected(self, normalizer, candidate):
        assert normalizer.parse(candidate) is None

    @pytest.mark.parametrize("candidate", [None, 42, 3.5, b"2025-01-15 10:30:00", ["2025-01-15"]])
    def test_non_string(self, normalizer, candidate):
        assert normalizer.parse(candidate) is None

    @pytest.mark.parametrize("candidate", [
        "2025-01-15 10:30:00 -9999",
        "2025-01-15 10:30:00 +2500",
        "99999999999999999999",
    ])
    def test_out_of_range_values_rejected(self, normalizer, candidate):
        """Offsets of a day or more and overflowing numbers give None instead of raising."""
        assert normalizer.parse(candidate) is None
        assert parse_timestamp(candidate) is None

    def test_unknown_zone_name_is_silent(self, normalizer):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            normalizer.parse("2025-01-15 10:30:00 PMM")


class TestWindow:
    """Tests for the plausibility window."""

    def test_bounds_inclusive(self, normalizer):
        assert normalizer.parse("2020-01-01 00:00:00") == datetime(2020, 1, 1)
        assert normalizer.parse("2030-12-31 23:59:59") == datetime(2030, 12, 31, 23, 59, 59)

    def test_custom_window(self):
        normalizer = TimestampNormalizer(TimestampConfig(year_min=1990, year_max=2000))
        assert normalizer.parse("1/1/1999 10:00:00") == datetime(1999, 1, 1, 10, 0, 0)
        assert normalizer.parse("2025-01-15 10:30:00") is None

    def test_in_window(self, normalizer):
        assert normalizer.in_window(datetime(2025, 1, 1)) is True
        assert normalizer.in_window(datetime(2019, 12, 31)) is False
        assert normalizer.in_window(None) is False

    def test_round_trip(self, normalizer):
        """A formatted in-window instant parses back to itself."""
        value = datetime(2024, 2, 29, 23, 59, 1)
        assert normalizer.parse(value.strftime("%Y-%m-%d %H:%M:%S")) == value


class TestMatchPrefix:
    """Tests for TimestampNormalizer.match_prefix."""

    def test_mdy_prefix(self, normalizer):
        text = "6/3/2025 3:54:15 PM Freed by Calum.Kay"
        value, end = normalizer.match_prefix(text)
        assert value == datetime(2025, 6, 3, 15, 54, 15)
        assert text[end:].strip() == "Freed by Calum.Kay"

    def test_ymd_prefix(self, normalizer):
        text = "2025-02-01 08:00:00 Document deleted"
        value, end = normalizer.match_prefix(text)
        assert value == datetime(2025, 2, 1, 8, 0, 0)
        assert text[end:] == " Document deleted"

    def test_meridiem_needs_word_boundary(self, normalizer):
        """A word starting with 'am' after the time is not a meridiem."""
        text = "6/3/2025 3:54:15 Amended by bob"
        value, end = normalizer.match_prefix(text)
        assert value == datetime(2025, 6, 3, 3, 54, 15)
        assert text[end:].strip() == "Amended by bob"

    def test_no_prefix(self, normalizer):
        assert normalizer.match_prefix("Freed 6/3/2025 3:54:15 PM") is None
        assert normalizer.match_prefix("") is None

    def test_out_of_window_prefix(self, normalizer):
        assert normalizer.match_prefix("1/1/1999 10:00:00 Deleted") is None

    def test_invalid_meridiem_is_not_day_first(self, normalizer):
        """A 24-hour time followed by PM is rejected, not reread as D/M/YYYY."""
        text = "6/3/2025 13:54:15 PM Freed by bob"
        assert normalizer.match_prefix(text) is None
        assert normalizer.parse("6/3/2025 13:54:15 PM") is None

    def test_day_first_prefix(self, normalizer):
        value, end = normalizer.match_prefix("13/3/2025 13:54:15 Freed")
        assert value == datetime(2025, 3, 13, 13, 54, 15)
        assert end == len("13/3/2025 13:54:15")


class TestModuleHelpers:
    """Tests for module-level helpers."""

    def test_parse_timestamp(self):
        assert parse_timestamp("2025-01-15 10:30:00") == datetime(2025, 1, 15, 10, 30, 0)
        assert parse_timestamp("garbage") is None

    def test_grammar_table_order(self):
        names = [name for _, name, _ in TIMESTAMP_GRAMMARS]
        assert names.index("M/D/YYYY H:MM:SS AM/PM") < names.index("D/M/YYYY H:MM:SS")
