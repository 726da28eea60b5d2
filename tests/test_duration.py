"""Tests for lookback parsing."""

from datetime import timedelta

import pytest

from recapbot.duration import parse_duration, parse_lookback
from recapbot.errors import InvalidInput


class TestParseDuration:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1 day", timedelta(days=1)),
            ("3 hours", timedelta(hours=3)),
            ("90m", timedelta(minutes=90)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1 day and 2 hours", timedelta(days=1, hours=2)),
            ("1 week, 2 days", timedelta(days=9)),
            ("1.5 hours", timedelta(minutes=90)),
            ("  2 DAYS ", timedelta(days=2)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "soon", "1 fortnight", "-1 day", "day", "1 day ago"])
    def test_invalid_returns_none(self, text):
        assert parse_duration(text) is None


class TestParseLookback:
    def test_default_is_one_day(self):
        assert parse_lookback(None) == timedelta(days=1)

    def test_integer_counts_days(self):
        assert parse_lookback(3) == timedelta(days=3)

    def test_numeric_string_counts_days(self):
        assert parse_lookback("2") == timedelta(days=2)

    def test_human_readable(self):
        assert parse_lookback("2 hours") == timedelta(hours=2)

    @pytest.mark.parametrize("value", ["nonsense", "0 days", 0, -1, True, [1], "0"])
    def test_rejects_unparsable_or_non_positive(self, value):
        with pytest.raises(InvalidInput):
            parse_lookback(value)
