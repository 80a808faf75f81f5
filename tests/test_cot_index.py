"""
Tests for the COT index.

Tests cover:
- Trailing inclusive window with partial history at the start
- Neutral value for zero-range windows
- Rounding and bounds
"""

import pytest
import pandas as pd
from quantdash.entities import COTRecord
from quantdash.analytics.cot_index import cot_index, range_index, NEUTRAL_INDEX
from quantdash.errors import InvalidArgumentError


def make_records(commercial_nets, large_spec_nets=None):
    large_spec_nets = large_spec_nets or [0] * len(commercial_nets)
    return [
        COTRecord(
            date=f"2024-01-{i + 1:02d}",
            commercial_long=comm,
            commercial_short=0,
            large_spec_long=spec,
            large_spec_short=0,
        )
        for i, (comm, spec) in enumerate(zip(commercial_nets, large_spec_nets))
    ]


class TestCOTIndex:
    """Tests for cot_index function."""

    def test_growing_window(self):
        """[100, 150, 200]: first week is neutral, then each week is a new high."""
        result = cot_index(make_records([100, 150, 200]), lookback_weeks=156)

        assert [r.commercial_index for r in result] == [50.0, 100.0, 100.0]

    def test_constant_series_is_neutral(self):
        result = cot_index(make_records([5, 5, 5, 5]))

        assert all(r.commercial_index == NEUTRAL_INDEX for r in result)
        assert all(r.large_spec_index == NEUTRAL_INDEX for r in result)

    def test_window_rolls_off(self):
        """With a 2-week window, week 3 only sees [200, 150]."""
        result = cot_index(make_records([100, 200, 150]), lookback_weeks=2)

        assert result[2].commercial_index == 0.0

    def test_rounded_to_two_decimals(self):
        result = cot_index(make_records([0, 3, 1]))

        assert result[2].commercial_index == pytest.approx(33.33)

    def test_categories_independent(self):
        result = cot_index(make_records([100, 200], large_spec_nets=[-50, -100]))

        assert result[1].commercial_index == 100.0
        assert result[1].large_spec_index == 0.0

    def test_net_uses_long_minus_short(self):
        records = [
            COTRecord("2024-01-02", 100, 300, 0, 0),
            COTRecord("2024-01-09", 300, 100, 0, 0),
            COTRecord("2024-01-16", 200, 200, 0, 0),
        ]
        result = cot_index(records)

        # Nets -200, 200, 0: 0 sits halfway
        assert result[2].commercial_index == 50.0

    def test_length_and_bounds(self):
        nets = [(-1) ** i * i * 37 % 500 for i in range(300)]
        result = cot_index(make_records_long(nets), lookback_weeks=52)

        assert len(result) == 300
        for r in result:
            assert 0.0 <= r.commercial_index <= 100.0
            assert 0.0 <= r.large_spec_index <= 100.0

    def test_dates_preserved(self):
        records = make_records([1, 2, 3])
        assert [r.date for r in cot_index(records)] == [r.date for r in records]

    def test_empty_input(self):
        assert cot_index([]) == []

    @pytest.mark.parametrize("lookback", [0, -1, 1.5])
    def test_invalid_lookback_raises(self, lookback):
        with pytest.raises(InvalidArgumentError):
            cot_index(make_records([1, 2]), lookback_weeks=lookback)


class TestRangeIndex:
    """Tests for range_index helper."""

    def test_single_value_is_neutral(self):
        result = range_index(pd.Series([42.0]), 10)
        assert result.iloc[0] == NEUTRAL_INDEX

    def test_midpoint(self):
        result = range_index(pd.Series([0.0, 10.0, 5.0]), 3)
        assert result.iloc[2] == pytest.approx(50.0)


def make_records_long(nets):
    dates = pd.date_range("2015-01-06", periods=len(nets), freq="W-TUE").strftime("%Y-%m-%d")
    return [
        COTRecord(date=d, commercial_long=n, commercial_short=0, large_spec_long=0, large_spec_short=n)
        for d, n in zip(dates, nets)
    ]
