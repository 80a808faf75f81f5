"""
Tests for date-aligned spreads (VRP and credit spreads).

Tests cover:
- Inner join on date
- Ordering follows the first input
- Duplicate dates on the right-hand side
"""

import pytest
from quantdash.entities import TimeSeries
from quantdash.analytics.spreads import inner_join, variance_risk_premium, credit_spreads


class TestVarianceRiskPremium:
    """Tests for variance_risk_premium function."""

    def test_matching_dates_only(self):
        iv = TimeSeries.from_pairs([("2024-01-01", 60), ("2024-01-02", 62), ("2024-01-03", 65)])
        rv = TimeSeries.from_pairs([("2024-01-02", 50), ("2024-01-03", 55), ("2024-01-04", 1)])

        result = variance_risk_premium(iv, rv)

        assert [r.date for r in result] == ["2024-01-02", "2024-01-03"]
        assert [r.vrp for r in result] == [12.0, 10.0]
        assert result[0].iv == 62.0
        assert result[0].rv == 50.0

    def test_negative_premium(self):
        iv = TimeSeries.from_pairs([("2024-01-01", 40)])
        rv = TimeSeries.from_pairs([("2024-01-01", 55)])

        assert variance_risk_premium(iv, rv)[0].vrp == -15.0

    def test_no_overlap(self):
        iv = TimeSeries.from_pairs([("2024-01-01", 40)])
        rv = TimeSeries.from_pairs([("2024-02-01", 55)])

        assert variance_risk_premium(iv, rv) == []

    def test_order_follows_iv(self):
        iv = TimeSeries.from_pairs([("2024-01-03", 3), ("2024-01-01", 1)])
        rv = TimeSeries.from_pairs([("2024-01-01", 0), ("2024-01-03", 0)])

        assert [r.date for r in variance_risk_premium(iv, rv)] == ["2024-01-03", "2024-01-01"]

    def test_empty_inputs(self):
        assert variance_risk_premium(TimeSeries(), TimeSeries()) == []


class TestCreditSpreads:
    """Tests for credit_spreads function."""

    def test_hy_minus_ig(self):
        hy = TimeSeries.from_pairs([("2024-01-01", 4.0), ("2024-01-02", 4.5)])
        ig = TimeSeries.from_pairs([("2024-01-01", 1.5), ("2024-01-02", 1.25)])

        result = credit_spreads(hy, ig)

        assert [r.spread for r in result] == [2.5, 3.25]

    def test_missing_ig_date_dropped(self):
        hy = TimeSeries.from_pairs([("2024-01-01", 4.0), ("2024-01-02", 4.5)])
        ig = TimeSeries.from_pairs([("2024-01-02", 1.5)])

        result = credit_spreads(hy, ig)

        assert len(result) == 1
        assert result[0].date == "2024-01-02"


class TestInnerJoin:
    """Tests for inner_join helper."""

    def test_last_duplicate_on_right_wins(self):
        left = TimeSeries.from_pairs([("2024-01-01", 10)])
        right = TimeSeries.from_pairs([("2024-01-01", 1), ("2024-01-01", 2)])

        assert inner_join(left, right) == [("2024-01-01", 10.0, 2.0)]

    def test_duplicates_on_left_kept(self):
        left = TimeSeries.from_pairs([("2024-01-01", 10), ("2024-01-01", 11)])
        right = TimeSeries.from_pairs([("2024-01-01", 1)])

        assert len(inner_join(left, right)) == 2
