"""
Tests for returns, realized volatility and rebased performance.

Tests cover:
- Rolling realized volatility (population variance, 365-day annualization)
- Performance rebasing from a start date
- Edge cases (short series, non-positive prices, zero base)
"""

import math
import pytest
import pandas as pd
import numpy as np
from quantdash.entities import TimeSeries
from quantdash.analytics.returns import realized_volatility, performance
from quantdash.errors import InvalidArgumentError


def closes(values):
    dates = pd.date_range("2024-01-01", periods=len(values)).strftime("%Y-%m-%d")
    return TimeSeries.from_pairs(zip(dates, values))


class TestRealizedVolatility:
    """Tests for realized_volatility function."""

    def test_constant_growth_has_zero_vol(self):
        rv = realized_volatility(closes([100, 110, 121, 133.1, 146.41]), window=3)

        assert len(rv) == 2
        assert np.allclose(rv.values, 0.0, atol=1e-6)

    def test_alternating_prices(self):
        """Returns +a, -a, +a: every 2-return window has population variance a^2."""
        rv = realized_volatility(closes([100, 110, 100, 110]), window=2)
        a = math.log(1.1)

        assert rv.dates == ["2024-01-03", "2024-01-04"]
        assert list(rv.values) == pytest.approx([a * math.sqrt(365) * 100] * 2)

    def test_annualization_factor(self):
        prices = closes([100, 110, 100, 110])
        crypto = realized_volatility(prices, window=2, periods_per_year=365)
        equity = realized_volatility(prices, window=2, periods_per_year=252)

        assert crypto.values[0] / equity.values[0] == pytest.approx(math.sqrt(365 / 252))

    def test_one_output_per_close_after_window(self):
        prices = closes(100 * np.exp(np.cumsum(np.random.default_rng(1).normal(0, 0.02, 60))))
        rv = realized_volatility(prices, window=30)

        assert len(rv) == 30
        assert rv.dates[0] == prices.dates[30]
        assert rv.dates[-1] == prices.dates[-1]
        assert (rv.values > 0).all()

    def test_short_series_is_empty(self):
        assert len(realized_volatility(closes([100, 101, 102]), window=3)) == 0

    def test_non_positive_price_raises(self):
        with pytest.raises(InvalidArgumentError, match="positive"):
            realized_volatility(closes([100, 0, 101, 102]), window=2)

    def test_invalid_window_raises(self):
        with pytest.raises(InvalidArgumentError):
            realized_volatility(closes([100, 101, 102]), window=0)

class TestPerformance:
    """Tests for performance function."""

    def test_rebase_from_first_sample(self):
        series = closes([100, 110, 90])
        result = performance(series, "2024-01-01")

        assert [p.performance for p in result] == pytest.approx([0.0, 10.0, -10.0])
        assert [p.value for p in result] == [100, 110, 90]

    def test_start_between_samples(self):
        series = TimeSeries.from_pairs([("2024-01-01", 50), ("2024-01-03", 100), ("2024-01-04", 125)])
        result = performance(series, "2024-01-02")

        assert [p.date for p in result] == ["2024-01-03", "2024-01-04"]
        assert result[1].performance == pytest.approx(25.0)

    def test_start_after_last_sample(self):
        assert performance(closes([100, 110]), "2025-01-01") == []

    def test_zero_base_raises(self):
        with pytest.raises(InvalidArgumentError, match="zero"):
            performance(TimeSeries.from_pairs([("2024-01-01", 0), ("2024-01-02", 1)]), "2024-01-01")
