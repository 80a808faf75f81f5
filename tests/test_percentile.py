"""
Tests for percentile rank.

Tests cover:
- Strict-inequality ranking (ties do not count)
- Bounds of the output
- Empty and non-finite input
"""

import pytest
from quantdash.entities import Sample, TimeSeries
from quantdash.analytics.percentile import percentile_rank, latest_percentile
from quantdash.errors import InvalidArgumentError


class TestPercentileRank:
    """Tests for percentile_rank function."""

    def test_basic_rank(self):
        """5 of 7 values are below 55."""
        result = percentile_rank(55, [10, 20, 30, 40, 50, 60, 70])
        assert result == pytest.approx(500 / 7)

    def test_ties_do_not_count(self):
        assert percentile_rank(50, [50, 50, 50]) == 0.0
        assert percentile_rank(30, [10, 30, 30, 50]) == pytest.approx(25.0)

    def test_non_decreasing_in_current(self):
        """Sweep over, between and beyond a history with ties."""
        history = [40, 10, 30, 30, 20, 40, 40, 50]
        points = sorted(set(history))
        sweep = [points[0] - 5]
        for low, high in zip(points, points[1:]):
            sweep += [low, (low + high) / 2]
        sweep += [points[-1], points[-1] + 5]

        ranks = [percentile_rank(v, history) for v in sweep]

        assert ranks == sorted(ranks)
        assert ranks[0] == 0.0
        assert ranks[-1] == 100.0

    def test_above_all_values(self):
        assert percentile_rank(100, [1, 2, 3]) == 100.0

    def test_below_all_values(self):
        assert percentile_rank(0, [1, 2, 3]) == 0.0

    def test_unsorted_history(self):
        assert percentile_rank(55, [70, 10, 60, 30, 50, 20, 40]) == pytest.approx(500 / 7)

    def test_accepts_samples(self):
        history = [Sample("2024-01-01", 1.0), Sample("2024-01-02", 2.0)]
        assert percentile_rank(1.5, history) == pytest.approx(50.0)

    def test_empty_history_raises(self):
        with pytest.raises(InvalidArgumentError, match="empty"):
            percentile_rank(1.0, [])

    @pytest.mark.parametrize("current", [float("nan"), float("inf"), None, "55"])
    def test_invalid_current_raises(self, current):
        with pytest.raises(InvalidArgumentError):
            percentile_rank(current, [1, 2, 3])

    def test_non_finite_history_raises(self):
        with pytest.raises(InvalidArgumentError):
            percentile_rank(1.0, [1.0, float("nan")])


class TestLatestPercentile:
    """Tests for latest_percentile function."""

    def test_ranks_last_sample(self):
        series = TimeSeries.from_pairs([("2024-01-01", 10), ("2024-01-02", 20), ("2024-01-03", 30)])
        # 30 is strictly above 10 and 20 but not itself
        assert latest_percentile(series) == pytest.approx(200 / 3)

    def test_empty_series_raises(self):
        with pytest.raises(InvalidArgumentError):
            latest_percentile(TimeSeries())
