"""
Functions for returns, realized volatility and rebased performance.

This module provides pure functions over price series, used to derive the
realized-volatility leg of the variance risk premium and the S&P 500 performance
line of the traditional markets panel.
"""

from typing import List, Sequence
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from quantdash.entities import Sample, TimeSeries, PerformancePoint
from quantdash.analytics.helpers import check_lookback, series_values
from quantdash.errors import InvalidArgumentError


def realized_volatility(
    closes: Sequence[Sample],
    window: int = 30,
    periods_per_year: int = 365
) -> TimeSeries:
    """
    Rolling annualized realized volatility, in percent.

    The value on the date of close i uses the `window` log returns ending
    at close i, with the population variance:
    sqrt(var * periods_per_year) * 100.

    Preconditions:
        - closes are positive and in date order

    Postconditions:
        - One sample per close from index `window` onward
        - Empty result when there are not more than `window` closes

    Args:
        closes: Daily closing prices
        window: Number of returns per estimate (default 30)
        periods_per_year: Annualization factor (365 for crypto)

    Returns:
        TimeSeries of realized volatility

    Raises:
        InvalidArgumentError: If window is invalid or a close is non-positive
    """
    window = check_lookback(window, "window")
    prices = series_values(closes, label="closes")
    if (prices <= 0).any():
        raise InvalidArgumentError("prices must be positive")
    if len(prices) <= window:
        return TimeSeries(name="realized_vol")

    log_returns = np.log(prices[1:] / prices[:-1])
    windows = sliding_window_view(log_returns, window)
    variance = windows.var(axis=1)
    vols = np.sqrt(variance * periods_per_year) * 100

    dates = [s.date for s in closes][window:]
    return TimeSeries.from_pairs(zip(dates, vols), name="realized_vol")


def performance(series: Sequence[Sample], start_date: str) -> List[PerformancePoint]:
    """
    Rebase a series to percent change from its first sample on or after start_date.

    Args:
        series: Level series in date order
        start_date: ISO date to rebase from

    Returns:
        List of PerformancePoint from the base sample onward; empty when no
        sample falls on or after start_date

    Raises:
        InvalidArgumentError: If the base value is zero
    """
    start_idx = next((i for i, s in enumerate(series) if s.date >= start_date), None)
    if start_idx is None:
        return []

    base = series[start_idx].value
    if base == 0:
        raise InvalidArgumentError(f"cannot rebase from a zero value on {series[start_idx].date}")

    return [
        PerformancePoint(date=s.date, value=s.value, performance=(s.value - base) / base * 100)
        for s in list(series)[start_idx:]
    ]
