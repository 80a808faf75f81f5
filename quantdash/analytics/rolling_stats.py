"""
Rolling z-scores over a trailing window.

The window for sample i is the half-open range [i - lookback, i): the
sample being scored is never part of its own baseline.
"""

from typing import List, Sequence
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from quantdash.entities import Sample, WindowedStat
from quantdash.analytics.helpers import check_lookback, series_values


def rolling_z_scores(values: np.ndarray, lookback: int) -> np.ndarray:
    """
    Vectorised z-scores for a float array.

    Preconditions:
        - lookback > 0
        - values are finite

    Postconditions:
        - Output has the same length as values
        - Entries before index lookback are 0.0
        - Entries whose trailing window has zero spread are 0.0

    Args:
        values: Observations in order
        lookback: Number of prior observations in each window

    Returns:
        Array of z-scores
    """
    n = len(values)
    scores = np.zeros(n, dtype=float)
    if n <= lookback:
        return scores

    # Window k covers values[k:k + lookback] and scores values[k + lookback]
    windows = sliding_window_view(values, lookback)[: n - lookback]
    means = windows.mean(axis=1)
    stds = windows.std(axis=1)  # population, ddof=0
    # A constant window of e.g. 0.1 can still have a rounding-sized std
    flat = np.ptp(windows, axis=1) == 0

    current = values[lookback:]
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = (current - means) / stds
    scores[lookback:] = np.where(flat, 0.0, raw)
    return scores


def z_score(series: Sequence[Sample], lookback: int = 252) -> List[WindowedStat]:
    """
    Z-score every sample against the `lookback` samples before it.

    Uses the population standard deviation. Samples before the window has
    filled get a z-score of 0.0, as do samples whose window is flat. A
    lookback longer than the series gives all zeros.

    Preconditions:
        - series samples are in date order (not checked, processed positionally)

    Args:
        series: TimeSeries or list of Samples
        lookback: Window length (default 252 trading days)

    Returns:
        One WindowedStat per input sample

    Raises:
        InvalidArgumentError: If lookback is not a positive integer or a
            value is non-finite
    """
    lookback = check_lookback(lookback)
    values = series_values(series)
    scores = rolling_z_scores(values, lookback)
    return [
        WindowedStat(date=sample.date, value=sample.value, z_score=float(score))
        for sample, score in zip(series, scores)
    ]
