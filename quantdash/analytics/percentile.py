"""Percentile rank of a value within a historical distribution."""

from typing import Iterable, Sequence
from scipy.stats import percentileofscore
from quantdash.entities import Sample, require_finite
from quantdash.analytics.helpers import series_values
from quantdash.errors import InvalidArgumentError


def percentile_rank(current: float, historical: Iterable) -> float:
    """
    Percentage of historical values strictly below current.

    Ties with current do not count towards the rank, so a value equal to
    the whole history ranks 0.

    Args:
        current: Value to rank
        historical: Numbers or Samples forming the distribution

    Returns:
        Rank in [0, 100]

    Raises:
        InvalidArgumentError: If historical is empty or any input is non-finite
    """
    current = require_finite(current, "current")
    values = series_values(historical, label="historical")
    if values.size == 0:
        raise InvalidArgumentError("historical values cannot be empty")
    return float(percentileofscore(values, current, kind="strict"))


def latest_percentile(series: Sequence[Sample]) -> float:
    """Rank the last sample of a series against the whole series."""
    if len(series) == 0:
        raise InvalidArgumentError("series cannot be empty")
    return percentile_rank(series[-1].value, series)
