"""Small numeric and date helpers shared by the transforms."""

import math
from datetime import datetime, timezone
from typing import Iterable
import numpy as np
from quantdash.entities import Sample
from quantdash.errors import InvalidArgumentError

MS_PER_DAY = 24 * 60 * 60 * 1000


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round with ties going up (2.5 -> 3, -2.5 -> -2).

    Python's round() is banker's rounding, which would move tenor labels
    and index values on exact halves.
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def series_values(series: Iterable, label: str = "series") -> np.ndarray:
    """
    Extract a float array from Samples or plain numbers.

    Raises:
        InvalidArgumentError: If any value is NaN or infinite
    """
    values = np.array(
        [item.value if isinstance(item, Sample) else item for item in series],
        dtype=float,
    )
    if values.size and not np.isfinite(values).all():
        raise InvalidArgumentError(f"{label} contains non-finite values")
    return values


def check_lookback(lookback: int, label: str = "lookback") -> int:
    """Validate a window length."""
    if isinstance(lookback, bool) or not isinstance(lookback, (int, np.integer)) or lookback <= 0:
        raise InvalidArgumentError(f"{label} must be a positive integer, got {lookback!r}")
    return int(lookback)


def timestamp_to_date(timestamp_ms: float) -> str:
    """Convert a millisecond epoch timestamp to a UTC calendar day."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
