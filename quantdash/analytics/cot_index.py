"""
COT index: positioning normalised to a 0-100 range.

For each weekly report the net position is placed between the lowest and
highest net of the trailing window (current week included). Early weeks
use whatever history exists rather than waiting for a full window.
"""

from typing import List, Sequence
import numpy as np
import pandas as pd
from quantdash.entities import COTRecord, COTIndexRecord
from quantdash.analytics.helpers import check_lookback, round_half_up

# Three years of weekly reports
DEFAULT_LOOKBACK_WEEKS = 156
NEUTRAL_INDEX = 50.0


def range_index(values: pd.Series, lookback: int) -> pd.Series:
    """
    Place each value within the min/max of its trailing inclusive window.

    Windows with zero range map to NEUTRAL_INDEX.
    """
    rolling = values.rolling(window=lookback, min_periods=1)
    low = rolling.min()
    high = rolling.max()
    span = high - low
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (values - low) / span * 100
    return scaled.where(span != 0, NEUTRAL_INDEX)


def cot_index(
    records: Sequence[COTRecord],
    lookback_weeks: int = DEFAULT_LOOKBACK_WEEKS
) -> List[COTIndexRecord]:
    """
    Compute commercial and large-speculator COT indices.

    Preconditions:
        - records are in chronological order

    Postconditions:
        - One output per input record
        - Every index is in [0, 100], rounded to 2 decimals
        - A window with no range (e.g., the first week) gives 50

    Args:
        records: Weekly COT reports
        lookback_weeks: Trailing window length in reports (default 156)

    Returns:
        List of COTIndexRecord aligned with records

    Raises:
        InvalidArgumentError: If lookback_weeks is not a positive integer
    """
    lookback_weeks = check_lookback(lookback_weeks, "lookback_weeks")
    records = list(records)
    if not records:
        return []

    commercial = range_index(
        pd.Series([r.commercial_net for r in records], dtype=float), lookback_weeks
    )
    large_spec = range_index(
        pd.Series([r.large_spec_net for r in records], dtype=float), lookback_weeks
    )

    return [
        COTIndexRecord(
            date=record.date,
            commercial_index=round_half_up(float(comm), 2),
            large_spec_index=round_half_up(float(spec), 2),
        )
        for record, comm, spec in zip(records, commercial, large_spec)
    ]
