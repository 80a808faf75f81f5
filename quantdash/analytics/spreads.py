"""
Date-aligned spreads between two series.

Both spreads are inner joins: a date has to appear in both inputs to
produce an output, and the output follows the order of the first input.
"""

from typing import List, Sequence, Tuple
from quantdash.entities import Sample, VRPRecord, CreditSpreadRecord


def inner_join(left: Sequence[Sample], right: Sequence[Sample]) -> List[Tuple[str, float, float]]:
    """
    Pair samples of left with the sample of right on the same date.

    If right repeats a date, its last sample for that date is used.

    Returns:
        List of (date, left_value, right_value) in left's order
    """
    lookup = {sample.date: sample.value for sample in right}
    return [
        (sample.date, sample.value, lookup[sample.date])
        for sample in left
        if sample.date in lookup
    ]


def variance_risk_premium(iv: Sequence[Sample], rv: Sequence[Sample]) -> List[VRPRecord]:
    """
    Implied minus realized volatility on every date both series share.

    Args:
        iv: Implied volatility series (e.g., DVOL)
        rv: Realized volatility series

    Returns:
        List of VRPRecord; dates missing from rv are dropped
    """
    return [VRPRecord(date=d, iv=i, rv=r) for d, i, r in inner_join(iv, rv)]


def credit_spreads(hy: Sequence[Sample], ig: Sequence[Sample]) -> List[CreditSpreadRecord]:
    """High yield minus investment grade spread on shared dates."""
    return [CreditSpreadRecord(date=d, hy=h, ig=i) for d, h, i in inner_join(hy, ig)]
