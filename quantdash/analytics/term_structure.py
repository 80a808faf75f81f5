"""
Option implied-volatility term structure.

Instruments are joined to their mark data, grouped by expiry, filtered to
near at-the-money contracts, and each expiry is reduced to one summary
point for the term-structure chart.
The same join feeds the 25-delta risk reversal used for the skew panel.
"""

import math
from typing import Dict, List, Mapping, Optional, Sequence, Union
from quantdash.entities import OptionInstrument, OptionMarkData, TermStructurePoint
from quantdash.analytics.helpers import MS_PER_DAY, round_half_up

MAX_TENOR_DAYS = 180
ATM_DELTA = 0.5
ATM_DELTA_TOLERANCE = 0.15
# Widened chart band around the raw IV extremes
BAND_LOW_FACTOR = 0.8
BAND_HIGH_FACTOR = 1.2
SKEW_DELTA = 0.25
SKEW_TARGET_DAYS = 30

MarkDataInput = Union[Mapping[str, OptionMarkData], Sequence[OptionMarkData]]


def format_tenor(days: int) -> str:
    """
    Label a days-to-expiry bucket.

    Examples: 3 -> "3d", 14 -> "2w", 45 -> "2m" (ties round up).
    """
    if days <= 7:
        return f"{days}d"
    if days <= 30:
        return f"{int(round_half_up(days / 7))}w"
    return f"{int(round_half_up(days / 30))}m"


def is_atm(delta: float) -> bool:
    """True when |delta| is within ATM_DELTA_TOLERANCE of 0.5."""
    return abs(abs(delta) - ATM_DELTA) < ATM_DELTA_TOLERANCE


def _mark_lookup(mark_data: MarkDataInput) -> Mapping[str, OptionMarkData]:
    if isinstance(mark_data, Mapping):
        return mark_data
    return {mark.instrument_name: mark for mark in mark_data}


def group_by_expiry(
    instruments: Sequence[OptionInstrument],
    mark_data: MarkDataInput
) -> Dict[int, List[OptionMarkData]]:
    """
    Join instruments to mark data and group the survivors by expiry.

    Instruments without mark data, or whose mark IV is missing or zero,
    are dropped. Groups keep first-seen expiry order.

    Returns:
        Mapping of expiration timestamp (ms) to the marks of that expiry
    """
    lookup = _mark_lookup(mark_data)
    grouped: Dict[int, List[OptionMarkData]] = {}
    for instrument in instruments:
        mark = lookup.get(instrument.instrument_name)
        if mark is None or not mark.mark_iv:
            continue
        grouped.setdefault(instrument.expiration_timestamp, []).append(mark)
    return grouped


def summarize_expiry(ivs: Sequence[float], days: int) -> TermStructurePoint:
    """
    Reduce the ATM IVs of one expiry to a TermStructurePoint.

    Quantiles use the nearest-rank element of the ascending IVs (no
    interpolation); median is the lower-middle element for even counts.

    Preconditions:
        - ivs is non-empty
    """
    n = len(ivs)
    current = sum(ivs) / n
    ordered = sorted(ivs)

    def nearest_rank(fraction: float) -> float:
        index = math.floor(n * fraction)
        return ordered[index] if index < n else current

    return TermStructurePoint(
        tenor=format_tenor(days),
        days=days,
        current=current,
        min=ordered[0] * BAND_LOW_FACTOR,
        max=ordered[-1] * BAND_HIGH_FACTOR,
        median=ordered[n // 2],
        percentile25=nearest_rank(0.25),
        percentile75=nearest_rank(0.75),
    )


def days_to_expiry(expiration_timestamp: int, now_ms: int) -> int:
    """Whole days between now and expiry, ties rounded up."""
    return int(round_half_up((expiration_timestamp - now_ms) / MS_PER_DAY))


def term_structure(
    instruments: Sequence[OptionInstrument],
    mark_data: MarkDataInput,
    now_ms: int
) -> List[TermStructurePoint]:
    """
    Build the ATM implied-volatility term structure.

    Preconditions:
        - now_ms is a millisecond epoch timestamp

    Postconditions:
        - Output sorted ascending by days
        - Every point has 0 < days <= MAX_TENOR_DAYS
        - Expiries with no ATM instrument produce no point

    Args:
        instruments: Listed option contracts
        mark_data: Mark IV / delta per instrument, as a list or a mapping
            keyed by instrument name
        now_ms: Valuation time in epoch milliseconds

    Returns:
        List of TermStructurePoint, one per surviving expiry
    """
    points: List[TermStructurePoint] = []
    for expiry, marks in group_by_expiry(instruments, mark_data).items():
        days = days_to_expiry(expiry, now_ms)
        if days <= 0 or days > MAX_TENOR_DAYS:
            continue

        atm_ivs = [float(m.mark_iv) for m in marks if is_atm(m.delta or 0.0)]
        if not atm_ivs:
            continue

        points.append(summarize_expiry(atm_ivs, days))

    return sorted(points, key=lambda p: p.days)


def risk_reversal_25d(
    instruments: Sequence[OptionInstrument],
    mark_data: MarkDataInput,
    now_ms: int,
    target_days: int = SKEW_TARGET_DAYS
) -> Optional[float]:
    """
    25-delta risk reversal of the expiry nearest target_days.

    The call with delta closest to +0.25 and the put with delta closest
    to -0.25 are taken from that expiry; the result is call IV minus put
    IV in vol points. Negative values mean puts are bid over calls.

    Returns:
        The risk reversal, or None when no expiry in (0, MAX_TENOR_DAYS]
        lists both a call and a put with a delta
    """
    lookup = _mark_lookup(mark_data)
    legs: Dict[int, Dict[str, List[OptionMarkData]]] = {}
    for instrument in instruments:
        mark = lookup.get(instrument.instrument_name)
        if mark is None or not mark.mark_iv or mark.delta is None:
            continue
        by_type = legs.setdefault(instrument.expiration_timestamp, {})
        by_type.setdefault(instrument.option_type, []).append(mark)

    candidates = []
    for expiry, by_type in legs.items():
        days = days_to_expiry(expiry, now_ms)
        if 0 < days <= MAX_TENOR_DAYS and by_type.get("call") and by_type.get("put"):
            candidates.append((abs(days - target_days), days, by_type))
    if not candidates:
        return None

    _, _, by_type = min(candidates, key=lambda c: (c[0], c[1]))
    call = min(by_type["call"], key=lambda m: abs(m.delta - SKEW_DELTA))
    put = min(by_type["put"], key=lambda m: abs(m.delta + SKEW_DELTA))
    return float(call.mark_iv) - float(put.mark_iv)
