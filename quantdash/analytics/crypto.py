"""
Crypto derivatives aggregations.

Date-keyed merges of per-asset open interest and the funding-rate
heatmap pivot used by the crypto dashboard.
"""

from typing import Dict, Iterable, List, Sequence, Tuple
from quantdash.entities import Sample, GlobalOpenInterest, FundingHeatmap
from quantdash.analytics.helpers import timestamp_to_date


def global_open_interest(
    btc: Sequence[Sample],
    eth: Sequence[Sample],
    total: Sequence[Sample]
) -> List[GlobalOpenInterest]:
    """
    Merge BTC, ETH and aggregate open interest by date.

    BTC dates drive the output; a date missing from eth or total counts
    as 0 for that leg, so "others" is the remainder after BTC and ETH.
    """
    eth_by_date = {s.date: s.value for s in eth}
    total_by_date = {s.date: s.value for s in total}

    merged: Dict[str, Tuple[float, float, float]] = {}
    for sample in btc:
        merged[sample.date] = (
            total_by_date.get(sample.date, 0.0),
            sample.value,
            eth_by_date.get(sample.date, 0.0),
        )

    return [
        GlobalOpenInterest(date=d, global_oi=g, btc=b, eth=e)
        for d, (g, b, e) in merged.items()
    ]


def funding_heatmap(
    rows: Iterable[Tuple[int, str, float]],
    symbols: Sequence[str]
) -> FundingHeatmap:
    """
    Pivot funding observations into a date x symbol grid of percentages.

    Args:
        rows: (timestamp_ms, exchange_symbol, funding_rate) tuples, where
            the symbol may carry a "USDT" quote suffix
        symbols: Base symbols to keep, in column order

    Returns:
        FundingHeatmap; the last observation per date and symbol wins and
        missing cells are 0
    """
    by_date: Dict[str, Dict[str, float]] = {}
    for timestamp, symbol, rate in rows:
        day = timestamp_to_date(timestamp)
        by_date.setdefault(day, {})[symbol.replace("USDT", "")] = rate * 100

    dates = tuple(by_date)
    data = tuple(
        tuple(by_date[day].get(symbol, 0.0) for symbol in symbols)
        for day in dates
    )
    return FundingHeatmap(dates=dates, symbols=tuple(symbols), data=data)
