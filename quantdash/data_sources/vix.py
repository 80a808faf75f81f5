"""
VIX term structure from CBOE volatility indices.

Downloads the latest close of the 9-day, 30-day, 3-month and 6-month
VIX indices from yfinance.
"""

from typing import List, Optional
import yfinance as yf
from quantdash.cache import DataCache
from quantdash.entities import VIXTenor
from quantdash.errors import DataError
from quantdash.logging_config import get_logger

VIX_TENORS = [
    ("9d", "^VIX9D"),
    ("30d", "^VIX"),
    ("3m", "^VIX3M"),
    ("6m", "^VIX6M"),
]

log = get_logger(__name__)


def get_vix_term_structure(
    cache: Optional[DataCache] = None,
    use_cache: bool = True
) -> List[VIXTenor]:
    """
    Latest close of each VIX tenor index.

    Tenors whose download is empty are skipped.

    Returns:
        List of VIXTenor, shortest tenor first

    Raises:
        DataError: If no tenor could be downloaded
    """
    query_params = {"source": "yfinance", "tickers": [t for _, t in VIX_TENORS], "kind": "vix_term_structure"}
    if use_cache and cache is not None:
        cached = cache.get(query_params)
        if cached is not None:
            return cached

    points = []
    for tenor, ticker in VIX_TENORS:
        try:
            history = yf.Ticker(ticker).history(period="5d")
        except Exception as e:
            log.warning("vix_tenor_failed", ticker=ticker, error=str(e))
            continue
        if history.empty or "Close" not in history.columns:
            continue
        points.append(VIXTenor(tenor=tenor, value=float(history["Close"].iloc[-1])))

    if not points:
        raise DataError("No VIX term structure data returned")

    if cache is not None:
        cache.set(query_params, points)
    return points
