"""
FRED (Federal Reserve Economic Data) series.

Reads observations through pandas-datareader's FRED reader and returns
them as TimeSeries with missing observations already removed.

Series used by the dashboard:
    - VIXCLS: CBOE Volatility Index
    - BAMLH0A0HYM2: ICE BofA US High Yield OAS
    - BAMLC0A4CBBB: ICE BofA BBB US Corporate OAS
    - SP500: S&P 500 index level
    - DGS10: 10-Year Treasury constant maturity rate
"""

from datetime import date, datetime
from typing import Optional, Union
import pandas as pd
from quantdash.cache import DataCache
from quantdash.entities import TimeSeries
from quantdash.errors import DataError
from quantdash.logging_config import get_logger

FRED_SERIES = {
    "vix": "VIXCLS",
    "high_yield": "BAMLH0A0HYM2",
    "investment_grade": "BAMLC0A4CBBB",
    "sp500": "SP500",
    "treasury_10y": "DGS10",
}

log = get_logger(__name__)

DateLike = Union[str, date, datetime]


def _to_date_str(value: DateLike) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _read_fred(series_id: str, start: str, end: str) -> pd.DataFrame:
    """Download one FRED series as a single-column, date-indexed DataFrame."""
    import pandas_datareader.data as web

    return web.DataReader(series_id, "fred", start, end)


def get_fred_series(
    series_id: str,
    start: DateLike = "2020-01-01",
    end: Optional[DateLike] = None,
    cache: Optional[DataCache] = None,
    use_cache: bool = True
) -> TimeSeries:
    """
    Download a FRED series.

    Preconditions:
        - series_id is a valid FRED series id (e.g., "VIXCLS")
        - start <= end

    Postconditions:
        - Returns a TimeSeries named series_id in date order
        - Missing observations (FRED's "." rows) are dropped

    Args:
        series_id: FRED series id
        start: First date (string "YYYY-MM-DD" or date/datetime)
        end: Last date (default: today)
        cache: Optional DataCache for the downloaded frame
        use_cache: Whether to use cache if available

    Returns:
        TimeSeries of the observations

    Raises:
        DataError: If the download fails or returns no observations
    """
    start_str = _to_date_str(start)
    end_str = _to_date_str(end or date.today())

    query_params = {"source": "fred", "series_id": series_id, "start": start_str, "end": end_str}

    frame = None
    if use_cache and cache is not None:
        frame = cache.get(query_params)

    if frame is None:
        try:
            frame = _read_fred(series_id, start_str, end_str)
        except Exception as e:
            raise DataError(f"Failed to download FRED series {series_id}: {e}") from e
        if cache is not None:
            cache.set(query_params, frame)

    if frame is None or frame.empty or series_id not in frame.columns:
        raise DataError(f"No data returned for FRED series {series_id}")

    series = TimeSeries.from_pandas(frame[series_id].sort_index(), name=series_id)
    if len(series) == 0:
        raise DataError(f"FRED series {series_id} has no numeric observations")

    log.info("fred_series_loaded", series_id=series_id, observations=len(series))
    return series
