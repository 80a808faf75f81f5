"""
Live data source backed by FRED, CFTC, Deribit, Coinalyze and yfinance.

Each method can fall back to another MarketDataSource when the live fetch
raises a DataError, which keeps the dashboard populated while an upstream
API is down.
"""

import functools
import time
from typing import Any, Callable, List, Optional, Sequence
from quantdash.cache import DataCache
from quantdash.config import Settings
from quantdash.entities import TimeSeries, COTRecord, FundingRate, Liquidation, VIXTenor
from quantdash.analytics.helpers import MS_PER_DAY, timestamp_to_date
from quantdash.analytics.term_structure import risk_reversal_25d
from quantdash.errors import DataError
from quantdash.data_sources.base import MarketDataSource, OptionChain, FundingRow
from quantdash.data_sources.http import JSONClient
from quantdash.data_sources.fred import FRED_SERIES, get_fred_series
from quantdash.data_sources.cot import CFTC_BASE_URL, get_cot_records
from quantdash.data_sources.deribit import DeribitClient
from quantdash.data_sources.coinalyze import CoinalyzeClient
from quantdash.data_sources.vix import get_vix_term_structure
from quantdash.logging_config import get_logger

log = get_logger(__name__)


def with_fallback(method: Callable) -> Callable:
    """Retry a failed live call against self.fallback, if one is set."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except DataError as e:
            if self.fallback is None:
                raise
            log.warning("live_fetch_failed", method=method.__name__, error=str(e), fallback=type(self.fallback).__name__)
            return getattr(self.fallback, method.__name__)(*args, **kwargs)

    return wrapper


class LiveDataSource(MarketDataSource):
    """
    MarketDataSource over the public market data APIs.

    Attributes:
        settings: Timeouts and API keys
        cache: Optional payload cache shared by all clients
        fallback: Optional source used when a live call raises DataError
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[DataCache] = None,
        fallback: Optional[MarketDataSource] = None
    ):
        self.settings = settings or Settings()
        self.cache = cache
        self.fallback = fallback
        client_kwargs = {"timeout": self.settings.timeout_seconds, "cache": cache}
        self._cftc = JSONClient(CFTC_BASE_URL, **client_kwargs)
        self._deribit = DeribitClient(**client_kwargs)
        self._coinalyze = CoinalyzeClient(api_key=self.settings.coinalyze_api_key, **client_kwargs)

    def close(self) -> None:
        self._cftc.close()
        self._deribit.close()
        self._coinalyze.close()
        if self.fallback is not None:
            self.fallback.close()

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def _window(self, days: int):
        end = self.now_ms()
        return end - days * MS_PER_DAY, end

    def _fred(self, key: str, start: str) -> TimeSeries:
        return get_fred_series(FRED_SERIES[key], start=start, cache=self.cache)

    @with_fallback
    def vix(self, start: str) -> TimeSeries:
        return self._fred("vix", start)

    @with_fallback
    def high_yield_oas(self, start: str) -> TimeSeries:
        return self._fred("high_yield", start)

    @with_fallback
    def investment_grade_oas(self, start: str) -> TimeSeries:
        return self._fred("investment_grade", start)

    @with_fallback
    def sp500(self, start: str) -> TimeSeries:
        return self._fred("sp500", start)

    @with_fallback
    def treasury_10y(self, start: str) -> TimeSeries:
        return self._fred("treasury_10y", start)

    @with_fallback
    def vix_term_structure(self) -> List[VIXTenor]:
        return get_vix_term_structure(cache=self.cache)

    @with_fallback
    def cot_records(self, contract: str, limit: int) -> List[COTRecord]:
        return get_cot_records(contract, limit=limit, client=self._cftc)

    @with_fallback
    def option_chain(self, currency: str) -> OptionChain:
        instruments = self._deribit.get_instruments(currency)
        marks = self._deribit.get_mark_data(currency, instruments=instruments, now_ms=self.now_ms())
        return instruments, marks

    @with_fallback
    def index_price(self, currency: str) -> float:
        return self._deribit.get_index_price(currency)

    @with_fallback
    def skew_25d(self, currency: str, days: int) -> TimeSeries:
        """
        Today's 25-delta risk reversal from the live chain.

        Deribit publishes no skew history, so this is a single sample
        regardless of days.
        """
        now = self.now_ms()
        instruments = self._deribit.get_instruments(currency)
        marks = self._deribit.get_mark_data(currency, instruments=instruments, now_ms=now)
        skew = risk_reversal_25d(instruments, marks, now)
        if skew is None:
            raise DataError(f"no 25-delta call and put quoted for {currency}")
        return TimeSeries.from_pairs([(timestamp_to_date(now), skew)], name=f"{currency}_skew_25d")

    @with_fallback
    def implied_volatility(self, currency: str, days: int) -> TimeSeries:
        return self._deribit.get_volatility_index(currency, *self._window(days))

    @with_fallback
    def perpetual_closes(self, currency: str, days: int) -> TimeSeries:
        return self._deribit.get_perpetual_closes(currency, *self._window(days))

    @with_fallback
    def funding_rates(self, symbols: Sequence[str]) -> List[FundingRate]:
        return self._coinalyze.get_funding_rates(symbols)

    @with_fallback
    def funding_history(self, symbols: Sequence[str], days: int) -> List[FundingRow]:
        return self._coinalyze.get_funding_history(symbols, days, self.now_ms())

    @with_fallback
    def open_interest(self, symbol: str, days: int) -> TimeSeries:
        return self._coinalyze.get_open_interest(symbol, days, self.now_ms())

    @with_fallback
    def aggregate_open_interest(self, days: int) -> TimeSeries:
        return self._coinalyze.get_aggregate_open_interest(days, self.now_ms())

    @with_fallback
    def liquidations(self, days: int) -> List[Liquidation]:
        return self._coinalyze.get_liquidations(days, self.now_ms())
