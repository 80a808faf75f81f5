"""
Market data source interface.

Dashboards read all raw data through a MarketDataSource so that the
transform layer never knows whether its input came from the live APIs
(LiveDataSource) or from the seeded mock generators (SyntheticDataSource).
"""

import abc
from typing import Any, List, Sequence, Tuple
from quantdash.entities import (
    TimeSeries, COTRecord, OptionInstrument, OptionMarkData,
    FundingRate, Liquidation, VIXTenor
)

OptionChain = Tuple[List[OptionInstrument], List[OptionMarkData]]
FundingRow = Tuple[int, str, float]


class MarketDataSource(abc.ABC):
    """
    Raw inputs for every dashboard panel.

    Series come back in date order with non-numeric observations already
    removed. Day counts (`days`) are measured back from now_ms().

    Usage::

        with LiveDataSource(settings, fallback=SyntheticDataSource()) as source:
            vix = source.vix("2020-01-01")
    """

    def __enter__(self) -> "MarketDataSource":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release network resources (no-op by default)."""

    @abc.abstractmethod
    def now_ms(self) -> int:
        """Valuation time in epoch milliseconds."""

    # Traditional markets
    @abc.abstractmethod
    def vix(self, start: str) -> TimeSeries:
        """CBOE VIX closes."""

    @abc.abstractmethod
    def high_yield_oas(self, start: str) -> TimeSeries:
        """High yield option-adjusted spread (percent)."""

    @abc.abstractmethod
    def investment_grade_oas(self, start: str) -> TimeSeries:
        """Investment grade option-adjusted spread (percent)."""

    @abc.abstractmethod
    def sp500(self, start: str) -> TimeSeries:
        """S&P 500 index level."""

    @abc.abstractmethod
    def treasury_10y(self, start: str) -> TimeSeries:
        """10-year Treasury yield (percent)."""

    @abc.abstractmethod
    def vix_term_structure(self) -> List[VIXTenor]:
        """Latest VIX index level per tenor."""

    # Futures positioning
    @abc.abstractmethod
    def cot_records(self, contract: str, limit: int) -> List[COTRecord]:
        """Most recent weekly COT reports, oldest first."""

    # Options
    @abc.abstractmethod
    def option_chain(self, currency: str) -> OptionChain:
        """Listed options and their mark data for a currency."""

    @abc.abstractmethod
    def index_price(self, currency: str) -> float:
        """Current underlying index price."""

    @abc.abstractmethod
    def skew_25d(self, currency: str, days: int) -> TimeSeries:
        """Daily 25-delta risk reversal (call IV minus put IV, vol points)."""

    @abc.abstractmethod
    def implied_volatility(self, currency: str, days: int) -> TimeSeries:
        """Daily implied volatility index (percent)."""

    @abc.abstractmethod
    def perpetual_closes(self, currency: str, days: int) -> TimeSeries:
        """Daily perpetual future closes."""

    # Crypto derivatives
    @abc.abstractmethod
    def funding_rates(self, symbols: Sequence[str]) -> List[FundingRate]:
        """Current funding rate per symbol."""

    @abc.abstractmethod
    def funding_history(self, symbols: Sequence[str], days: int) -> List[FundingRow]:
        """Funding observations as (timestamp_ms, symbol, rate)."""

    @abc.abstractmethod
    def open_interest(self, symbol: str, days: int) -> TimeSeries:
        """Daily open interest (USD) for one symbol."""

    @abc.abstractmethod
    def aggregate_open_interest(self, days: int) -> TimeSeries:
        """Daily open interest (USD) across all symbols."""

    @abc.abstractmethod
    def liquidations(self, days: int) -> List[Liquidation]:
        """Daily liquidations."""
