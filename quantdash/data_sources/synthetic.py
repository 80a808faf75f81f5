"""
Deterministic mock market data.

SyntheticDataSource produces plausible random walks for every input the
dashboards read, so the panels render offline and in tests. Each method
draws from its own generator seeded by (seed, method name), so a value
never depends on which other methods were called first.
"""

import zlib
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import numpy as np
import pandas as pd
from quantdash.entities import (
    TimeSeries, COTRecord, OptionInstrument, OptionMarkData,
    FundingRate, Liquidation, VIXTenor
)
from quantdash.analytics.helpers import MS_PER_DAY
from quantdash.data_sources.base import MarketDataSource, OptionChain, FundingRow
from quantdash.data_sources.cot import resolve_contract

OPTION_EXPIRY_DAYS = (7, 14, 30, 60, 90, 180)
# Deribit options expire at 08:00 UTC
EXPIRY_HOUR_MS = 8 * 60 * 60 * 1000
FUNDING_INTERVAL_MS = 8 * 60 * 60 * 1000


def _today_ms() -> int:
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return int(today.timestamp() * 1000)


def _spot(currency: str) -> float:
    return 60_000.0 if currency.upper() == "BTC" else 3_000.0


def _bounded_walk(rng: np.random.Generator, n: int, start: float, step: float, low: float, high: float) -> np.ndarray:
    """Random walk with uniform steps in [-step/2, step/2), clipped after every step."""
    values = np.empty(n)
    level = start
    for i, shock in enumerate(rng.uniform(-0.5, 0.5, n) * step):
        level = min(high, max(low, level + shock))
        values[i] = level
    return values


class SyntheticDataSource(MarketDataSource):
    """
    Seeded MarketDataSource.

    Attributes:
        seed: Base seed; two sources with the same seed and anchor agree
        anchor_ms: Valuation time (defaults to today, 00:00 UTC)
    """

    def __init__(self, seed: int = 42, anchor_ms: Optional[int] = None):
        self.seed = seed
        self.anchor_ms = _today_ms() if anchor_ms is None else int(anchor_ms)

    def __repr__(self) -> str:
        return f"SyntheticDataSource(seed={self.seed}, anchor_ms={self.anchor_ms})"

    def _rng(self, *key) -> np.random.Generator:
        tag = zlib.crc32("/".join(str(k) for k in key).encode())
        return np.random.default_rng([self.seed, tag])

    def now_ms(self) -> int:
        return self.anchor_ms

    @property
    def anchor_date(self) -> pd.Timestamp:
        return pd.Timestamp(self.anchor_ms, unit="ms").normalize()

    def _daily_dates(self, days: int) -> List[str]:
        """Calendar days from anchor - days through anchor."""
        index = pd.date_range(end=self.anchor_date, periods=days + 1, freq="D")
        return list(index.strftime("%Y-%m-%d"))

    def _business_dates(self, start: str) -> List[str]:
        index = pd.bdate_range(start=start, end=self.anchor_date)
        return list(index.strftime("%Y-%m-%d"))

    def _macro_walk(self, name: str, start: str, level: float, step: float, low: float, high: float) -> TimeSeries:
        dates = self._business_dates(start)
        values = _bounded_walk(self._rng(name, start), len(dates), level, step, low, high)
        return TimeSeries.from_pairs(zip(dates, values), name=name)

    # Traditional markets

    def vix(self, start: str) -> TimeSeries:
        return self._macro_walk("VIXCLS", start, 18.0, 2.0, 9.0, 80.0)

    def high_yield_oas(self, start: str) -> TimeSeries:
        return self._macro_walk("BAMLH0A0HYM2", start, 4.0, 0.15, 2.5, 10.0)

    def investment_grade_oas(self, start: str) -> TimeSeries:
        return self._macro_walk("BAMLC0A4CBBB", start, 1.2, 0.05, 0.8, 3.0)

    def treasury_10y(self, start: str) -> TimeSeries:
        return self._macro_walk("DGS10", start, 3.0, 0.1, 0.5, 6.0)

    def sp500(self, start: str) -> TimeSeries:
        dates = self._business_dates(start)
        log_returns = self._rng("SP500", start).normal(0.0003, 0.011, len(dates))
        values = 4000.0 * np.exp(np.cumsum(log_returns))
        return TimeSeries.from_pairs(zip(dates, values), name="SP500")

    def vix_term_structure(self) -> List[VIXTenor]:
        rng = self._rng("vix_term_structure")
        level = 15.0 + rng.uniform(0.0, 6.0)
        points = []
        for tenor in ("9d", "30d", "3m", "6m"):
            points.append(VIXTenor(tenor=tenor, value=float(level)))
            level += rng.uniform(0.0, 1.5)
        return points

    # Futures positioning

    def cot_records(self, contract: str, limit: int) -> List[COTRecord]:
        resolve_contract(contract)
        rng = self._rng("cot", contract.upper())
        # Reports are as of Tuesday
        tuesdays = pd.date_range(end=self.anchor_date, periods=limit, freq="W-TUE")
        comm_long = _bounded_walk(rng, limit, 250_000, 20_000, 50_000, 600_000)
        comm_short = _bounded_walk(rng, limit, 280_000, 20_000, 50_000, 600_000)
        spec_long = _bounded_walk(rng, limit, 180_000, 16_000, 20_000, 500_000)
        spec_short = _bounded_walk(rng, limit, 150_000, 16_000, 20_000, 500_000)
        small_long = _bounded_walk(rng, limit, 40_000, 4_000, 5_000, 120_000)
        small_short = _bounded_walk(rng, limit, 45_000, 4_000, 5_000, 120_000)
        return [
            COTRecord(
                date=day.strftime("%Y-%m-%d"),
                commercial_long=int(comm_long[i]),
                commercial_short=int(comm_short[i]),
                large_spec_long=int(spec_long[i]),
                large_spec_short=int(spec_short[i]),
                small_spec_long=int(small_long[i]),
                small_spec_short=int(small_short[i]),
            )
            for i, day in enumerate(tuesdays)
        ]

    # Options

    def option_chain(self, currency: str) -> OptionChain:
        """
        A strike ladder per expiry with a smile around the ATM level.

        Deltas are spread from deep in the money to far out of the money,
        so only some strikes pass an ATM filter.
        """
        rng = self._rng("option_chain", currency)
        spot = _spot(currency)
        atm_iv = 55.0

        instruments, marks = [], []
        for days in OPTION_EXPIRY_DAYS:
            atm_iv += rng.uniform(-2.0, 3.0)
            expiry_ms = self.anchor_ms + days * MS_PER_DAY + EXPIRY_HOUR_MS
            label = pd.Timestamp(expiry_ms, unit="ms").strftime("%d%b%y").upper()
            for moneyness, call_delta in zip((0.8, 0.9, 0.95, 1.0, 1.05, 1.1, 1.2), (0.9, 0.75, 0.6, 0.5, 0.4, 0.25, 0.1)):
                strike = round(spot * moneyness)
                smile = 8.0 * (moneyness - 1.0) ** 2 * 100
                iv = float(atm_iv + smile + rng.normal(0.0, 0.5))
                for option_type, delta in (("call", call_delta), ("put", call_delta - 1.0)):
                    name = f"{currency.upper()}-{label}-{strike}-{option_type[0].upper()}"
                    instruments.append(OptionInstrument(name, expiry_ms, float(strike), option_type))
                    marks.append(OptionMarkData(name, mark_iv=iv, delta=delta))
        return instruments, marks

    def index_price(self, currency: str) -> float:
        return _spot(currency)

    def skew_25d(self, currency: str, days: int) -> TimeSeries:
        """Risk reversal walk from -5 vol points, clipped to +/-30."""
        dates = self._daily_dates(days)
        values = _bounded_walk(self._rng("skew", currency), len(dates), -5.0, 3.0, -30.0, 30.0)
        return TimeSeries.from_pairs(zip(dates, values), name=f"{currency}_skew_25d")

    def implied_volatility(self, currency: str, days: int) -> TimeSeries:
        dates = self._daily_dates(days)
        values = _bounded_walk(self._rng("dvol", currency), len(dates), 60.0, 5.0, 30.0, 100.0)
        return TimeSeries.from_pairs(zip(dates, values), name=f"{currency}_dvol")

    def perpetual_closes(self, currency: str, days: int) -> TimeSeries:
        dates = self._daily_dates(days)
        start = _spot(currency)
        # ~55% annualized volatility
        log_returns = self._rng("perpetual", currency).normal(0.0, 0.55 / np.sqrt(365), len(dates))
        values = start * np.exp(np.cumsum(log_returns))
        return TimeSeries.from_pairs(zip(dates, values), name=f"{currency}_perpetual")

    # Crypto derivatives

    def funding_rates(self, symbols: Sequence[str]) -> List[FundingRate]:
        rng = self._rng("funding_rates")
        return [
            FundingRate(
                symbol=f"{symbol}USDT",
                exchange="aggregate",
                funding_rate=float((rng.random() - 0.5) * 0.002),
                next_funding_time=self.anchor_ms + FUNDING_INTERVAL_MS,
                timestamp=self.anchor_ms,
            )
            for symbol in symbols
        ]

    def funding_history(self, symbols: Sequence[str], days: int) -> List[FundingRow]:
        rng = self._rng("funding_history")
        rows = []
        for i in range(days, -1, -1):
            ts = self.anchor_ms - i * MS_PER_DAY
            for symbol in symbols:
                rows.append((ts, f"{symbol}USDT", float((rng.random() - 0.5) * 0.001)))
        return rows

    def open_interest(self, symbol: str, days: int) -> TimeSeries:
        dates = self._daily_dates(days)
        level = {"BTC": 20e9, "ETH": 8e9}.get(symbol.upper(), 1e9)
        values = _bounded_walk(self._rng("oi", symbol), len(dates), level, level * 0.05, level * 0.3, level * 3)
        return TimeSeries.from_pairs(zip(dates, values), name=f"{symbol}_oi")

    def aggregate_open_interest(self, days: int) -> TimeSeries:
        btc = self.open_interest("BTC", days)
        eth = self.open_interest("ETH", days)
        # Alts carry roughly 40% on top of BTC + ETH
        values = (btc.values + eth.values) * 1.4
        return TimeSeries.from_pairs(zip(btc.dates, values), name="global_oi")

    def liquidations(self, days: int) -> List[Liquidation]:
        rng = self._rng("liquidations")
        return [
            Liquidation(
                timestamp=self.anchor_ms - i * MS_PER_DAY,
                long_liquidations=float(rng.random() * 500e6),
                short_liquidations=float(rng.random() * 500e6),
            )
            for i in range(days, -1, -1)
        ]
