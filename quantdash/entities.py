"""
Core entity classes (ADTs) for the dashboard.

These classes are the value records that flow from the data sources,
through the transform layer, to the presentation layer. All of them are
immutable and carry their representation invariants in __post_init__.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field, asdict
from datetime import date as _date
from typing import Any, Dict, Iterable, List, Optional, Tuple
import numpy as np
import pandas as pd
from quantdash.errors import InvalidArgumentError


def require_finite(value: Any, label: str = "value") -> float:
    """
    Return value as a float, failing fast on non-numeric or non-finite input.

    Raises:
        InvalidArgumentError: If value is a string, None, NaN or infinite
    """
    if isinstance(value, (str, bytes)) or value is None:
        raise InvalidArgumentError(f"{label} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"{label} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise InvalidArgumentError(f"{label} must be finite, got {number}")
    return number


def check_iso_date(value: Any) -> str:
    """Validate that value is an ISO calendar day string (YYYY-MM-DD)."""
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidArgumentError(f"date must be a YYYY-MM-DD string, got {value!r}")
    try:
        _date.fromisoformat(value)
    except ValueError as e:
        raise InvalidArgumentError(f"invalid calendar date: {value!r}") from e
    return value


class _Record:
    """Mixin giving records a plain-dict view for chart libraries."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Sample(_Record):
    """
    One dated observation.

    Attributes:
        date: ISO calendar day, no time-of-day (e.g., "2024-03-15")
        value: Observation value

    Representation Invariants:
        - date parses as a calendar day
        - value is a finite float
    """
    date: str
    value: float

    def __post_init__(self):
        check_iso_date(self.date)
        object.__setattr__(self, "value", require_finite(self.value, f"value on {self.date}"))


class TimeSeries(Sequence):
    """
    An ordered, read-only sequence of Samples.

    The series is positional: it never sorts or deduplicates its samples.
    Callers that need the sorted / unique-date precondition can check it
    with is_sorted and has_duplicate_dates.

    Attributes:
        name: Optional label (e.g., the FRED series id)

    Representation Invariants:
        - every element is a Sample
    """

    def __init__(self, samples: Iterable[Sample] = (), name: Optional[str] = None):
        samples = tuple(samples)
        for sample in samples:
            if not isinstance(sample, Sample):
                raise InvalidArgumentError(f"TimeSeries elements must be Sample, got {type(sample).__name__}")
        self._samples = samples
        self._name = name

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, float]], name: Optional[str] = None) -> "TimeSeries":
        """Build a series from (date, value) pairs."""
        return cls((Sample(d, v) for d, v in pairs), name=name)

    @classmethod
    def from_pandas(cls, series: pd.Series, name: Optional[str] = None) -> "TimeSeries":
        """
        Build a series from a date-indexed pandas Series.

        Missing values (NaN) are dropped here, at the parsing boundary,
        so the transform layer only ever sees finite numbers.
        """
        series = pd.to_numeric(series, errors="coerce").dropna()
        dates = pd.DatetimeIndex(series.index).strftime("%Y-%m-%d")
        return cls.from_pairs(zip(dates, series.values), name=name or series.name)

    def to_pandas(self) -> pd.Series:
        """Return the samples as a float Series indexed by date."""
        return pd.Series(
            self.values,
            index=pd.DatetimeIndex(pd.to_datetime(self.dates), name="date"),
            name=self._name,
            dtype=float,
        )

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def dates(self) -> List[str]:
        return [s.date for s in self._samples]

    @property
    def values(self) -> np.ndarray:
        return np.array([s.value for s in self._samples], dtype=float)

    @property
    def latest(self) -> Optional[Sample]:
        """Return the last sample, or None for an empty series."""
        return self._samples[-1] if self._samples else None

    @property
    def is_sorted(self) -> bool:
        """True when dates are non-decreasing."""
        dates = self.dates
        return all(a <= b for a, b in zip(dates, dates[1:]))

    @property
    def has_duplicate_dates(self) -> bool:
        dates = self.dates
        return len(set(dates)) != len(dates)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TimeSeries(self._samples[index], name=self._name)
        return self._samples[index]

    def __len__(self) -> int:
        return len(self._samples)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._samples == other._samples

    def __repr__(self) -> str:
        name_str = f" {self._name}" if self._name else ""
        return f"TimeSeries({len(self)} obs{name_str})"


@dataclass(frozen=True)
class WindowedStat(_Record):
    """
    Z-score of one sample against its trailing window.

    z_score is 0.0 for samples before the window has filled.
    """
    date: str
    value: float
    z_score: float


@dataclass(frozen=True)
class COTRecord(_Record):
    """
    One weekly Commitment of Traders report for a contract.

    Net positions are always long - short and are derived on access, so a
    record can never carry a net that disagrees with its legs.
    """
    date: str
    commercial_long: int
    commercial_short: int
    large_spec_long: int
    large_spec_short: int
    small_spec_long: int = 0
    small_spec_short: int = 0

    def __post_init__(self):
        check_iso_date(self.date)

    @property
    def commercial_net(self) -> int:
        return self.commercial_long - self.commercial_short

    @property
    def large_spec_net(self) -> int:
        return self.large_spec_long - self.large_spec_short

    @property
    def small_spec_net(self) -> int:
        return self.small_spec_long - self.small_spec_short

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["commercial_net"] = self.commercial_net
        data["large_spec_net"] = self.large_spec_net
        data["small_spec_net"] = self.small_spec_net
        return data


@dataclass(frozen=True)
class COTIndexRecord(_Record):
    """COT index (0-100) for commercials and large speculators."""
    date: str
    commercial_index: float
    large_spec_index: float


@dataclass(frozen=True)
class OptionInstrument(_Record):
    """A listed option contract (Deribit get_instruments row)."""
    instrument_name: str
    expiration_timestamp: int
    strike: Optional[float] = None
    option_type: Optional[str] = None


@dataclass(frozen=True)
class OptionMarkData(_Record):
    """Mark implied volatility and delta for one instrument."""
    instrument_name: str
    mark_iv: Optional[float] = None
    delta: Optional[float] = None


@dataclass(frozen=True)
class TermStructurePoint(_Record):
    """
    Summary of ATM implied volatility for one expiry.

    min / max are a widened band (0.8x / 1.2x of the raw extremes),
    not the raw extremes themselves.
    """
    tenor: str
    days: int
    current: float
    min: float
    max: float
    median: float
    percentile25: float
    percentile75: float

    @property
    def iv(self) -> float:
        return self.current

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["iv"] = self.current
        return data


@dataclass(frozen=True)
class VRPRecord(_Record):
    """Implied minus realized volatility on one date."""
    date: str
    iv: float
    rv: float
    vrp: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "vrp", self.iv - self.rv)


@dataclass(frozen=True)
class CreditSpreadRecord(_Record):
    """High yield minus investment grade OAS on one date."""
    date: str
    hy: float
    ig: float
    spread: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "spread", self.hy - self.ig)


@dataclass(frozen=True)
class PerformancePoint(_Record):
    """Percent change of a sample relative to a base sample."""
    date: str
    value: float
    performance: float


@dataclass(frozen=True)
class VIXTenor(_Record):
    """One point on the VIX futures-implied term structure."""
    tenor: str
    value: float


@dataclass(frozen=True)
class FundingRate(_Record):
    """Live perpetual funding rate for one symbol."""
    symbol: str
    exchange: str
    funding_rate: float
    next_funding_time: int
    timestamp: int


@dataclass(frozen=True)
class GlobalOpenInterest(_Record):
    """Aggregate open interest (USD) split into BTC, ETH and the rest."""
    date: str
    global_oi: float
    btc: float
    eth: float
    others: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "others", self.global_oi - self.btc - self.eth)


@dataclass(frozen=True)
class Liquidation(_Record):
    """Daily long / short liquidations (USD)."""
    timestamp: int
    long_liquidations: float
    short_liquidations: float
    total_liquidations: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "total_liquidations", self.long_liquidations + self.short_liquidations)


@dataclass(frozen=True)
class FundingHeatmap(_Record):
    """
    Funding rates (percent) pivoted into a date x symbol grid.

    Representation Invariants:
        - len(data) == len(dates)
        - every row has len(symbols) cells
    """
    dates: Tuple[str, ...]
    symbols: Tuple[str, ...]
    data: Tuple[Tuple[float, ...], ...]

    def __post_init__(self):
        if len(self.data) != len(self.dates):
            raise InvalidArgumentError("heatmap needs one row per date")
        for row in self.data:
            if len(row) != len(self.symbols):
                raise InvalidArgumentError("heatmap rows need one cell per symbol")

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.data), index=list(self.dates), columns=list(self.symbols))


def records_to_frame(records: Iterable[_Record]) -> pd.DataFrame:
    """Collect records into a DataFrame, one row per record."""
    return pd.DataFrame([r.to_dict() for r in records])
