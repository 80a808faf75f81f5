"""
Deribit public API (v2) options and volatility data.

No authentication is needed for the endpoints used here:
    - get_instruments: listed option contracts
    - get_book_summary_by_currency: mark IV per option
    - get_volatility_index_data: DVOL implied volatility index
    - get_tradingview_chart_data: perpetual closes for realized volatility
    - get_index_price: underlying index price
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence
from scipy.stats import norm
from quantdash.entities import OptionInstrument, OptionMarkData, TimeSeries
from quantdash.analytics.helpers import MS_PER_DAY, timestamp_to_date
from quantdash.errors import DataError
from quantdash.data_sources.http import JSONClient
from quantdash.logging_config import get_logger

DERIBIT_BASE_URL = "https://www.deribit.com/api/v2/public"
CURRENCIES = ("BTC", "ETH")

log = get_logger(__name__)


def black_scholes_delta(
    option_type: str,
    strike: float,
    underlying: float,
    iv_percent: float,
    years: float
) -> Optional[float]:
    """
    Zero-rate Black-Scholes delta.

    Returns None when the inputs cannot produce a delta (non-positive
    strike, price, volatility or time).
    """
    if strike <= 0 or underlying <= 0 or iv_percent <= 0 or years <= 0:
        return None
    sigma = iv_percent / 100.0
    d1 = (math.log(underlying / strike) + 0.5 * sigma ** 2 * years) / (sigma * math.sqrt(years))
    call_delta = float(norm.cdf(d1))
    return call_delta if option_type == "call" else call_delta - 1.0


class DeribitClient:
    """
    Typed wrapper over the Deribit public endpoints.

    Representation Invariants:
        - every request goes through one JSONClient bound to DERIBIT_BASE_URL
    """

    def __init__(self, client: Optional[JSONClient] = None, **client_kwargs: Any):
        self.client = client or JSONClient(DERIBIT_BASE_URL, **client_kwargs)

    def close(self) -> None:
        self.client.close()

    def _result(self, method: str, params: Dict[str, Any]) -> Any:
        payload = self.client.get(f"/{method}", params)
        if not isinstance(payload, dict) or "result" not in payload:
            error = payload.get("error") if isinstance(payload, dict) else payload
            raise DataError(f"Deribit {method} returned no result: {error}")
        return payload["result"]

    def get_instruments(self, currency: str = "ETH") -> List[OptionInstrument]:
        """List unexpired option contracts."""
        rows = self._result("get_instruments", {"currency": currency, "kind": "option", "expired": "false"})
        return [
            OptionInstrument(
                instrument_name=row["instrument_name"],
                expiration_timestamp=int(row["expiration_timestamp"]),
                strike=row.get("strike"),
                option_type=row.get("option_type"),
            )
            for row in rows
        ]

    def get_mark_data(
        self,
        currency: str = "ETH",
        instruments: Optional[Sequence[OptionInstrument]] = None,
        now_ms: Optional[int] = None
    ) -> List[OptionMarkData]:
        """
        Mark IV and delta for every option of a currency.

        The book summary carries no greeks; when a row has none and the
        instrument and valuation time are known, delta is computed from
        the mark IV with Black-Scholes.
        """
        rows = self._result("get_book_summary_by_currency", {"currency": currency, "kind": "option"})
        by_name: Mapping[str, OptionInstrument] = {i.instrument_name: i for i in instruments or ()}

        marks = []
        for row in rows:
            name = row["instrument_name"]
            mark_iv = row.get("mark_iv")
            delta = (row.get("greeks") or {}).get("delta")
            instrument = by_name.get(name)
            if delta is None and mark_iv and instrument is not None and now_ms is not None:
                delta = black_scholes_delta(
                    option_type=instrument.option_type or "call",
                    strike=float(instrument.strike or 0.0),
                    underlying=float(row.get("underlying_price") or 0.0),
                    iv_percent=float(mark_iv),
                    years=(instrument.expiration_timestamp - now_ms) / MS_PER_DAY / 365.0,
                )
            marks.append(OptionMarkData(instrument_name=name, mark_iv=mark_iv, delta=delta))
        return marks

    def get_volatility_index(self, currency: str, start_ms: int, end_ms: int) -> TimeSeries:
        """
        Daily DVOL implied volatility.

        Rows arrive as [timestamp, open, high, low, close]; the open of
        each day is used.
        """
        result = self._result(
            "get_volatility_index_data",
            {"currency": currency, "resolution": "1D", "start_timestamp": start_ms, "end_timestamp": end_ms},
        )
        rows = (result or {}).get("data") or []
        return TimeSeries.from_pairs(
            ((timestamp_to_date(row[0]), row[1]) for row in rows),
            name=f"{currency}_dvol",
        )

    def get_perpetual_closes(self, currency: str, start_ms: int, end_ms: int) -> TimeSeries:
        """Daily closes of the currency's perpetual future."""
        result = self._result(
            "get_tradingview_chart_data",
            {
                "instrument_name": f"{currency}-PERPETUAL",
                "resolution": "1D",
                "start_timestamp": start_ms,
                "end_timestamp": end_ms,
            },
        )
        closes = result.get("close") or []
        ticks = result.get("ticks") or []
        if len(closes) != len(ticks):
            raise DataError(f"Deribit chart data for {currency} has {len(ticks)} ticks and {len(closes)} closes")
        return TimeSeries.from_pairs(
            ((timestamp_to_date(t), c) for t, c in zip(ticks, closes)),
            name=f"{currency}_perpetual",
        )

    def get_index_price(self, currency: str = "ETH") -> float:
        """Underlying USD index price (e.g. eth_usd)."""
        result = self._result("get_index_price", {"index_name": f"{currency.lower()}_usd"})
        price = result.get("index_price") if isinstance(result, dict) else None
        if price is None:
            raise DataError(f"Deribit index price for {currency} missing")
        return float(price)
