"""
Coinalyze crypto derivatives data.

Funding rates, open interest and liquidations aggregated across
exchanges. Requests carry the API key in the "api-key" header; the free
tier allows 40 requests per minute.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple
from quantdash.entities import FundingRate, Liquidation, TimeSeries
from quantdash.analytics.helpers import MS_PER_DAY, timestamp_to_date
from quantdash.errors import DataError
from quantdash.data_sources.http import JSONClient
from quantdash.logging_config import get_logger

COINALYZE_BASE_URL = "https://api.coinalyze.net/v1"

CRYPTO_SYMBOLS = [
    "BTC", "ETH", "SOL", "XRP", "HYPE", "BNB", "ZEC", "DOGE", "BCH",
    "SUI", "ADA", "ASTER", "LINK", "ENA", "LTC", "AVAX", "UNI", "TRX",
    "AAVE", "NEAR", "TRUMP", "PAXG", "FIL", "WLFI", "APT",
]

log = get_logger(__name__)


def _pairs(symbols: Iterable[str]) -> str:
    return ",".join(f"{s}USDT" for s in symbols)


def _rows(payload: Any, endpoint: str) -> List[dict]:
    if not isinstance(payload, list):
        raise DataError(f"Unexpected Coinalyze {endpoint} payload: {type(payload).__name__}")
    return payload


class CoinalyzeClient:
    """Typed wrapper over the Coinalyze endpoints used by the dashboard."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[JSONClient] = None,
        **client_kwargs: Any
    ):
        headers = {"api-key": api_key} if api_key else None
        self.client = client or JSONClient(COINALYZE_BASE_URL, headers=headers, **client_kwargs)

    def close(self) -> None:
        self.client.close()

    def get_funding_rates(self, symbols: Sequence[str] = CRYPTO_SYMBOLS) -> List[FundingRate]:
        """Current funding rate per perpetual."""
        rows = _rows(self.client.get("/funding-rate-live", {"symbols": _pairs(symbols)}), "funding-rate-live")
        return [
            FundingRate(
                symbol=row["symbol"],
                exchange=row.get("exchange", "aggregate"),
                funding_rate=float(row["fundingRate"]),
                next_funding_time=int(row.get("nextFundingTime", 0)),
                timestamp=int(row.get("timestamp", 0)),
            )
            for row in rows
        ]

    def get_funding_history(
        self,
        symbols: Sequence[str],
        days: int,
        now_ms: int
    ) -> List[Tuple[int, str, float]]:
        """8-hourly funding observations as (timestamp_ms, symbol, rate)."""
        rows = _rows(
            self.client.get(
                "/funding-rate-history",
                {"symbols": _pairs(symbols), "from": now_ms - days * MS_PER_DAY, "to": now_ms, "interval": "8h"},
            ),
            "funding-rate-history",
        )
        return [(int(row["timestamp"]), row["symbol"], float(row["fundingRate"])) for row in rows]

    def _oi_series(self, endpoint: str, params: dict, name: str) -> TimeSeries:
        rows = _rows(self.client.get(endpoint, params), endpoint)
        return TimeSeries.from_pairs(
            ((timestamp_to_date(row["timestamp"]), row.get("openInterestUsd") or 0.0) for row in rows),
            name=name,
        )

    def get_open_interest(self, symbol: str, days: int, now_ms: int) -> TimeSeries:
        """Daily open interest (USD) for one symbol."""
        return self._oi_series(
            "/open-interest-history",
            {"symbols": f"{symbol}USDT", "from": now_ms - days * MS_PER_DAY, "to": now_ms, "interval": "1d"},
            name=f"{symbol}_oi",
        )

    def get_aggregate_open_interest(self, days: int, now_ms: int) -> TimeSeries:
        """Daily open interest (USD) across all tracked symbols."""
        return self._oi_series(
            "/aggregate-open-interest",
            {"from": now_ms - days * MS_PER_DAY, "to": now_ms, "interval": "1d"},
            name="global_oi",
        )

    def get_liquidations(self, days: int, now_ms: int) -> List[Liquidation]:
        """Daily long / short liquidations (USD)."""
        rows = _rows(
            self.client.get(
                "/liquidations-history",
                {"from": now_ms - days * MS_PER_DAY, "to": now_ms, "interval": "1d"},
            ),
            "liquidations-history",
        )
        return [
            Liquidation(
                timestamp=int(row["timestamp"]),
                long_liquidations=float(row.get("long_liquidations_usd") or 0.0),
                short_liquidations=float(row.get("short_liquidations_usd") or 0.0),
            )
            for row in rows
        ]
