"""
Dashboard panel assembly.

Each build_* function reads its raw inputs from a MarketDataSource and
applies the analytics transforms, returning a panel dataclass holding
everything one dashboard page displays.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from quantdash.cache import DataCache
from quantdash.config import Settings
from quantdash.entities import (
    TimeSeries, WindowedStat, VIXTenor, CreditSpreadRecord, PerformancePoint,
    COTRecord, COTIndexRecord, TermStructurePoint, VRPRecord, FundingRate,
    FundingHeatmap, GlobalOpenInterest, Liquidation
)
from quantdash.analytics.rolling_stats import z_score
from quantdash.analytics.percentile import latest_percentile
from quantdash.analytics.cot_index import cot_index
from quantdash.analytics.spreads import credit_spreads, variance_risk_premium
from quantdash.analytics.term_structure import term_structure
from quantdash.analytics.returns import realized_volatility, performance
from quantdash.analytics.crypto import global_open_interest, funding_heatmap
from quantdash.data_sources.base import MarketDataSource
from quantdash.data_sources.live import LiveDataSource
from quantdash.data_sources.synthetic import SyntheticDataSource
from quantdash.data_sources.coinalyze import CRYPTO_SYMBOLS
from quantdash.logging_config import get_logger

FUNDING_HEATMAP_DAYS = 30
CRYPTO_HISTORY_DAYS = 365

log = get_logger(__name__)


@dataclass
class TraditionalMarketsPanel:
    """VIX, credit spreads, S&P 500 and Treasury yields."""
    vix: TimeSeries
    vix_z: List[WindowedStat]
    vix_percentile: Optional[float]
    vix_term_structure: List[VIXTenor]
    credit: List[CreditSpreadRecord]
    credit_z: List[WindowedStat]
    credit_percentile: Optional[float]
    sp500_performance: List[PerformancePoint]
    treasury_10y: TimeSeries

    @property
    def latest_vix_z(self) -> Optional[float]:
        return self.vix_z[-1].z_score if self.vix_z else None

    @property
    def latest_credit_z(self) -> Optional[float]:
        return self.credit_z[-1].z_score if self.credit_z else None


@dataclass
class COTPanel:
    """Weekly positioning and COT index for one contract."""
    contract: str
    records: List[COTRecord]
    index: List[COTIndexRecord]

    @property
    def latest(self) -> Optional[COTIndexRecord]:
        return self.index[-1] if self.index else None


@dataclass
class OptionsPanel:
    """Implied volatility term structure, 25-delta skew and variance risk premium."""
    currency: str
    underlying_price: float
    term_structure: List[TermStructurePoint]
    skew: TimeSeries
    skew_z: List[WindowedStat]
    implied_vol: TimeSeries
    realized_vol: TimeSeries
    vrp: List[VRPRecord]

    @property
    def latest_vrp(self) -> Optional[VRPRecord]:
        return self.vrp[-1] if self.vrp else None

    @property
    def latest_skew_z(self) -> Optional[WindowedStat]:
        return self.skew_z[-1] if self.skew_z else None


@dataclass
class CryptoPanel:
    """Funding, open interest and liquidations across perpetuals."""
    funding_rates: List[FundingRate]
    funding_heatmap: FundingHeatmap
    open_interest: List[GlobalOpenInterest]
    oi_z: List[WindowedStat]
    liquidations: List[Liquidation]
    symbols: Sequence[str] = field(default_factory=lambda: list(CRYPTO_SYMBOLS))

    @property
    def latest_oi_z(self) -> float:
        return self.oi_z[-1].z_score if self.oi_z else 0.0


def _percentile_or_none(series) -> Optional[float]:
    return latest_percentile(series) if len(series) else None


def build_traditional_panel(source: MarketDataSource, settings: Optional[Settings] = None) -> TraditionalMarketsPanel:
    """
    VIX and credit spread regime panel.

    Z-scores use settings.zscore_lookback observations (252 by default);
    percentiles rank the latest value against the whole history.
    """
    settings = settings or Settings()
    start = settings.start_date

    vix = source.vix(start)
    hy = source.high_yield_oas(start)
    ig = source.investment_grade_oas(start)
    credit = credit_spreads(hy, ig)
    spread_series = TimeSeries.from_pairs(((c.date, c.spread) for c in credit), name="credit_spread")
    log.debug("traditional_inputs", vix=len(vix), hy=len(hy), ig=len(ig), credit=len(credit))

    return TraditionalMarketsPanel(
        vix=vix,
        vix_z=z_score(vix, settings.zscore_lookback),
        vix_percentile=_percentile_or_none(vix),
        vix_term_structure=source.vix_term_structure(),
        credit=credit,
        credit_z=z_score(spread_series, settings.zscore_lookback),
        credit_percentile=_percentile_or_none(spread_series),
        sp500_performance=performance(source.sp500(start), start),
        treasury_10y=source.treasury_10y(start),
    )


def build_cot_panel(source: MarketDataSource, contract: str, settings: Optional[Settings] = None) -> COTPanel:
    """COT index over settings.cot_lookback_weeks reports."""
    settings = settings or Settings()
    records = source.cot_records(contract, settings.cot_limit)
    return COTPanel(
        contract=contract.upper(),
        records=records,
        index=cot_index(records, settings.cot_lookback_weeks),
    )


def build_options_panel(
    source: MarketDataSource,
    currency: Optional[str] = None,
    settings: Optional[Settings] = None
) -> OptionsPanel:
    """
    Term structure, 25-delta skew and VRP for a Deribit currency.

    Perpetual closes are fetched rv_window days further back than the IV
    history so realized volatility covers the full VRP period. The skew
    z-score uses settings.skew_zscore_lookback samples.
    """
    settings = settings or Settings()
    currency = (currency or settings.currency).upper()

    instruments, marks = source.option_chain(currency)
    structure = term_structure(instruments, marks, source.now_ms())
    skew = source.skew_25d(currency, settings.vrp_days)

    iv = source.implied_volatility(currency, settings.vrp_days)
    closes = source.perpetual_closes(currency, settings.vrp_days + settings.rv_window)
    rv = realized_volatility(closes, window=settings.rv_window)
    log.debug("options_inputs", currency=currency, instruments=len(instruments), skew=len(skew), iv=len(iv), rv=len(rv))

    return OptionsPanel(
        currency=currency,
        underlying_price=source.index_price(currency),
        term_structure=structure,
        skew=skew,
        skew_z=z_score(skew, settings.skew_zscore_lookback),
        implied_vol=iv,
        realized_vol=rv,
        vrp=variance_risk_premium(iv, rv),
    )


def build_crypto_panel(
    source: MarketDataSource,
    symbols: Sequence[str] = CRYPTO_SYMBOLS,
    settings: Optional[Settings] = None
) -> CryptoPanel:
    """Funding heatmap, global open interest with its z-score, and liquidations."""
    settings = settings or Settings()
    symbols = list(symbols)

    btc = source.open_interest("BTC", CRYPTO_HISTORY_DAYS)
    eth = source.open_interest("ETH", CRYPTO_HISTORY_DAYS)
    total = source.aggregate_open_interest(CRYPTO_HISTORY_DAYS)
    oi = global_open_interest(btc, eth, total)
    oi_series = TimeSeries.from_pairs(((p.date, p.global_oi) for p in oi), name="global_oi")

    return CryptoPanel(
        funding_rates=source.funding_rates(symbols),
        funding_heatmap=funding_heatmap(source.funding_history(symbols, FUNDING_HEATMAP_DAYS), symbols),
        open_interest=oi,
        oi_z=z_score(oi_series, settings.oi_zscore_lookback),
        liquidations=source.liquidations(CRYPTO_HISTORY_DAYS),
        symbols=symbols,
    )


def create_source(settings: Optional[Settings] = None) -> MarketDataSource:
    """
    Data source selected by settings.

    Synthetic mode never touches the network. Live mode caches payloads
    under settings.cache_dir and, when fallback_to_synthetic is set,
    serves mock data for any fetch that fails.
    """
    settings = settings or Settings()
    synthetic = SyntheticDataSource(seed=settings.seed)
    if settings.synthetic:
        return synthetic
    cache = DataCache(settings.cache_dir, max_age_seconds=settings.cache_max_age_seconds)
    fallback = synthetic if settings.fallback_to_synthetic else None
    return LiveDataSource(settings, cache=cache, fallback=fallback)
