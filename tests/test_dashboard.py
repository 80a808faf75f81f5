"""
Tests for dashboard panel assembly.

Tests cover:
- Each panel built from the synthetic source
- Alignment of the VRP and open interest histories
- Data source selection from settings
"""

import pytest
from dataclasses import replace
from quantdash.config import Settings
from quantdash.dashboard import (
    build_traditional_panel, build_cot_panel, build_options_panel, build_crypto_panel,
    create_source, CRYPTO_HISTORY_DAYS, FUNDING_HEATMAP_DAYS
)
from quantdash.data_sources.live import LiveDataSource
from quantdash.data_sources.synthetic import SyntheticDataSource
from quantdash.errors import InvalidArgumentError

NOW = 1_704_067_200_000  # 2024-01-01 00:00 UTC


@pytest.fixture
def source():
    return SyntheticDataSource(seed=42, anchor_ms=NOW)


@pytest.fixture
def settings():
    return Settings(start_date="2022-01-01", synthetic=True)


class TestTraditionalPanel:
    """Tests for build_traditional_panel function."""

    def test_panel_contents(self, source, settings):
        panel = build_traditional_panel(source, settings)

        assert len(panel.vix_z) == len(panel.vix)
        assert 0.0 <= panel.vix_percentile <= 100.0
        assert 0.0 <= panel.credit_percentile <= 100.0
        assert panel.latest_vix_z == panel.vix_z[-1].z_score
        assert all(c.spread == pytest.approx(c.hy - c.ig) for c in panel.credit)
        assert panel.sp500_performance[0].performance == 0.0
        assert len(panel.vix_term_structure) == 4

    def test_lookback_from_settings(self, source, settings):
        panel = build_traditional_panel(source, replace(settings, zscore_lookback=20))

        assert all(s.z_score == 0.0 for s in panel.vix_z[:20])
        assert any(s.z_score != 0.0 for s in panel.vix_z[20:])


class TestCOTPanel:
    """Tests for build_cot_panel function."""

    def test_panel_contents(self, source, settings):
        panel = build_cot_panel(source, "eur", settings)

        assert panel.contract == "EUR"
        assert len(panel.records) == settings.cot_limit
        assert len(panel.index) == len(panel.records)
        assert 0.0 <= panel.latest.commercial_index <= 100.0

    def test_unknown_contract(self, source, settings):
        with pytest.raises(InvalidArgumentError):
            build_cot_panel(source, "DOGE", settings)


class TestOptionsPanel:
    """Tests for build_options_panel function."""

    def test_vrp_covers_iv_history(self, source, settings):
        panel = build_options_panel(source, settings=settings)

        assert panel.currency == "ETH"
        assert len(panel.implied_vol) == settings.vrp_days + 1
        assert len(panel.vrp) == settings.vrp_days + 1
        assert panel.vrp[-1].date == "2024-01-01"
        assert panel.latest_vrp.vrp == pytest.approx(panel.latest_vrp.iv - panel.latest_vrp.rv)

    def test_term_structure(self, source, settings):
        panel = build_options_panel(source, "btc", settings)

        assert panel.currency == "BTC"
        assert [p.days for p in panel.term_structure] == [7, 14, 30, 60, 90, 180]

    def test_skew_and_index_price(self, source, settings):
        panel = build_options_panel(source, settings=settings)

        assert panel.underlying_price == 3_000.0
        assert len(panel.skew) == settings.vrp_days + 1
        assert len(panel.skew_z) == len(panel.skew)
        assert all(-30.0 <= v <= 30.0 for v in panel.skew.values)
        assert all(s.z_score == 0.0 for s in panel.skew_z[:30])
        assert any(s.z_score != 0.0 for s in panel.skew_z[30:])
        assert panel.latest_skew_z.date == "2024-01-01"

    def test_skew_lookback_from_settings(self, source, settings):
        panel = build_options_panel(source, settings=replace(settings, skew_zscore_lookback=10))

        assert all(s.z_score == 0.0 for s in panel.skew_z[:10])
        assert panel.skew_z[10].z_score != 0.0


class TestCryptoPanel:
    """Tests for build_crypto_panel function."""

    def test_panel_contents(self, source, settings):
        symbols = ["BTC", "ETH", "SOL"]
        panel = build_crypto_panel(source, symbols, settings)

        assert len(panel.open_interest) == CRYPTO_HISTORY_DAYS + 1
        assert len(panel.oi_z) == CRYPTO_HISTORY_DAYS + 1
        assert len(panel.funding_heatmap.dates) == FUNDING_HEATMAP_DAYS + 1
        assert panel.funding_heatmap.symbols == tuple(symbols)
        assert len(panel.funding_rates) == 3
        assert len(panel.liquidations) == CRYPTO_HISTORY_DAYS + 1
        assert all(p.others == pytest.approx(0.4 * (p.btc + p.eth)) for p in panel.open_interest)

    def test_oi_z_warmup(self, source, settings):
        panel = build_crypto_panel(source, ["BTC"], settings)

        assert all(s.z_score == 0.0 for s in panel.oi_z[:settings.oi_zscore_lookback])


class TestCreateSource:
    """Tests for create_source function."""

    def test_synthetic(self):
        source = create_source(Settings(synthetic=True, seed=3))

        assert isinstance(source, SyntheticDataSource)
        assert source.seed == 3

    def test_live_with_fallback(self, tmp_path):
        source = create_source(Settings(cache_dir=str(tmp_path / "cache")))

        assert isinstance(source, LiveDataSource)
        assert isinstance(source.fallback, SyntheticDataSource)
        assert (tmp_path / "cache").is_dir()
        source.close()

    def test_live_without_fallback(self, tmp_path):
        source = create_source(Settings(cache_dir=str(tmp_path), fallback_to_synthetic=False))

        assert source.fallback is None
        source.close()
