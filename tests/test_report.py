"""
Tests for report generation.

Tests cover:
- Report file creation
- Sections present
- Chart generation
"""

import pytest
import tempfile
from pathlib import Path
from dataclasses import replace
from unittest.mock import patch
from quantdash.config import Settings
from quantdash.dashboard import (
    build_traditional_panel, build_cot_panel, build_options_panel, build_crypto_panel
)
from quantdash.data_sources.synthetic import SyntheticDataSource
from quantdash.reporting.report import Report, _regime

NOW = 1_704_067_200_000  # 2024-01-01 00:00 UTC


@pytest.fixture(scope="module")
def panels():
    source = SyntheticDataSource(seed=42, anchor_ms=NOW)
    settings = Settings(start_date="2023-01-01")
    return {
        "traditional": build_traditional_panel(source, settings),
        "cot": build_cot_panel(source, "GOLD", settings),
        "options": build_options_panel(source, "ETH", settings),
        "crypto": build_crypto_panel(source, ["BTC", "ETH", "SOL"], settings),
    }


class TestReport:
    """Tests for Report class."""

    def test_full_report(self, panels):
        """Test generating a report with every panel."""
        with tempfile.TemporaryDirectory() as tmpdir:
            report = Report(output_dir=tmpdir)
            report_path = report.generate_report(**panels)

            assert Path(report_path).exists()
            assert Path(report_path).name.startswith("dashboard_")

            content = Path(report_path).read_text()
            assert "# Market Dashboard" in content
            assert "## Traditional Markets" in content
            assert "## Commitment of Traders" in content
            assert "## Options Volatility" in content
            assert "## Crypto Derivatives" in content
            assert "**Contract:** GOLD" in content
            assert "ETH ATM Term Structure" in content
            assert "| 2w | 14 |" in content
            assert "**ETH index price:** $3,000.00" in content
            assert "### 25-Delta Skew" in content
            assert "Report generated by quantdash" in content
            assert "unavailable" not in content

    def test_charts_created(self, panels):
        with tempfile.TemporaryDirectory() as tmpdir:
            Report(output_dir=tmpdir).generate_report(**panels)

            assets = Path(tmpdir) / "assets"
            for name in ("vix_zscore.png", "credit_zscore.png", "cot_gold.png",
                         "term_structure_eth.png", "skew_eth.png", "vrp_eth.png", "funding_heatmap.png"):
                assert (assets / name).exists(), name

    def test_missing_panels(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            report_path = Report(output_dir=tmpdir).generate_report(title="Empty")
            content = Path(report_path).read_text()

            assert "# Empty" in content
            assert "*No traditional market data available.*" in content
            assert "*No COT data available.*" in content
            assert "*No options data available.*" in content
            assert "*No crypto derivatives data available.*" in content

    def test_output_dir_created(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_dir = Path(tmpdir) / "nested" / "reports"
            Report(output_dir=str(output_dir))
            assert output_dir.is_dir()

    def test_empty_term_structure(self, panels):
        options = replace(panels["options"], term_structure=[], skew_z=[], vrp=[])
        with tempfile.TemporaryDirectory() as tmpdir:
            content = Path(Report(output_dir=tmpdir).generate_report(options=options)).read_text()

            assert "No near-the-money options" in content
            assert "No 25-delta skew available" in content
            assert "Not enough overlapping" in content

    @patch("quantdash.reporting.report.plot_vrp")
    def test_failed_chart_leaves_note(self, mock_plot, panels):
        mock_plot.side_effect = ValueError("bad data")
        with tempfile.TemporaryDirectory() as tmpdir:
            content = Path(Report(output_dir=tmpdir).generate_report(options=panels["options"])).read_text()

            assert "*Variance Risk Premium chart unavailable.*" in content


class TestRegime:
    """Tests for the z-score regime label."""

    @pytest.mark.parametrize("z,label", [
        (None, "n/a"), (2.5, "Stressed"), (1.2, "Elevated"), (0.0, "Normal"), (-1.5, "Complacent")
    ])
    def test_labels(self, z, label):
        assert _regime(z) == label
