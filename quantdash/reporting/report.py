"""
Markdown report generation.

This module renders the dashboard panels into one markdown report with
summary tables and chart images.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from quantdash.dashboard import TraditionalMarketsPanel, COTPanel, OptionsPanel, CryptoPanel
from quantdash.reporting.charts import (
    plot_z_score, plot_cot_index, plot_vrp, plot_term_structure,
    plot_funding_heatmap, create_report_assets_dir
)
from quantdash.logging_config import get_logger

log = get_logger(__name__)


def _fmt(value: Optional[float], spec: str = ".2f") -> str:
    return "n/a" if value is None else format(value, spec)


def _regime(z: Optional[float]) -> str:
    if z is None:
        return "n/a"
    if z >= 2:
        return "Stressed"
    if z >= 1:
        return "Elevated"
    if z <= -1:
        return "Complacent"
    return "Normal"


class Report:
    """
    Generates markdown dashboard reports.

    Each panel that is passed in gets its own section; panels left as
    None are reported as unavailable.
    """

    def __init__(self, output_dir: str = "reports"):
        """
        Initialize report generator.

        Args:
            output_dir: Directory to save reports
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate_report(
        self,
        traditional: Optional[TraditionalMarketsPanel] = None,
        cot: Optional[COTPanel] = None,
        options: Optional[OptionsPanel] = None,
        crypto: Optional[CryptoPanel] = None,
        title: str = "Market Dashboard"
    ) -> str:
        """
        Generate complete markdown report.

        Returns:
            Path to generated report file
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_path = self.output_dir / f"dashboard_{timestamp}.md"
        assets_dir = create_report_assets_dir(self.output_dir)

        content = self._generate_header(title)
        content += self._generate_traditional_section(traditional, assets_dir)
        content += self._generate_cot_section(cot, assets_dir)
        content += self._generate_options_section(options, assets_dir)
        content += self._generate_crypto_section(crypto, assets_dir)
        content += self._generate_footer()

        with open(report_path, "w") as f:
            f.write(content)

        log.debug("report_written", path=str(report_path))
        return str(report_path)

    def _chart(self, plot: Callable[[str], None], assets_dir: Path, filename: str, alt: str) -> str:
        """Render one chart; a failed chart leaves a note instead of an image."""
        try:
            plot(str(assets_dir / filename))
        except (ValueError, OSError) as e:
            log.warning("chart_failed", chart=filename, error=str(e))
            return f"*{alt} chart unavailable.*\n\n"
        return f"![{alt}](assets/{filename})\n\n"

    def _generate_header(self, title: str) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return f"""# {title}

**Generated:** {timestamp}

---

"""

    def _generate_traditional_section(self, panel: Optional[TraditionalMarketsPanel], assets_dir: Path) -> str:
        """Generate VIX / credit section."""
        section = "## Traditional Markets\n\n"
        if panel is None:
            return section + "*No traditional market data available.*\n\n---\n\n"

        section += "> Z-scores compare each day with the mean and standard deviation of the "
        section += "preceding 252 observations. Percentiles rank today's value against the full history.\n\n"

        latest_vix = panel.vix.latest
        latest_credit = panel.credit[-1] if panel.credit else None
        section += "| Metric | Latest | Z-Score | Percentile | Regime |\n"
        section += "|--------|--------|---------|------------|--------|\n"
        section += f"| VIX | {_fmt(latest_vix.value if latest_vix else None)} | {_fmt(panel.latest_vix_z)} "
        section += f"| {_fmt(panel.vix_percentile, '.1f')} | {_regime(panel.latest_vix_z)} |\n"
        section += f"| HY - IG Spread | {_fmt(latest_credit.spread if latest_credit else None)} "
        section += f"| {_fmt(panel.latest_credit_z)} | {_fmt(panel.credit_percentile, '.1f')} "
        section += f"| {_regime(panel.latest_credit_z)} |\n\n"

        if panel.vix_term_structure:
            section += "### VIX Term Structure\n\n"
            section += "| Tenor | Level |\n|-------|-------|\n"
            for point in panel.vix_term_structure:
                section += f"| {point.tenor} | {point.value:.2f} |\n"
            first, last = panel.vix_term_structure[0], panel.vix_term_structure[-1]
            shape = "Contango" if last.value >= first.value else "Backwardation"
            section += f"\n**Shape:** {shape}\n\n"

        if panel.sp500_performance:
            latest_perf = panel.sp500_performance[-1]
            section += f"**S&P 500 since {panel.sp500_performance[0].date}:** {latest_perf.performance:+.2f}%  \n"
        if panel.treasury_10y.latest is not None:
            section += f"**10Y Treasury:** {panel.treasury_10y.latest.value:.2f}%\n\n"

        if panel.vix_z:
            section += self._chart(lambda p: plot_z_score(panel.vix_z, "VIX", p), assets_dir, "vix_zscore.png", "VIX Z-Score")
        if panel.credit_z:
            section += self._chart(
                lambda p: plot_z_score(panel.credit_z, "HY - IG Spread", p),
                assets_dir, "credit_zscore.png", "Credit Spread Z-Score"
            )
        return section + "---\n\n"

    def _generate_cot_section(self, panel: Optional[COTPanel], assets_dir: Path) -> str:
        """Generate Commitment of Traders section."""
        section = "## Commitment of Traders\n\n"
        if panel is None or not panel.index:
            return section + "*No COT data available.*\n\n---\n\n"

        section += "> The COT index places each week's net position between the lowest (0) and "
        section += "highest (100) net of the trailing 156 weeks. Readings above 80 or below 20 are extremes.\n\n"

        latest = panel.latest
        record = panel.records[-1]
        section += f"**Contract:** {panel.contract}  \n**Report date:** {latest.date}\n\n"
        section += "| Group | Net Position | COT Index |\n|-------|--------------|-----------|\n"
        section += f"| Commercials | {record.commercial_net:,} | {latest.commercial_index:.2f} |\n"
        section += f"| Large Speculators | {record.large_spec_net:,} | {latest.large_spec_index:.2f} |\n"
        section += f"| Small Speculators | {record.small_spec_net:,} | - |\n\n"

        section += self._chart(
            lambda p: plot_cot_index(panel.index, panel.contract, p),
            assets_dir, f"cot_{panel.contract.lower()}.png", "COT Index"
        )
        return section + "---\n\n"

    def _generate_options_section(self, panel: Optional[OptionsPanel], assets_dir: Path) -> str:
        """Generate term structure / skew / VRP section."""
        section = "## Options Volatility\n\n"
        if panel is None:
            return section + "*No options data available.*\n\n---\n\n"

        section += f"**{panel.currency} index price:** ${panel.underlying_price:,.2f}\n\n"
        section += f"### {panel.currency} ATM Term Structure\n\n"
        if panel.term_structure:
            section += "| Tenor | Days | ATM IV | Median | 25th | 75th |\n"
            section += "|-------|------|--------|--------|------|------|\n"
            for point in panel.term_structure:
                section += f"| {point.tenor} | {point.days} | {point.current:.2f} | {point.median:.2f} "
                section += f"| {point.percentile25:.2f} | {point.percentile75:.2f} |\n"
            section += "\n"
            section += self._chart(
                lambda p: plot_term_structure(panel.term_structure, panel.currency, p),
                assets_dir, f"term_structure_{panel.currency.lower()}.png", "Term Structure"
            )
        else:
            section += "*No near-the-money options within 180 days.*\n\n"

        section += "### 25-Delta Skew\n\n"
        latest_skew = panel.latest_skew_z
        if latest_skew is None:
            section += "*No 25-delta skew available.*\n\n"
        else:
            section += f"**{latest_skew.date}:** {latest_skew.value:+.2f} vol points "
            section += f"(z = {latest_skew.z_score:.2f})\n\n"
            section += self._chart(
                lambda p: plot_z_score(panel.skew_z, f"{panel.currency} 25d Skew", p),
                assets_dir, f"skew_{panel.currency.lower()}.png", "25-Delta Skew"
            )

        section += "### Variance Risk Premium\n\n"
        latest = panel.latest_vrp
        if latest is None:
            section += "*Not enough overlapping implied and realized volatility history.*\n\n"
        else:
            section += f"**{latest.date}:** IV {latest.iv:.2f} - RV {latest.rv:.2f} = **{latest.vrp:+.2f}**\n\n"
            section += self._chart(
                lambda p: plot_vrp(panel.vrp, panel.currency, p),
                assets_dir, f"vrp_{panel.currency.lower()}.png", "Variance Risk Premium"
            )
        return section + "---\n\n"

    def _generate_crypto_section(self, panel: Optional[CryptoPanel], assets_dir: Path) -> str:
        """Generate funding / open interest / liquidation section."""
        section = "## Crypto Derivatives\n\n"
        if panel is None:
            return section + "*No crypto derivatives data available.*\n\n---\n\n"

        if panel.open_interest:
            latest_oi = panel.open_interest[-1]
            section += "| Open Interest (USD bn) | Global | BTC | ETH | Others |\n"
            section += "|------------------------|--------|-----|-----|--------|\n"
            section += f"| {latest_oi.date} | {latest_oi.global_oi / 1e9:.2f} | {latest_oi.btc / 1e9:.2f} "
            section += f"| {latest_oi.eth / 1e9:.2f} | {latest_oi.others / 1e9:.2f} |\n\n"
            section += f"**Global OI z-score (30d):** {panel.latest_oi_z:.2f}\n\n"

        if panel.funding_rates:
            ranked = sorted(panel.funding_rates, key=lambda r: r.funding_rate, reverse=True)
            section += "### Funding Rates\n\n| Symbol | Rate (%) |\n|--------|----------|\n"
            for rate in ranked[:5] + ranked[-5:] if len(ranked) > 10 else ranked:
                section += f"| {rate.symbol} | {rate.funding_rate * 100:.4f} |\n"
            section += "\n"

        if panel.funding_heatmap.dates:
            section += self._chart(
                lambda p: plot_funding_heatmap(panel.funding_heatmap, p),
                assets_dir, "funding_heatmap.png", "Funding Heatmap"
            )

        if panel.liquidations:
            recent = panel.liquidations[-7:]
            longs = sum(liq.long_liquidations for liq in recent)
            shorts = sum(liq.short_liquidations for liq in recent)
            section += f"**Liquidations (7d):** longs ${longs / 1e6:,.0f}M, shorts ${shorts / 1e6:,.0f}M\n\n"

        return section + "---\n\n"

    def _generate_footer(self) -> str:
        return """
## Methodology Notes

- Z-scores use the population standard deviation of the preceding window; days before the window fills read 0.
- Percentile rank counts history strictly below today's value.
- COT index: trailing 156-week range of net positions; a flat window reads 50.
- Term structure: options with |delta| within 0.15 of 0.5, grouped by expiry, up to 180 days.
- 25-delta skew: call IV minus put IV at |delta| 0.25, z-scored over the preceding 30 samples.
- VRP: DVOL implied volatility minus 30-day realized volatility of the perpetual (365-day annualization).

---

*Report generated by quantdash*
"""
