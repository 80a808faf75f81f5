"""
Command-line interface for the dashboard.

This module provides CLI commands that print each dashboard panel and
write the full markdown report.
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional
from quantdash.config import Settings, load_settings
from quantdash.dashboard import (
    build_traditional_panel, build_cot_panel, build_options_panel,
    build_crypto_panel, create_source
)
from quantdash.data_sources.cot import COT_CONTRACTS
from quantdash.reporting.report import Report
from quantdash.errors import DashboardError
from quantdash.logging_config import configure_logging


def _settings_from_args(args) -> Settings:
    settings = load_settings(args.config)
    overrides = {}
    if args.synthetic:
        overrides["synthetic"] = True
    if args.seed is not None:
        overrides["seed"] = args.seed
    return replace(settings, **overrides)


def traditional_command(args, settings: Settings):
    """Print VIX and credit spread regime."""
    print(f"Loading traditional markets since {settings.start_date}...")
    with create_source(settings) as source:
        panel = build_traditional_panel(source, settings)

    if panel.vix.latest is not None:
        print(f"  VIX: {panel.vix.latest.value:.2f} (z = {panel.latest_vix_z:.2f}, "
              f"{panel.vix_percentile:.1f}th percentile)")
    if panel.credit:
        print(f"  HY - IG spread: {panel.credit[-1].spread:.2f} (z = {panel.latest_credit_z:.2f}, "
              f"{panel.credit_percentile:.1f}th percentile)")
    for point in panel.vix_term_structure:
        print(f"    VIX {point.tenor:>3}: {point.value:.2f}")
    if panel.sp500_performance:
        print(f"  S&P 500: {panel.sp500_performance[-1].performance:+.2f}% since {panel.sp500_performance[0].date}")
    return panel


def cot_command(args, settings: Settings):
    """Print the COT index for a contract."""
    contract = args.contract.upper()
    print(f"Loading COT reports for {contract} ({settings.cot_limit} weeks)...")
    with create_source(settings) as source:
        panel = build_cot_panel(source, contract, settings)

    if panel.latest is None:
        print("  No COT reports returned")
        return panel
    record = panel.records[-1]
    print(f"  Report date: {panel.latest.date}")
    print(f"  Commercials net: {record.commercial_net:,} (index {panel.latest.commercial_index:.2f})")
    print(f"  Large specs net: {record.large_spec_net:,} (index {panel.latest.large_spec_index:.2f})")
    return panel


def options_command(args, settings: Settings):
    """Print the ATM term structure, 25-delta skew and variance risk premium."""
    currency = (args.currency or settings.currency).upper()
    print(f"Loading {currency} options...")
    with create_source(settings) as source:
        panel = build_options_panel(source, currency, settings)

    print(f"  Index price: ${panel.underlying_price:,.2f}")
    print(f"  Term structure ({len(panel.term_structure)} expiries):")
    for point in panel.term_structure:
        print(f"    {point.tenor:>4} ({point.days:3d}d): {point.current:.2f}")
    if panel.latest_skew_z is not None:
        skew = panel.latest_skew_z
        print(f"  25d skew {skew.date}: {skew.value:+.2f} (z = {skew.z_score:.2f})")
    if panel.latest_vrp is not None:
        vrp = panel.latest_vrp
        print(f"  VRP {vrp.date}: IV {vrp.iv:.2f} - RV {vrp.rv:.2f} = {vrp.vrp:+.2f}")
    else:
        print("  VRP: not enough overlapping history")
    return panel


def crypto_command(args, settings: Settings):
    """Print open interest, funding and liquidations."""
    print("Loading crypto derivatives...")
    with create_source(settings) as source:
        panel = build_crypto_panel(source, settings=settings)

    if panel.open_interest:
        oi = panel.open_interest[-1]
        print(f"  Global OI: ${oi.global_oi / 1e9:.2f}bn (BTC {oi.btc / 1e9:.2f}, ETH {oi.eth / 1e9:.2f}), "
              f"z = {panel.latest_oi_z:.2f}")
    if panel.funding_rates:
        top = max(panel.funding_rates, key=lambda r: r.funding_rate)
        bottom = min(panel.funding_rates, key=lambda r: r.funding_rate)
        print(f"  Funding high: {top.symbol} {top.funding_rate * 100:.4f}%")
        print(f"  Funding low: {bottom.symbol} {bottom.funding_rate * 100:.4f}%")
    if panel.liquidations:
        last = panel.liquidations[-1]
        print(f"  Liquidations (last day): ${last.total_liquidations / 1e6:,.0f}M")
    return panel


def report_command(args, settings: Settings):
    """Build every panel and write the markdown report."""
    currency = (args.currency or settings.currency).upper()
    print("Building dashboard report...")
    with create_source(settings) as source:
        print("  Traditional markets...")
        traditional = build_traditional_panel(source, settings)
        print(f"  COT ({args.contract.upper()})...")
        cot = build_cot_panel(source, args.contract, settings)
        print(f"  Options ({currency})...")
        options = build_options_panel(source, currency, settings)
        print("  Crypto derivatives...")
        crypto = build_crypto_panel(source, settings=settings)

    report = Report(output_dir=args.output or settings.report_dir)
    path = report.generate_report(traditional=traditional, cot=cot, options=options, crypto=crypto)
    print(f"\n✓ Report written to {path}")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quant Market Dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", default=None, help="YAML settings file (default: ./quantdash.yaml)")
    parser.add_argument("--synthetic", action="store_true", help="Use seeded mock data instead of live APIs")
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic data")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logs")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("traditional", help="VIX and credit spread regime")

    cot_parser = subparsers.add_parser("cot", help="Commitment of Traders index")
    cot_parser.add_argument("contract", choices=sorted(COT_CONTRACTS), type=str.upper, help="Contract key")

    options_parser = subparsers.add_parser("options", help="IV term structure and variance risk premium")
    options_parser.add_argument("--currency", choices=["BTC", "ETH"], type=str.upper, help="Deribit currency")

    subparsers.add_parser("crypto", help="Funding, open interest and liquidations")

    report_parser = subparsers.add_parser("report", help="Write the markdown dashboard report")
    report_parser.add_argument("--contract", default="EUR", type=str.upper, choices=sorted(COT_CONTRACTS),
                               help="COT contract (default: EUR)")
    report_parser.add_argument("--currency", choices=["BTC", "ETH"], type=str.upper, help="Deribit currency")
    report_parser.add_argument("--output", default=None, help="Report directory")

    return parser


COMMANDS = {
    "traditional": traditional_command,
    "cot": cot_command,
    "options": options_command,
    "crypto": crypto_command,
    "report": report_command,
}


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        sys.exit(1)

    configure_logging(verbose=args.verbose)
    try:
        settings = _settings_from_args(args)
        COMMANDS[args.command](args, settings)
    except DashboardError as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
