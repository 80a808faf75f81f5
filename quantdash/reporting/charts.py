"""
Chart generation for reports.

This module creates matplotlib charts for z-score regimes, the COT index,
the variance risk premium, the IV term structure and the funding heatmap.
"""

from pathlib import Path
from typing import Sequence
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from quantdash.entities import (
    WindowedStat, COTIndexRecord, VRPRecord, TermStructurePoint, FundingHeatmap
)


def _save(fig, save_path: str) -> None:
    plt.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def plot_z_score(stats: Sequence[WindowedStat], title: str, save_path: str) -> None:
    """
    Plot a level series above its rolling z-score.

    Args:
        stats: WindowedStat output of z_score()
        title: Chart title (e.g., "VIX")
        save_path: Path to save chart
    """
    dates = pd.to_datetime([s.date for s in stats])
    fig, (ax_level, ax_z) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax_level.plot(dates, [s.value for s in stats], linewidth=1.5, color="blue")
    ax_level.set_ylabel(title)
    ax_level.set_title(f"{title} and Rolling Z-Score")
    ax_level.grid(True, alpha=0.3)

    z = np.array([s.z_score for s in stats])
    ax_z.fill_between(dates, z, 0, where=z >= 0, color="red", alpha=0.4)
    ax_z.fill_between(dates, z, 0, where=z < 0, color="green", alpha=0.4)
    for level in (-2, 2):
        ax_z.axhline(y=level, color="black", linestyle="--", alpha=0.3)
    ax_z.set_xlabel("Date")
    ax_z.set_ylabel("Z-Score")
    ax_z.grid(True, alpha=0.3)

    _save(fig, save_path)


def plot_cot_index(index: Sequence[COTIndexRecord], contract: str, save_path: str) -> None:
    """Plot commercial and large speculator COT indices with 20/80 bands."""
    dates = pd.to_datetime([r.date for r in index])
    fig, ax = plt.subplots(figsize=(12, 6))

    ax.plot(dates, [r.commercial_index for r in index], label="Commercials", linewidth=2)
    ax.plot(dates, [r.large_spec_index for r in index], label="Large Speculators", linewidth=2)
    ax.axhspan(80, 100, color="red", alpha=0.08)
    ax.axhspan(0, 20, color="green", alpha=0.08)

    ax.set_ylim(0, 100)
    ax.set_xlabel("Date")
    ax.set_ylabel("COT Index")
    ax.set_title(f"COT Index: {contract}")
    ax.legend()
    ax.grid(True, alpha=0.3)

    _save(fig, save_path)


def plot_vrp(records: Sequence[VRPRecord], currency: str, save_path: str) -> None:
    """Plot implied vs realized volatility and their spread."""
    dates = pd.to_datetime([r.date for r in records])
    vrp = np.array([r.vrp for r in records])
    fig, (ax_vol, ax_vrp) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax_vol.plot(dates, [r.iv for r in records], label="Implied (DVOL)", linewidth=2)
    ax_vol.plot(dates, [r.rv for r in records], label="Realized (30d)", linewidth=2, linestyle="--")
    ax_vol.set_ylabel("Volatility (%)")
    ax_vol.set_title(f"{currency} Variance Risk Premium")
    ax_vol.legend()
    ax_vol.grid(True, alpha=0.3)

    ax_vrp.bar(dates, vrp, color=np.where(vrp >= 0, "green", "red"), width=1.0)
    ax_vrp.axhline(y=0, color="black", linestyle="--", alpha=0.3)
    ax_vrp.set_xlabel("Date")
    ax_vrp.set_ylabel("IV - RV")
    ax_vrp.grid(True, alpha=0.3)

    _save(fig, save_path)


def plot_term_structure(points: Sequence[TermStructurePoint], currency: str, save_path: str) -> None:
    """Plot ATM IV by tenor with the min/max band and interquartile range."""
    x = np.arange(len(points))
    fig, ax = plt.subplots(figsize=(10, 6))

    ax.fill_between(x, [p.min for p in points], [p.max for p in points], alpha=0.15, label="Range")
    ax.fill_between(
        x, [p.percentile25 for p in points], [p.percentile75 for p in points],
        alpha=0.3, label="25th-75th"
    )
    ax.plot(x, [p.median for p in points], linestyle=":", color="gray", label="Median")
    ax.plot(x, [p.current for p in points], marker="o", linewidth=2, color="blue", label="Current")

    ax.set_xticks(x)
    ax.set_xticklabels([p.tenor for p in points])
    ax.set_xlabel("Tenor")
    ax.set_ylabel("ATM Implied Volatility (%)")
    ax.set_title(f"{currency} IV Term Structure")
    ax.legend()
    ax.grid(True, alpha=0.3)

    _save(fig, save_path)


def plot_funding_heatmap(heatmap: FundingHeatmap, save_path: str) -> None:
    """Plot funding rates (percent) as a symbol x date heatmap."""
    frame = heatmap.to_frame()
    fig, ax = plt.subplots(figsize=(14, 8))

    bound = float(np.abs(frame.values).max()) if frame.size else 1.0
    image = ax.imshow(frame.T.values, aspect="auto", cmap="RdYlGn", vmin=-bound, vmax=bound)
    ax.set_yticks(np.arange(len(frame.columns)))
    ax.set_yticklabels(frame.columns)
    step = max(1, len(frame.index) // 10)
    ax.set_xticks(np.arange(0, len(frame.index), step))
    ax.set_xticklabels(frame.index[::step], rotation=45, ha="right")
    ax.set_title("Funding Rates (%)")
    fig.colorbar(image, ax=ax)

    _save(fig, save_path)


def create_report_assets_dir(report_dir: Path) -> Path:
    """
    Create assets directory for report charts.

    Args:
        report_dir: Report directory path

    Returns:
        Path to assets directory
    """
    assets_dir = report_dir / "assets"
    assets_dir.mkdir(parents=True, exist_ok=True)
    return assets_dir
