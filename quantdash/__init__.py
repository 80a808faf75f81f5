"""
Market Dashboard Quant Layer

Fetches crypto derivatives, options volatility, macro indicators and
futures positioning data, and derives chart-ready series from it
(z-scores, percentile ranks, COT index, variance risk premium and
option term structure).
"""

__version__ = "0.1.0"
