"""
Runtime settings.

Settings come from three layers, later ones winning: built-in defaults,
an optional YAML file, and environment variables (API keys and a few
switches).
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml
from quantdash.errors import InvalidArgumentError

DEFAULT_CONFIG_FILE = "quantdash.yaml"

_ENV_OVERRIDES = {
    "COINALYZE_API_KEY": "coinalyze_api_key",
    "QUANTDASH_CACHE_DIR": "cache_dir",
    "QUANTDASH_SYNTHETIC": "synthetic",
    "QUANTDASH_SEED": "seed",
}


@dataclass(frozen=True)
class Settings:
    """
    Dashboard settings.

    Attributes:
        coinalyze_api_key: Coinalyze key, sent as the "api-key" header
        cache_dir: Directory for the payload cache
        cache_max_age_seconds: Payload cache lifetime
        synthetic: Use deterministic mock data instead of live APIs
        fallback_to_synthetic: Serve mock data when a live fetch fails
        seed: Seed for synthetic data
        start_date: First date of macro series
        zscore_lookback: Trailing window for macro z-scores
        oi_zscore_lookback: Trailing window for the open interest z-score
        skew_zscore_lookback: Trailing window for the 25-delta skew z-score
        cot_lookback_weeks: Window for the COT index
        cot_limit: Number of weekly COT reports fetched
        vrp_days: History length for the variance risk premium
        rv_window: Returns per realized-volatility estimate
        currency: Default Deribit currency
        timeout_seconds: HTTP timeout
        report_dir: Directory for generated reports
    """
    coinalyze_api_key: Optional[str] = None
    cache_dir: str = ".cache"
    cache_max_age_seconds: float = 300.0
    synthetic: bool = False
    fallback_to_synthetic: bool = True
    seed: int = 42
    start_date: str = "2020-01-01"
    zscore_lookback: int = 252
    oi_zscore_lookback: int = 30
    skew_zscore_lookback: int = 30
    cot_lookback_weeks: int = 156
    cot_limit: int = 156
    vrp_days: int = 365
    rv_window: int = 30
    currency: str = "ETH"
    timeout_seconds: float = 30.0
    report_dir: str = "reports"


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw (often string) value to the type of the named field."""
    default = getattr(Settings, name)
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def load_settings(path: Optional[Union[str, Path]] = None, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from defaults, a YAML file and the environment.

    Args:
        path: YAML file; if None, ./quantdash.yaml is used when present
        env: Environment mapping (defaults to os.environ)

    Returns:
        Settings instance

    Raises:
        InvalidArgumentError: If the file names unknown keys or is not a mapping
        FileNotFoundError: If an explicit path does not exist
    """
    env = os.environ if env is None else env
    known = {f.name for f in fields(Settings)}
    overrides: Dict[str, Any] = {}

    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)
    if path is not None or config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise InvalidArgumentError(f"{config_path} must contain a mapping")
        unknown = set(data) - known
        if unknown:
            raise InvalidArgumentError(f"unknown settings in {config_path}: {sorted(unknown)}")
        overrides.update({k: _coerce(k, v) for k, v in data.items()})

    for env_name, field_name in _ENV_OVERRIDES.items():
        if env.get(env_name):
            overrides[field_name] = _coerce(field_name, env[env_name])

    return replace(Settings(), **overrides)
