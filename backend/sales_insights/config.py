"""
Analysis configuration: anchor date, currency and per-routine slices.

Settings are read from settings/analysis.yaml (or the file named by
SALES_INSIGHTS_CONFIG) and can be overridden from the environment.
"""

import os
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "settings" / "analysis.yaml"


class ConfigError(ValueError):
    """Raised when the analysis configuration is missing or malformed."""


@dataclass(frozen=True)
class PeriodComparisonConfig:
    country: str = "Germany"
    country_aliases: Tuple[str, ...] = ("german",)
    segment: str = "Reseller"


@dataclass(frozen=True)
class AnomalyConfig:
    country: str = "Germany"
    segment: str = "Reseller"
    window_days: int = 14
    baseline_returns: float = 0.03


@dataclass(frozen=True)
class SegmentComparisonConfig:
    segment: str = "Reseller"
    countries: Tuple[str, str] = ("Germany", "Sweden")


@dataclass(frozen=True)
class AnalysisConfig:
    """Everything the router needs to bind routine parameters."""
    anchor_date: date
    data_path: Path
    currency_symbol: str = "€"
    period_comparison: PeriodComparisonConfig = field(default_factory=PeriodComparisonConfig)
    anomaly_detection: AnomalyConfig = field(default_factory=AnomalyConfig)
    segment_comparison: SegmentComparisonConfig = field(default_factory=SegmentComparisonConfig)


def _parse_date(value: Any, key: str) -> date:
    # YAML reads "2024-11-05 00:00:00" as a datetime; records are compared by day
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ConfigError(f"{key} must be an ISO date (YYYY-MM-DD), got {value!r}")


def _resolve_path(value: str, base_dir: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return path


def _load_period(data: Dict[str, Any]) -> PeriodComparisonConfig:
    aliases = data.get("country_aliases") or []
    if not isinstance(aliases, list):
        raise ConfigError("period_comparison.country_aliases must be a list")
    return PeriodComparisonConfig(
        country=str(data.get("country", "Germany")),
        country_aliases=tuple(str(a) for a in aliases),
        segment=str(data.get("segment", "Reseller")),
    )


def _parse_number(value: Any, cast, key: str):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}")


def _load_anomaly(data: Dict[str, Any]) -> AnomalyConfig:
    window_days = _parse_number(data.get("window_days", 14), int, "anomaly_detection.window_days")
    baseline = _parse_number(
        data.get("baseline_returns", 0.03), float, "anomaly_detection.baseline_returns"
    )
    if window_days < 0:
        raise ConfigError("anomaly_detection.window_days must not be negative")
    if not 0 < baseline <= 1:
        raise ConfigError("anomaly_detection.baseline_returns must be in (0, 1]")
    return AnomalyConfig(
        country=str(data.get("country", "Germany")),
        segment=str(data.get("segment", "Reseller")),
        window_days=window_days,
        baseline_returns=baseline,
    )


def _load_segment(data: Dict[str, Any]) -> SegmentComparisonConfig:
    countries: List[str] = data.get("countries") or ["Germany", "Sweden"]
    if not isinstance(countries, list) or len(countries) != 2:
        raise ConfigError("segment_comparison.countries must list exactly two countries")
    return SegmentComparisonConfig(
        segment=str(data.get("segment", "Reseller")),
        countries=(str(countries[0]), str(countries[1])),
    )


def load_config(path: Optional[str] = None) -> AnalysisConfig:
    """
    Load the analysis configuration.

    Args:
        path: YAML file to read; defaults to SALES_INSIGHTS_CONFIG or the
            bundled settings/analysis.yaml

    Environment overrides: SALES_ANCHOR_DATE, SALES_DATA_PATH.

    Raises:
        ConfigError: file missing, not a mapping, or holding invalid values
    """
    config_path = Path(path or os.getenv("SALES_INSIGHTS_CONFIG") or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    anchor_raw = os.getenv("SALES_ANCHOR_DATE") or data.get("anchor_date")
    if not anchor_raw:
        raise ConfigError("anchor_date is required")

    # data_path in the YAML is relative to the package, an env override to the cwd
    env_data_path = os.getenv("SALES_DATA_PATH")
    if env_data_path:
        data_path = Path(env_data_path)
    else:
        data_path = _resolve_path(data.get("data_path", "data/sales.csv"), PACKAGE_DIR)

    config = AnalysisConfig(
        anchor_date=_parse_date(anchor_raw, "anchor_date"),
        data_path=data_path,
        currency_symbol=str(data.get("currency_symbol", "€")),
        period_comparison=_load_period(data.get("period_comparison") or {}),
        anomaly_detection=_load_anomaly(data.get("anomaly_detection") or {}),
        segment_comparison=_load_segment(data.get("segment_comparison") or {}),
    )
    logger.info(f"Loaded analysis config from {config_path} (anchor date {config.anchor_date})")
    return config


@lru_cache(maxsize=1)
def get_config() -> AnalysisConfig:
    """Process-wide configuration, loaded on first use."""
    return load_config()
