"""
Record store: loads the bundled sales fixture into immutable records and
provides the arithmetic every analytics routine shares.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import pandas as pd

from sales_insights.config import get_config

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "country", "segment", "product", "revenue", "returns")

# Extension → parser mapping
_EXT_MAP = {
    ".csv": "csv",
    ".json": "json",
}


class RecordStoreError(ValueError):
    """Raised when the sales fixture cannot be turned into records."""


@dataclass(frozen=True)
class SalesRecord:
    """One row of the static sales dataset."""
    date: date
    country: str
    segment: str
    product: str
    revenue: float
    returns: float  # per-record return rate in [0, 1]


def _normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case, strip, replace spaces/hyphens with underscores."""
    df.columns = [
        re.sub(r"[^a-z0-9_]", "_", str(col).strip().lower()).strip("_")
        for col in df.columns
    ]
    return df


def _coerce_types(df: pd.DataFrame) -> pd.DataFrame:
    """Parse dates to calendar days and measures to floats; bad values become NaN/NaT."""
    df["date"] = pd.to_datetime(df["date"], errors="coerce").dt.date
    df["revenue"] = pd.to_numeric(df["revenue"], errors="coerce")
    df["returns"] = pd.to_numeric(df["returns"], errors="coerce")
    for col in ("country", "segment", "product"):
        df[col] = df[col].astype("string").str.strip().replace("", pd.NA)
    return df


def _parse(path: Path) -> pd.DataFrame:
    fmt = _EXT_MAP.get(path.suffix.lower())
    if not fmt:
        raise RecordStoreError(
            f"Unsupported fixture type '{path.suffix}'. "
            f"Supported: {', '.join(sorted(_EXT_MAP))}"
        )
    try:
        if fmt == "csv":
            return pd.read_csv(path)
        return pd.read_json(path, orient="records", convert_dates=False)
    except Exception as e:
        raise RecordStoreError(f"Failed to parse {path}: {e}") from e


def load_records(path: Path | str) -> Tuple[SalesRecord, ...]:
    """
    Load the sales fixture at `path` into an immutable tuple of records.

    Storage order is preserved. Every row must carry all six fields,
    a non-negative revenue and a returns rate in [0, 1].

    Raises:
        RecordStoreError: missing file, unsupported format, missing columns
            or invalid values
    """
    path = Path(path)
    if not path.exists():
        raise RecordStoreError(f"Sales fixture not found: {path}")

    df = _normalise_columns(_parse(path))
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise RecordStoreError(f"{path.name} is missing required columns: {missing}")

    df = _coerce_types(df[list(REQUIRED_COLUMNS)].copy())

    incomplete = df[df.isna().any(axis=1)]
    if not incomplete.empty:
        rows = [int(i) + 1 for i in incomplete.index[:5]]
        raise RecordStoreError(f"{path.name}: rows with missing or unparseable fields: {rows}")
    if (df["revenue"] < 0).any():
        raise RecordStoreError(f"{path.name}: revenue must not be negative")
    if ((df["returns"] < 0) | (df["returns"] > 1)).any():
        raise RecordStoreError(f"{path.name}: returns must be a rate between 0 and 1")

    records = tuple(
        SalesRecord(
            date=row.date,
            country=row.country,
            segment=row.segment,
            product=row.product,
            revenue=float(row.revenue),
            returns=float(row.returns),
        )
        for row in df.itertuples(index=False)
    )
    logger.info(f"Loaded {len(records)} sales records from {path.name}")
    return records


@lru_cache(maxsize=1)
def get_records() -> Tuple[SalesRecord, ...]:
    """The process-wide record store; loaded once, never mutated."""
    return load_records(get_config().data_path)


# ── Filters ────────────────────────────────────────────────────────────

def filter_by_date_range(records: Iterable[SalesRecord], start: date, end: date) -> list[SalesRecord]:
    """Records dated within [start, end], inclusive, in input order."""
    return [r for r in records if start <= r.date <= end]


def filter_records(
    records: Iterable[SalesRecord],
    country: Optional[str] = None,
    segment: Optional[str] = None,
) -> list[SalesRecord]:
    """Exact-label slice by country and/or segment."""
    return [
        r for r in records
        if (country is None or r.country == country)
        and (segment is None or r.segment == segment)
    ]


# ── Aggregates ─────────────────────────────────────────────────────────

def total_revenue(records: Sequence[SalesRecord]) -> float:
    return float(sum(r.revenue for r in records))


def average_returns(records: Sequence[SalesRecord]) -> float:
    """Mean return rate; 0 for an empty sequence."""
    if not records:
        return 0.0
    return sum(r.returns for r in records) / len(records)


def percent_change(current: float, previous: float) -> float:
    """
    (current - previous) / previous * 100.

    A zero baseline has no defined change; it saturates to 0.0 and is
    logged so the caller's text stays well-formed.
    """
    if previous == 0:
        logger.warning(f"percent change from a zero baseline (current={current}); reporting 0.0")
        return 0.0
    return (current - previous) / previous * 100


# ── Calendar helpers ───────────────────────────────────────────────────

def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month(day: date) -> Tuple[date, date]:
    """First and last day of the calendar month before `day`'s month."""
    last = month_start(day) - timedelta(days=1)
    return last.replace(day=1), last


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of `day`'s calendar month."""
    first = month_start(day)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return first, next_first - timedelta(days=1)
