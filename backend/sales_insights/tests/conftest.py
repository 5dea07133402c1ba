from datetime import date
from pathlib import Path

import pytest

from sales_insights.config import AnalysisConfig, get_config
from sales_insights.records import SalesRecord, get_records


def _rec(day, country, segment, revenue, returns, product="Widget Pro"):
    return SalesRecord(
        date=date.fromisoformat(day),
        country=country,
        segment=segment,
        product=product,
        revenue=revenue,
        returns=returns,
    )


@pytest.fixture
def anchor():
    return date(2024, 11, 5)


@pytest.fixture
def sample_records():
    # storage order is deliberately not chronological
    return (
        _rec("2024-11-03", "Germany", "Reseller", 100.0, 0.20),
        _rec("2024-09-10", "Germany", "Reseller", 1000.0, 0.02),
        _rec("2024-11-01", "Germany", "Reseller", 300.0, 0.12),
        _rec("2024-09-10", "Sweden", "Reseller", 500.0, 0.02),
        _rec("2024-09-20", "Germany", "Direct", 400.0, 0.01),
        _rec("2024-10-05", "Germany", "Reseller", 600.0, 0.05),
        _rec("2024-10-05", "Germany", "Direct", 400.0, 0.03),
        _rec("2024-10-15", "Sweden", "Reseller", 550.0, 0.02),
        _rec("2024-10-25", "Germany", "Reseller", 200.0, 0.10),
        _rec("2024-11-01", "Germany", "Direct", 200.0, 0.04),
        _rec("2024-11-03", "Sweden", "Direct", 999.0, 0.01),
        _rec("2024-11-01", "Germany", "Reseller", 50.0, 0.14, product="Service Plan"),
    )


@pytest.fixture
def sample_config(anchor, tmp_path):
    return AnalysisConfig(anchor_date=anchor, data_path=Path(tmp_path / "unused.csv"))


@pytest.fixture
def clear_caches():
    get_config.cache_clear()
    get_records.cache_clear()
    yield
    get_config.cache_clear()
    get_records.cache_clear()
