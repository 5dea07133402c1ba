from datetime import date

import pytest

from sales_insights.analytics import (
    analyze_period_change,
    analyze_segment_comparison,
    detect_unusual_patterns,
    summarize_revenue_trend,
)
from sales_insights.records import SalesRecord


def test_period_change_summary(sample_records, anchor):
    result = analyze_period_change(sample_records, anchor)
    assert "Germany sales in November are down 45.8% compared to October" in result.text
    assert "(€650 vs €1,200)" in result.text
    assert "Reseller segment" in result.text
    assert "returns increased from 6.0% to 12.5%" in result.text


def test_period_change_chart_is_daily_and_ascending(sample_records, anchor):
    result = analyze_period_change(sample_records, anchor)
    assert [p.label for p in result.chart_data] == ["Nov 1", "Nov 3"]
    assert [p.value for p in result.chart_data] == [550.0, 100.0]


def test_period_change_respects_country_parameter(sample_records, anchor):
    result = analyze_period_change(sample_records, anchor, country="Sweden", segment="Direct")
    assert result.text.startswith("Sweden sales in November are up")
    assert [p.label for p in result.chart_data] == ["Nov 3"]


def test_period_change_with_empty_previous_period(anchor):
    records = [SalesRecord(date(2024, 11, 2), "Germany", "Reseller", "Widget Pro", 100.0, 0.1)]
    result = analyze_period_change(records, anchor)
    assert result.text
    assert "up 0.0%" in result.text


def test_unusual_patterns_flags_severe_returns(sample_records, anchor):
    result = detect_unusual_patterns(sample_records, anchor)
    assert "Anomaly detected in the last 14 days" in result.text
    assert "averaging 14.0%" in result.text
    assert "4.7x the baseline of ~3%" in result.text
    assert [p.label for p in result.chart_data] == ["Oct 25", "Nov 1", "Nov 3"]
    assert [p.value for p in result.chart_data] == [10, 13, 20]


def test_unusual_patterns_window_starts_fourteen_days_back(anchor):
    records = [
        SalesRecord(date(2024, 10, 21), "Germany", "Reseller", "Widget Pro", 10.0, 0.9),
        SalesRecord(date(2024, 10, 22), "Germany", "Reseller", "Widget Pro", 10.0, 0.03),
    ]
    result = detect_unusual_patterns(records, anchor)
    assert [p.label for p in result.chart_data] == ["Oct 22"]
    assert "Nothing unusual" in result.text


def test_unusual_patterns_elevated_band(anchor):
    records = [SalesRecord(date(2024, 11, 1), "Germany", "Reseller", "Widget Pro", 10.0, 0.06)]
    result = detect_unusual_patterns(records, anchor)
    assert result.text.startswith("Worth watching")
    assert "2.0x" in result.text


def test_unusual_patterns_with_no_matching_records(sample_records, anchor):
    result = detect_unusual_patterns(sample_records, anchor, country="Norway")
    assert "No Norway Reseller records" in result.text
    assert result.chart_data == []


def test_unusual_patterns_chart_uses_whole_percentage_points(anchor):
    records = [SalesRecord(date(2024, 11, 1), "Germany", "Reseller", "Widget Pro", 10.0, 0.123)]
    result = detect_unusual_patterns(records, anchor)
    assert [(p.label, p.value) for p in result.chart_data] == [("Nov 1", 12)]
    assert "averaging 12.3%" in result.text


def test_unusual_patterns_rejects_non_positive_baseline(sample_records, anchor):
    with pytest.raises(ValueError, match="baseline_returns"):
        detect_unusual_patterns(sample_records, anchor, baseline_returns=0)


def test_segment_comparison_has_three_fixed_points(sample_records):
    result = analyze_segment_comparison(sample_records, date(2024, 10, 1))
    assert [p.label for p in result.chart_data] == ["Germany", "Sweden", "Total"]
    assert [p.value for p in result.chart_data] == [-20, 10, -10]


def test_segment_comparison_text_names_driver(sample_records):
    result = analyze_segment_comparison(sample_records, date(2024, 10, 1))
    assert "Reseller segment is down 10.0% in October vs September" in result.text
    assert "(€1,350 vs €1,500)" in result.text
    assert "Germany accounts for most of this decline at 20.0%" in result.text
    assert "Sweden remained relatively stable at +10.0%" in result.text


def test_segment_comparison_orders_points_by_argument(sample_records):
    result = analyze_segment_comparison(sample_records, date(2024, 10, 1), countries=("Sweden", "Germany"))
    assert [p.label for p in result.chart_data] == ["Sweden", "Germany", "Total"]
    assert "Germany accounts for most of this decline" in result.text


def test_segment_comparison_compares_adjacent_months(sample_records):
    # November vs October, not November a year earlier
    result = analyze_segment_comparison(sample_records, date(2024, 11, 20))
    assert "in November vs October" in result.text


def test_segment_comparison_decline_outside_compared_markets():
    records = [
        SalesRecord(date(2024, 9, 5), "Germany", "Reseller", "Widget Pro", 100.0, 0.0),
        SalesRecord(date(2024, 9, 5), "Sweden", "Reseller", "Widget Pro", 100.0, 0.0),
        SalesRecord(date(2024, 9, 5), "Norway", "Reseller", "Widget Pro", 1000.0, 0.0),
        SalesRecord(date(2024, 10, 5), "Germany", "Reseller", "Widget Pro", 110.0, 0.0),
        SalesRecord(date(2024, 10, 5), "Sweden", "Reseller", "Widget Pro", 120.0, 0.0),
        SalesRecord(date(2024, 10, 5), "Norway", "Reseller", "Widget Pro", 200.0, 0.0),
    ]
    result = analyze_segment_comparison(records, date(2024, 10, 1))
    assert "Reseller segment is down 64.2% in October vs September" in result.text
    assert "Neither Germany nor Sweden drove this decline" in result.text
    assert "Germany moved +10.0% and Sweden +20.0%" in result.text
    assert "Neither market declined" not in result.text
    assert [p.value for p in result.chart_data] == [10, 20, -64]


def test_revenue_trend(sample_records):
    result = summarize_revenue_trend(sample_records)
    assert [p.label for p in result.chart_data] == ["Sep", "Oct", "Nov"]
    assert [p.value for p in result.chart_data] == [1900, 1750, 1649]
    assert "Total revenue over the period is €5,299" in result.text
    assert "monthly average of €1,766" in result.text
    assert "declining trend from Sep through Nov" in result.text


def test_revenue_trend_chart_sums_to_total_within_rounding(sample_records):
    result = summarize_revenue_trend(sample_records)
    total = sum(r.revenue for r in sample_records)
    assert abs(sum(p.value for p in result.chart_data) - total) <= len(result.chart_data)


def test_revenue_trend_spans_years_in_order():
    records = [
        SalesRecord(date(2025, 1, 3), "Germany", "Direct", "Widget Pro", 100.0, 0.0),
        SalesRecord(date(2024, 12, 3), "Germany", "Direct", "Widget Pro", 102.0, 0.0),
    ]
    result = summarize_revenue_trend(records)
    assert [p.label for p in result.chart_data] == ["Dec", "Jan"]
    assert "broadly flat" in result.text


def test_revenue_trend_without_records():
    result = summarize_revenue_trend([])
    assert result.chart_data == []
    assert "monthly average of €0" in result.text
