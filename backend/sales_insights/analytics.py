"""
Analytics routines: each one filters and aggregates the record store into an
InsightResult (a paragraph plus a chart series).

All routines are pure functions of their inputs. Relative windows are anchored
on an explicit anchor date, never on the clock, because the dataset is
historical.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Sequence, Tuple

from sales_insights.formatting import (
    DEFAULT_CURRENCY,
    format_change,
    format_currency,
    format_percent,
)
from sales_insights.insight_models import ChartDataPoint, InsightResult
from sales_insights.records import (
    SalesRecord,
    average_returns,
    filter_by_date_range,
    filter_records,
    month_bounds,
    month_start,
    percent_change,
    previous_month,
    total_revenue,
)

logger = logging.getLogger(__name__)

# Severity multiples of the baseline returns rate
SEVERE_MULTIPLE = 3.0
ELEVATED_MULTIPLE = 1.5

# Month-over-month moves smaller than this read as "flat"
FLAT_TREND_PERCENT = 5.0


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def _daily_revenue(records: Sequence[SalesRecord]) -> List[ChartDataPoint]:
    totals: Dict[date, float] = defaultdict(float)
    for r in records:
        totals[r.date] += r.revenue
    return [ChartDataPoint(label=_day_label(d), value=totals[d]) for d in sorted(totals)]


def _daily_returns_percent(records: Sequence[SalesRecord]) -> List[ChartDataPoint]:
    by_day: Dict[date, List[float]] = defaultdict(list)
    for r in records:
        by_day[r.date].append(r.returns)
    return [
        ChartDataPoint(label=_day_label(d), value=round(sum(v) / len(v) * 100))
        for d, v in sorted(by_day.items())
    ]


def analyze_period_change(
    records: Sequence[SalesRecord],
    anchor: date,
    *,
    country: str = "Germany",
    segment: str = "Reseller",
    currency: str = DEFAULT_CURRENCY,
) -> InsightResult:
    """
    Month-to-date revenue for one country against the full previous month.

    The current period runs from the first of the anchor month through the
    anchor; the previous period is the whole prior calendar month. The
    segment breakdown and the shift in average returns explain the change.

    Args:
        records: Record store to read
        anchor: Fixed "today" of the dataset
        country: Market to analyse
        segment: Segment whose change is reported as the driver

    Returns:
        InsightResult with one chart point per day present in the current period
    """
    prev_start, prev_end = previous_month(anchor)
    country_rows = filter_records(records, country=country)
    current = filter_by_date_range(country_rows, month_start(anchor), anchor)
    previous = filter_by_date_range(country_rows, prev_start, prev_end)

    current_revenue = total_revenue(current)
    previous_revenue = total_revenue(previous)
    change = percent_change(current_revenue, previous_revenue)

    segment_change = percent_change(
        total_revenue(filter_records(current, segment=segment)),
        total_revenue(filter_records(previous, segment=segment)),
    )

    current_returns = average_returns(current)
    previous_returns = average_returns(previous)

    logger.debug(
        f"period change {country}: {current_revenue:.2f} vs {previous_revenue:.2f} ({change:.1f}%)"
    )

    direction = "down" if change < 0 else "up"
    segment_direction = "decline" if segment_change < 0 else "increase"
    returns_direction = "increased" if current_returns > previous_returns else "decreased"
    text = (
        f"{country} sales in {anchor:%B} are {direction} {abs(change):.1f}% compared to "
        f"{prev_start:%B} ({format_currency(current_revenue, currency)} vs "
        f"{format_currency(previous_revenue, currency)}). The main driver is a "
        f"{abs(segment_change):.1f}% {segment_direction} in the {segment} segment. "
        f"Additionally, returns {returns_direction} from {format_percent(previous_returns)} "
        f"to {format_percent(current_returns)}"
    )
    if current_returns > previous_returns:
        text += (
            ", suggesting potential quality or satisfaction issues that are impacting "
            "sales performance."
        )
    else:
        text += ", so returns are not adding pressure on sales."

    return InsightResult(text=text, chart_data=_daily_revenue(current))


def detect_unusual_patterns(
    records: Sequence[SalesRecord],
    anchor: date,
    *,
    country: str = "Germany",
    segment: str = "Reseller",
    window_days: int = 14,
    baseline_returns: float = 0.03,
) -> InsightResult:
    """
    Flag elevated return rates for one country/segment over a trailing window.

    This is a fixed-threshold heuristic: the window average is compared with
    a hard-coded baseline rate. No variance or z-score is computed.

    The chart carries the per-day average returns rate scaled to whole percent.

    Raises:
        ValueError: baseline_returns is not positive
    """
    if baseline_returns <= 0:
        raise ValueError(f"baseline_returns must be positive, got {baseline_returns}")
    start = anchor - timedelta(days=window_days)
    window = filter_records(filter_by_date_range(records, start, anchor), country=country, segment=segment)
    chart = _daily_returns_percent(window)

    if not window:
        text = (
            f"No {country} {segment} records fell in the last {window_days} days "
            f"({start:%b} {start.day} to {anchor:%b} {anchor.day}), so there is nothing "
            f"unusual to report for that slice."
        )
        return InsightResult(text=text, chart_data=chart)

    observed = average_returns(window)
    multiple = observed / baseline_returns
    baseline_text = f"~{baseline_returns * 100:g}%"
    logger.debug(f"anomaly check {country}/{segment}: {observed:.4f} = {multiple:.1f}x baseline")

    if multiple >= SEVERE_MULTIPLE:
        text = (
            f"Anomaly detected in the last {window_days} days: {country}'s {segment} segment "
            f"shows significantly elevated return rates (averaging {format_percent(observed)}), "
            f"about {multiple:.1f}x the baseline of {baseline_text}. Recommend investigating "
            f"product quality issues, shipping problems, or changes in customer expectations. "
            f"High returns typically correlate with reduced reorders, so this is likely to "
            f"weigh on revenue."
        )
    elif multiple >= ELEVATED_MULTIPLE:
        text = (
            f"Worth watching over the last {window_days} days: {country}'s {segment} segment "
            f"has elevated return rates (averaging {format_percent(observed)}), about "
            f"{multiple:.1f}x the baseline of {baseline_text}. Not yet severe, but the trend "
            f"should be monitored."
        )
    else:
        text = (
            f"Nothing unusual in the last {window_days} days: {country}'s {segment} segment "
            f"averages {format_percent(observed)} returns, {multiple:.1f}x the baseline of "
            f"{baseline_text}, which is within the normal range."
        )
    return InsightResult(text=text, chart_data=chart)


def analyze_segment_comparison(
    records: Sequence[SalesRecord],
    month: date,
    *,
    segment: str = "Reseller",
    countries: Tuple[str, str] = ("Germany", "Sweden"),
    currency: str = DEFAULT_CURRENCY,
) -> InsightResult:
    """
    Segment revenue in `month` against the month before, split by two countries.

    Answers "year-over-year" questions, but the comparison window is the
    immediately preceding calendar month, not the same month a year earlier.

    Returns:
        InsightResult with exactly three chart points: country A, country B, "Total"
    """
    cur_start, cur_end = month_bounds(month)
    prev_start, prev_end = previous_month(month)
    seg_rows = filter_records(records, segment=segment)
    current = filter_by_date_range(seg_rows, cur_start, cur_end)
    previous = filter_by_date_range(seg_rows, prev_start, prev_end)

    current_total = total_revenue(current)
    previous_total = total_revenue(previous)
    overall = percent_change(current_total, previous_total)

    by_country = {
        c: percent_change(
            total_revenue(filter_records(current, country=c)),
            total_revenue(filter_records(previous, country=c)),
        )
        for c in countries
    }
    first, second = countries
    chart = [
        ChartDataPoint(label=first, value=round(by_country[first])),
        ChartDataPoint(label=second, value=round(by_country[second])),
        ChartDataPoint(label="Total", value=round(overall)),
    ]

    driver, stable = sorted(countries, key=lambda c: by_country[c])
    direction = "down" if overall < 0 else "up"
    text = (
        f"{segment} segment is {direction} {abs(overall):.1f}% in {cur_start:%B} vs "
        f"{prev_start:%B} ({format_currency(current_total, currency)} vs "
        f"{format_currency(previous_total, currency)}). "
    )
    if by_country[driver] < 0:
        text += (
            f"{driver} accounts for most of this decline at {abs(by_country[driver]):.1f}%, "
            f"while {stable} remained relatively stable at {format_change(by_country[stable])}. "
            f"The {driver} {segment.lower()} channel appears to be facing specific challenges, "
            f"potentially related to elevated return rates in that market."
        )
    elif overall < 0:
        # the decline sits in markets outside the compared pair
        text += (
            f"Neither {first} nor {second} drove this decline: {driver} moved "
            f"{format_change(by_country[driver])} and {stable} "
            f"{format_change(by_country[stable])}, so the drop comes from other markets."
        )
    else:
        text += (
            f"Neither market declined: {driver} moved {format_change(by_country[driver])} "
            f"and {stable} {format_change(by_country[stable])}."
        )
    return InsightResult(text=text, chart_data=chart)


def summarize_revenue_trend(
    records: Sequence[SalesRecord],
    *,
    currency: str = DEFAULT_CURRENCY,
) -> InsightResult:
    """Monthly revenue across all markets and segments, oldest month first."""
    monthly: Dict[Tuple[int, int], float] = defaultdict(float)
    for r in records:
        monthly[(r.date.year, r.date.month)] += r.revenue

    months = sorted(monthly)
    chart = [
        ChartDataPoint(label=f"{date(y, m, 1):%b}", value=round(monthly[(y, m)]))
        for y, m in months
    ]
    total = sum(monthly.values())
    average = total / len(months) if months else 0.0

    if len(months) < 2:
        remark = "There is not enough history yet to call a trend."
    else:
        first_label, last_label = chart[0].label, chart[-1].label
        move = percent_change(monthly[months[-1]], monthly[months[0]])
        if move <= -FLAT_TREND_PERCENT:
            remark = (
                f"We can see a declining trend from {first_label} through {last_label} "
                f"({format_change(move)}), driven mainly by the weaker markets."
            )
        elif move >= FLAT_TREND_PERCENT:
            remark = f"Revenue is growing from {first_label} through {last_label} ({format_change(move)})."
        else:
            remark = f"Revenue has been broadly flat from {first_label} through {last_label}."

    text = (
        f"Here's the revenue trend across all markets and segments. Total revenue over the "
        f"period is {format_currency(total, currency)}, with a monthly average of "
        f"{format_currency(average, currency)}. {remark}"
    )
    return InsightResult(text=text, chart_data=chart)
