"""Trend and consistency analysis over grouped statements.

Two companion computations:

- ``analyze_trends``: direction and magnitude of change for revenue,
  profitability, assets and liquidity between the first and last period.
- ``analyze_multi_period``: which periods are covered, how complete the
  statement set is, and qualitative insights/recommendations.

Both are pure and never raise; sparse input produces ``insufficient_data``
results and "limited" data quality rather than errors.
"""

import math
from typing import Optional, Sequence

from .models.analysis import (
    DataQuality,
    FinancialTrends,
    GroupedFinancialData,
    MultiPeriodAnalysis,
    StatementKind,
    TrendDirection,
    TrendResult,
)
from .periods import is_known_period, period_sort_key, sort_by_period

# Changes within +/- this percentage are classified as stable.
STABLE_THRESHOLD_PERCENT = 10.0

EXCELLENT_STATEMENT_COUNT = 6
GOOD_STATEMENT_COUNT = 3

CONSISTENCY_SCORES = {
    DataQuality.EXCELLENT: 0.9,
    DataQuality.GOOD: 0.7,
    DataQuality.LIMITED: 0.4,
}

METRIC_LABELS = {
    "revenue": "Revenue",
    "profitability": "Net income",
    "assets": "Total assets",
    "liquidity": "Bank balance",
}


def _usable(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def classify_change(first: float, last: float) -> tuple[TrendDirection, float]:
    """Return the trend direction and rounded percentage change."""
    if first == 0:
        if last > 0:
            return TrendDirection.INCREASING, 100.0
        if last < 0:
            return TrendDirection.DECREASING, -100.0
        return TrendDirection.STABLE, 0.0

    change = round((last - first) / abs(first) * 100, 2)
    if change > STABLE_THRESHOLD_PERCENT:
        return TrendDirection.INCREASING, change
    if change < -STABLE_THRESHOLD_PERCENT:
        return TrendDirection.DECREASING, change
    return TrendDirection.STABLE, change


def _describe(metric: str, trend: TrendDirection, change: float) -> str:
    label = METRIC_LABELS.get(metric, metric.title())
    if trend == TrendDirection.INSUFFICIENT_DATA:
        return f"{label}: insufficient data (fewer than 2 periods)"
    return f"{label} {trend.value} ({change:+.2f}%)"


def calculate_trend(
    metric: str,
    samples: Sequence[tuple[str, Optional[float]]],
) -> TrendResult:
    """
    Trend for one metric from (period, value) samples.

    Samples are sorted by period, unusable values dropped, then the first and
    last remaining values are compared.
    """
    ordered = sorted(samples, key=lambda sample: period_sort_key(sample[0]))
    usable = [(period, value) for period, value in ordered if _usable(value)]

    if len(usable) < 2:
        return TrendResult(
            metric=metric,
            trend=TrendDirection.INSUFFICIENT_DATA,
            change_percent=0.0,
            periods=[period for period, _ in usable],
            first_value=usable[0][1] if usable else None,
            last_value=usable[-1][1] if usable else None,
            label=_describe(metric, TrendDirection.INSUFFICIENT_DATA, 0.0),
        )

    first, last = usable[0][1], usable[-1][1]
    trend, change = classify_change(first, last)
    return TrendResult(
        metric=metric,
        trend=trend,
        change_percent=change,
        periods=[period for period, _ in usable],
        first_value=first,
        last_value=last,
        label=_describe(metric, trend, change),
    )


def analyze_trends(grouped: GroupedFinancialData) -> FinancialTrends:
    """Revenue, profitability, assets and liquidity trends."""
    profit_loss = grouped.profit_loss_statements
    return FinancialTrends(
        revenue=calculate_trend(
            "revenue", [(e.period, e.revenue) for e in profit_loss]
        ),
        profitability=calculate_trend(
            "profitability", [(e.period, e.net_income) for e in profit_loss]
        ),
        assets=calculate_trend(
            "assets", [(e.period, e.total_assets) for e in grouped.balance_sheets]
        ),
        liquidity=calculate_trend(
            "liquidity", [(e.period, e.balance) for e in grouped.bank_statements]
        ),
    )


# =============================================================================
# MULTI-PERIOD ANALYSIS
# =============================================================================


def collect_periods(grouped: GroupedFinancialData) -> list[str]:
    """Distinct known periods across the five statement collections."""
    periods: list[str] = []
    for collection in (
        grouped.profit_loss_statements,
        grouped.balance_sheets,
        grouped.bank_statements,
        grouped.credit_reports,
        grouped.cash_flow_statements,
    ):
        for entry in collection:
            if is_known_period(entry.period) and entry.period not in periods:
                periods.append(entry.period)
    return sort_by_period(periods, lambda period: period)


def assess_data_quality(grouped: GroupedFinancialData) -> DataQuality:
    """Rate coverage by the number of core financial statements."""
    total = (
        len(grouped.profit_loss_statements)
        + len(grouped.balance_sheets)
        + len(grouped.cash_flow_statements)
    )
    if total >= EXCELLENT_STATEMENT_COUNT:
        return DataQuality.EXCELLENT
    if total >= GOOD_STATEMENT_COUNT:
        return DataQuality.GOOD
    return DataQuality.LIMITED


def _distinct_periods(entries: Sequence) -> int:
    return len({e.period for e in entries if is_known_period(e.period)})


def _insights(grouped: GroupedFinancialData) -> list[str]:
    insights = []
    spans = [
        (grouped.profit_loss_statements, "Profit and loss statements",
         "revenue and profitability trends can be compared"),
        (grouped.balance_sheets, "Balance sheets",
         "asset and leverage changes can be tracked"),
        (grouped.cash_flow_statements, "Cash flow statements",
         "cash generation can be compared over time"),
        (grouped.bank_statements, "Bank statements",
         "liquidity movement can be observed"),
        (grouped.credit_reports, "Credit reports",
         "credit behaviour can be followed over time"),
    ]
    for entries, name, consequence in spans:
        count = _distinct_periods(entries)
        if count >= 2:
            insights.append(f"{name} cover {count} periods; {consequence}.")
    return insights


def _recommendations(grouped: GroupedFinancialData, periods: list[str]) -> list[str]:
    recommendations = []
    if len(periods) < 2:
        recommendations.append(
            "Provide financial statements for at least two reporting periods "
            "to enable trend analysis."
        )
    if not grouped.cash_flow_statements:
        recommendations.append(
            "Include cash flow statements to assess operating liquidity."
        )
    if not grouped.credit_reports:
        recommendations.append(
            "Include a credit report to evaluate repayment history."
        )
    return recommendations


def analyze_multi_period(grouped: GroupedFinancialData) -> MultiPeriodAnalysis:
    """Period coverage, data quality, insights and recommendations."""
    periods = collect_periods(grouped)
    quality = assess_data_quality(grouped)
    counts = grouped.statement_counts()
    counts.pop(StatementKind.OTHER.value, None)
    return MultiPeriodAnalysis(
        periods_analyzed=periods,
        statement_counts=counts,
        data_quality=quality,
        consistency_score=CONSISTENCY_SCORES[quality],
        insights=_insights(grouped),
        recommendations=_recommendations(grouped, periods),
    )


__all__ = [
    "STABLE_THRESHOLD_PERCENT",
    "analyze_multi_period",
    "analyze_trends",
    "assess_data_quality",
    "calculate_trend",
    "classify_change",
    "collect_periods",
]
