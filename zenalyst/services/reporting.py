from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional, Sequence

from .aggregation import (
    FilterSpec,
    PageResult,
    QuarterlyRecord,
    RevenueRecord,
    filter_and_paginate,
    growth_distribution,
    growth_status,
    rank,
    share_with_others,
    shares_of_total,
    sort_descending,
)
from .data_layer import BridgeTotals, ReportingStore, RevenueSummary
from .formatting import format_currency, format_percentage, round_to

TOP_COUNTRIES_LIMIT = 10
COUNTRY_SHARE_LIMIT = 8
CONCENTRATION_LIMIT = 20
GROWTH_CUSTOMERS_LIMIT = 10
DASHBOARD_TOP_LIMIT = 5


def _revenue(r: RevenueRecord) -> float:
    return r.revenue


def _variance(r: QuarterlyRecord) -> float:
    return r.variance


def _q4(r: QuarterlyRecord) -> float:
    return r.q4_revenue


# Countries


def country_row(r: RevenueRecord) -> dict:
    return {
        "countryName": r.label,
        "yearlyRevenue": r.revenue,
        "formattedRevenue": format_currency(r.revenue),
    }


def all_countries(records: Sequence[RevenueRecord]) -> list[dict]:
    return [country_row(r) for r in sort_descending(records, _revenue)]


def top_countries(records: Sequence[RevenueRecord], limit) -> list[dict]:
    return [country_row(r) for r in rank(records, _revenue, limit, TOP_COUNTRIES_LIMIT)]


def country_revenue_share(records: Sequence[RevenueRecord], limit) -> list[dict]:
    entries = share_with_others(records, _revenue, limit, fallback=COUNTRY_SHARE_LIMIT)
    return [
        {
            "countryName": e.label,
            "revenue": e.value,
            "percentage": e.percentage,
            "formattedRevenue": format_currency(e.value),
            "formattedPercentage": format_percentage(e.percentage),
        }
        for e in entries
    ]


# Regions


def region_row(r: RevenueRecord) -> dict:
    return {
        "regionName": r.label,
        "yearlyRevenue": r.revenue,
        "formattedRevenue": format_currency(r.revenue),
    }


def all_regions(records: Sequence[RevenueRecord]) -> list[dict]:
    return [region_row(r) for r in sort_descending(records, _revenue)]


def regions_summary(records: Sequence[RevenueRecord]) -> dict:
    total = float(sum(r.revenue for r in records))
    shares = shares_of_total(records, _revenue)
    return {
        "totalRegions": len(records),
        "regionsWithData": sum(1 for r in records if r.reported),
        "totalRevenue": total,
        "formattedTotalRevenue": format_currency(total),
        "regions": [
            {
                "regionName": r.label,
                "revenue": r.revenue,
                "formattedRevenue": format_currency(r.revenue),
                "percentage": pct,
                "formattedPercentage": format_percentage(pct),
            }
            for r, pct in zip(records, shares)
        ],
    }


# Customers


def concentration_row(r: RevenueRecord) -> dict:
    return {
        "customerName": r.label,
        "totalRevenue": r.revenue,
        "formattedRevenue": format_currency(r.revenue),
    }


def customer_concentration(records: Sequence[RevenueRecord], limit) -> list[dict]:
    return [
        concentration_row(r) for r in rank(records, _revenue, limit, CONCENTRATION_LIMIT)
    ]


def quarterly_row(r: QuarterlyRecord, with_status: bool = False) -> dict:
    row = {
        "customerName": r.label,
        "q3Revenue": r.q3_revenue,
        "q4Revenue": r.q4_revenue,
        "variance": r.variance,
        "percentageVariance": r.percentage_variance,
        "formattedQ3Revenue": format_currency(r.q3_revenue),
        "formattedQ4Revenue": format_currency(r.q4_revenue),
        "formattedVariance": format_currency(r.variance),
        "formattedPercentage": format_percentage(r.percentage_variance),
    }
    if with_status:
        row["growthStatus"] = growth_status(r.variance)
    return row


def top_growth_customers(records: Sequence[QuarterlyRecord], limit) -> list[dict]:
    return [
        quarterly_row(r) for r in rank(records, _variance, limit, GROWTH_CUSTOMERS_LIMIT)
    ]


def customer_quarterly_page(
    records: Sequence[QuarterlyRecord], spec: FilterSpec
) -> tuple[list[dict], PageResult]:
    page = filter_and_paginate(records, spec, _variance)
    return [quarterly_row(r) for r in page.items], page


def customer_analysis_page(
    records: Sequence[QuarterlyRecord], spec: FilterSpec
) -> tuple[list[dict], PageResult]:
    page = filter_and_paginate(records, spec, _q4)
    return [quarterly_row(r, with_status=True) for r in page.items], page


def customer_statistics(records: Sequence[QuarterlyRecord]) -> dict:
    dist = growth_distribution(records)
    return {
        "totalCustomers": dist.total,
        "customersWithGrowth": dist.positive,
        "customersWithDecline": dist.negative,
        "customersNoChange": dist.neutral,
        "growthPercentage": dist.positive_percentage,
        "declinePercentage": dist.negative_percentage,
        "noChangePercentage": dist.neutral_percentage,
        "totalQ3Revenue": dist.first_metric_total,
        "totalQ4Revenue": dist.second_metric_total,
        "formattedTotalQ3Revenue": format_currency(dist.first_metric_total),
        "formattedTotalQ4Revenue": format_currency(dist.second_metric_total),
    }


# Revenue


def revenue_summary(summary: RevenueSummary) -> dict:
    return {
        "totalQ3Revenue": summary.total_q3_revenue,
        "totalQ4Revenue": summary.total_q4_revenue,
        "totalVariance": summary.total_variance,
        "formattedQ3Revenue": format_currency(summary.total_q3_revenue),
        "formattedQ4Revenue": format_currency(summary.total_q4_revenue),
        "formattedVariance": format_currency(summary.total_variance),
    }


def quarterly_revenue(totals: Optional[tuple[float, float]]) -> list[dict]:
    if totals is None:
        return []
    return [
        {"quarter": quarter, "revenue": value, "formattedRevenue": format_currency(value)}
        for quarter, value in zip(("Q3", "Q4"), totals)
    ]


def revenue_bridge(totals: Optional[BridgeTotals]) -> list[dict]:
    if totals is None:
        return []
    categories = [
        ("New Revenue", totals.new, "positive"),
        ("Expansion Revenue", totals.expansion, "positive"),
        ("Churned Revenue", abs(totals.churned), "negative"),
        ("Contraction Revenue", abs(totals.contraction), "negative"),
    ]
    return [
        {
            "category": category,
            "amount": amount,
            "formattedAmount": format_currency(amount),
            "type": kind,
        }
        for category, amount, kind in categories
    ]


def growth_rate(summary: RevenueSummary) -> float:
    q3 = summary.total_q3_revenue
    return round_to((summary.total_q4_revenue - q3) / q3 * 100, 2) if q3 > 0 else 0.0


# Dashboard


def build_dashboard(store: ReportingStore, max_workers: int = 5) -> dict:
    """
    Combined summary for the dashboard landing page.

    The five datasets are independent, so they are fetched in parallel and
    only then handed to the pure report builders.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        summary_job = pool.submit(store.revenue_summary)
        countries_job = pool.submit(store.countries)
        quarterly_job = pool.submit(store.quarterly_revenue)
        regions_job = pool.submit(store.regions)
        concentration_job = pool.submit(store.customer_concentration)

        summary = summary_job.result()
        countries = countries_job.result()
        quarterly = quarterly_job.result()
        regions = regions_job.result()
        concentration = concentration_job.result()

    return {
        "revenue": revenue_summary(summary),
        "topCountries": top_countries(countries, DASHBOARD_TOP_LIMIT),
        "topCustomers": customer_concentration(concentration, DASHBOARD_TOP_LIMIT),
        "customerStats": customer_statistics(quarterly),
        "regions": regions_summary(regions),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
