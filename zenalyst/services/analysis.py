from __future__ import annotations

from enum import Enum
from typing import Callable

from .data_layer import ReportingStore
from .formatting import format_currency, format_percentage
from . import reporting

INSIGHT_LIMIT = 5

PREDEFINED_PROMPTS = [
    {
        "id": 1,
        "title": "Revenue Growth Analysis",
        "prompt": "Analyze the revenue growth patterns and identify top performing customers",
    },
    {
        "id": 2,
        "title": "Country Performance",
        "prompt": "Which countries are showing the highest revenue growth and why?",
    },
    {
        "id": 3,
        "title": "Customer Concentration",
        "prompt": "Analyze customer concentration and identify potential risks",
    },
    {
        "id": 4,
        "title": "Quarterly Trends",
        "prompt": "What are the key trends in Q3 vs Q4 revenue performance?",
    },
    {
        "id": 5,
        "title": "Revenue Bridge Analysis",
        "prompt": "Break down the revenue changes into expansion, new, and churned revenue",
    },
]

RECOMMENDATIONS = [
    "Focus on high-growth customers to maximize revenue potential",
    "Monitor customer concentration to mitigate risks",
    "Analyze expansion opportunities in top-performing countries",
    "Implement strategies to reduce customer churn",
]


class Intent(str, Enum):
    REVENUE_GROWTH = "revenue_growth"
    COUNTRY_PERFORMANCE = "country_performance"
    CUSTOMER_CONCENTRATION = "customer_concentration"
    QUARTERLY_TRENDS = "quarterly_trends"
    REVENUE_BRIDGE = "revenue_bridge"


# Declaration order is the order insights appear in
KEYWORDS: dict[Intent, tuple[str, ...]] = {
    Intent.REVENUE_GROWTH: ("revenue growth", "top performing"),
    Intent.COUNTRY_PERFORMANCE: ("country", "countries"),
    Intent.CUSTOMER_CONCENTRATION: ("customer concentration", "risks"),
    Intent.QUARTERLY_TRENDS: ("quarterly", "q3", "q4"),
    Intent.REVENUE_BRIDGE: ("bridge", "expansion", "churned"),
}


def classify(prompt: str) -> list[Intent]:
    text = prompt.lower()
    return [
        intent
        for intent, words in KEYWORDS.items()
        if any(word in text for word in words)
    ]


def _names(rows: list[dict], key: str) -> str:
    return ", ".join(row[key] for row in rows)


def _revenue_growth(store: ReportingStore) -> tuple[list[str], str, object]:
    rows = reporting.top_growth_customers(store.quarterly_revenue(), INSIGHT_LIMIT)
    insights = [f"Top {INSIGHT_LIMIT} customers by revenue growth: {_names(rows, 'customerName')}"]
    if rows:
        best = rows[0]
        insights.append(
            f"Highest growth customer: {best['customerName']} with {best['formattedVariance']} growth"
        )
    return insights, "topCustomers", rows


def _country_performance(store: ReportingStore) -> tuple[list[str], str, object]:
    rows = reporting.top_countries(store.countries(), INSIGHT_LIMIT)
    insights = [f"Top {INSIGHT_LIMIT} countries by revenue: {_names(rows, 'countryName')}"]
    if rows:
        best = rows[0]
        insights.append(
            f"Highest revenue country: {best['countryName']} with {best['formattedRevenue']}"
        )
    return insights, "topCountries", rows


def _customer_concentration(store: ReportingStore) -> tuple[list[str], str, object]:
    rows = reporting.customer_concentration(store.customer_concentration(), INSIGHT_LIMIT)
    insights = [
        f"Top {INSIGHT_LIMIT} customers by total revenue: {_names(rows, 'customerName')}"
    ]
    if rows:
        insights.append(
            f"Customer concentration risk: {rows[0]['customerName']} represents "
            "significant portion of revenue"
        )
    return insights, "concentration", rows


def _quarterly_trends(store: ReportingStore) -> tuple[list[str], str, object]:
    summary = store.revenue_summary()
    data = reporting.revenue_summary(summary)
    insights = [
        f"Q3 Revenue: {data['formattedQ3Revenue']}",
        f"Q4 Revenue: {data['formattedQ4Revenue']}",
        f"Overall growth: {format_percentage(reporting.growth_rate(summary))}",
        f"Variance: {data['formattedVariance']}",
    ]
    return insights, "summary", data


def _revenue_bridge(store: ReportingStore) -> tuple[list[str], str, object]:
    totals = store.bridge_totals()
    rows = reporting.revenue_bridge(totals)
    if totals is None:
        return ["No revenue bridge data available"], "bridgeData", rows
    insights = [
        f"Total new revenue: {format_currency(totals.new)}",
        f"Total expansion revenue: {format_currency(totals.expansion)}",
        f"Total churned revenue: {format_currency(abs(totals.churned))}",
        f"Total contraction revenue: {format_currency(abs(totals.contraction))}",
    ]
    return insights, "bridgeData", rows


HANDLERS: dict[Intent, Callable[[ReportingStore], tuple[list[str], str, object]]] = {
    Intent.REVENUE_GROWTH: _revenue_growth,
    Intent.COUNTRY_PERFORMANCE: _country_performance,
    Intent.CUSTOMER_CONCENTRATION: _customer_concentration,
    Intent.QUARTERLY_TRENDS: _quarterly_trends,
    Intent.REVENUE_BRIDGE: _revenue_bridge,
}


def analyze(prompt: str, store: ReportingStore) -> dict:
    intents = classify(prompt)
    insights: list[str] = []
    data: dict[str, object] = {}
    for intent in intents:
        found, key, payload = HANDLERS[intent](store)
        insights.extend(found)
        data[key] = payload

    return {
        "prompt": prompt,
        "intents": [i.value for i in intents],
        "insights": insights,
        "recommendations": list(RECOMMENDATIONS) if insights else [],
        "data": data,
    }
