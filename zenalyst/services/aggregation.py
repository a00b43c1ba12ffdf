"""
Ranking, share and distribution helpers shared by every report.

All functions are pure: they take already-fetched records and return new
objects. Sorting is always stable, so records with equal metric values
keep their input order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, TypeVar

import numpy as np

from .formatting import round_to

OTHERS_LABEL = "Others"

R = TypeVar("R")
Metric = Callable[[R], Optional[float]]


@dataclass(frozen=True)
class RevenueRecord:
    label: str
    revenue: float = 0.0
    reported: bool = True


@dataclass(frozen=True)
class QuarterlyRecord:
    label: str
    q3_revenue: float = 0.0
    q4_revenue: float = 0.0
    variance: float = 0.0
    percentage_variance: float = 0.0


@dataclass(frozen=True)
class ShareEntry:
    label: str
    value: float
    percentage: float


@dataclass(frozen=True)
class FilterSpec:
    min_q4_revenue: float = 0.0
    positive_growth_only: bool = False
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True)
class PaginationInfo:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool
    next_page: Optional[int]
    prev_page: Optional[int]

    def to_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
            "nextPage": self.next_page,
            "prevPage": self.prev_page,
        }


@dataclass(frozen=True)
class PageResult:
    items: list
    pagination: PaginationInfo


@dataclass(frozen=True)
class GrowthDistribution:
    total: int
    positive: int
    negative: int
    neutral: int
    positive_percentage: float
    negative_percentage: float
    neutral_percentage: float
    first_metric_total: float
    second_metric_total: float


def metric_value(record, metric: Metric) -> float:
    """Read ``metric`` from ``record``, treating None as 0.

    Anything that is not a real number is a caller bug and raises TypeError.
    """
    value = metric(record)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        raise TypeError(
            f"metric must be numeric, got {type(value).__name__} for {record!r}"
        )
    return float(value)


def clamp_limit(limit, fallback: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        return fallback
    return limit


def percentage_of(value: float, total: float) -> float:
    return (value / total) * 100 if total > 0 else 0.0


def sort_descending(records: Sequence[R], metric: Metric) -> List[R]:
    # sorted(reverse=True) keeps equal keys in input order
    return sorted(records, key=lambda r: metric_value(r, metric), reverse=True)


def rank(records: Sequence[R], metric: Metric, limit, fallback: int = 10) -> List[R]:
    limit = clamp_limit(limit, fallback)
    return sort_descending(records, metric)[:limit]


def share_with_others(
    records: Sequence[R],
    metric: Metric,
    limit,
    label: Callable[[R], str] = lambda r: r.label,
    fallback: int = 8,
) -> List[ShareEntry]:
    limit = clamp_limit(limit, fallback)
    ordered = sort_descending(records, metric)
    values = [metric_value(r, metric) for r in ordered]
    total = sum(values)

    result = [
        ShareEntry(
            label=label(record),
            value=value,
            percentage=round_to(percentage_of(value, total), 2),
        )
        for record, value in zip(ordered[:limit], values[:limit])
    ]

    if len(ordered) > limit:
        others = sum(values[limit:])
        result.append(
            ShareEntry(
                label=OTHERS_LABEL,
                value=others,
                percentage=round_to(percentage_of(others, total), 2),
            )
        )
    return result


def shares_of_total(records: Sequence[R], metric: Metric) -> List[float]:
    """Unrounded percentage of the total for each record, in input order."""
    values = [metric_value(r, metric) for r in records]
    total = sum(values)
    return [percentage_of(v, total) for v in values]


def matches_filter(record: QuarterlyRecord, spec: FilterSpec) -> bool:
    if spec.min_q4_revenue > 0 and record.q4_revenue < spec.min_q4_revenue:
        return False
    if spec.positive_growth_only and not record.variance > 0:
        return False
    return True


def paginate(items: Sequence[R], page: int, page_size: int) -> PageResult:
    page = max(1, page)
    page_size = max(1, page_size)
    total = len(items)
    total_pages = math.ceil(total / page_size)
    skip = (page - 1) * page_size

    has_next = page < total_pages
    has_prev = page > 1
    info = PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=page_size,
        has_next_page=has_next,
        has_prev_page=has_prev,
        next_page=page + 1 if has_next else None,
        prev_page=page - 1 if has_prev else None,
    )
    return PageResult(items=list(items[skip : skip + page_size]), pagination=info)


def filter_and_paginate(
    records: Sequence[QuarterlyRecord], spec: FilterSpec, sort_metric: Metric
) -> PageResult:
    """Filter on raw values, sort by ``sort_metric`` and cut out one page."""
    kept = [r for r in records if matches_filter(r, spec)]
    return paginate(sort_descending(kept, sort_metric), spec.page, spec.page_size)


def growth_status(variance: Optional[float]) -> str:
    variance = variance or 0
    if variance > 0:
        return "positive"
    if variance < 0:
        return "negative"
    return "neutral"


def growth_distribution(
    records: Sequence[R],
    variance: Metric = lambda r: r.variance,
    first: Metric = lambda r: r.q3_revenue,
    second: Metric = lambda r: r.q4_revenue,
) -> GrowthDistribution:
    variances = np.array([metric_value(r, variance) for r in records], dtype=float)
    total = int(variances.size)
    positive = int((variances > 0).sum())
    negative = int((variances < 0).sum())
    neutral = total - positive - negative

    return GrowthDistribution(
        total=total,
        positive=positive,
        negative=negative,
        neutral=neutral,
        positive_percentage=percentage_of(positive, total),
        negative_percentage=percentage_of(negative, total),
        neutral_percentage=percentage_of(neutral, total),
        first_metric_total=float(sum(metric_value(r, first) for r in records)),
        second_metric_total=float(sum(metric_value(r, second) for r in records)),
    )
