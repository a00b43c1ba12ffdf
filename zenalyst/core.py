# core.py: query parameter defaulting, kept out of the route handlers

import math
import re
from typing import Optional

from zenalyst.services.aggregation import FilterSpec

DEFAULT_PAGE_SIZE = 50

# Leading number of a query value; trailing text is ignored ("2.0" -> 2, "250abc" -> 250)
INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_positive_int(value: Optional[str], fallback: int) -> int:
    """
    Parse the leading integer of a query value.

    Missing input, input without a leading number, and zero or negative
    values return ``fallback`` instead of an error.
    """
    if value is None:
        return fallback
    match = INT_PREFIX.match(str(value))
    if match is None:
        return fallback
    parsed = int(match.group())
    return parsed if parsed > 0 else fallback


def coerce_amount(value: Optional[str], fallback: float = 0.0) -> float:
    if value is None:
        return fallback
    match = FLOAT_PREFIX.match(str(value))
    if match is None:
        return fallback
    parsed = float(match.group())
    return parsed if math.isfinite(parsed) else fallback


def coerce_flag(value: Optional[str]) -> bool:
    return value is not None and str(value).strip().lower() == "true"


def build_filter_spec(
    min_q4_revenue: Optional[str],
    positive_growth_only: Optional[str],
    limit: Optional[str],
    page: Optional[str],
) -> FilterSpec:
    return FilterSpec(
        min_q4_revenue=coerce_amount(min_q4_revenue),
        positive_growth_only=coerce_flag(positive_growth_only),
        page=coerce_positive_int(page, 1),
        page_size=coerce_positive_int(limit, DEFAULT_PAGE_SIZE),
    )
