from __future__ import annotations

import math


def round_to(value: float | None, decimals: int = 2) -> float:
    """Round half away from zero on the scaled value, as the dashboard displays it."""
    if value is None:
        return 0.0
    factor = 10**decimals
    scaled = value * factor
    # + 0.0 folds -0.0 into 0.0
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / factor + 0.0


def format_currency(value: float | None) -> str:
    if value is None:
        return "0.00"
    rounded = round_to(value, 2)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"


def format_percentage(value: float | None) -> str:
    if value is None:
        return "0.00%"
    return f"{round_to(value, 2):.2f}%"
