"""
Display formatters for dashboard values.

Missing and non-finite values render as zero.
"""

import math
from typing import Optional, Union

Number = Union[int, float]


def _finite(value: Optional[Number]) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def format_number(value: Optional[Number], decimals: int = 0) -> str:
    """1234567 -> "1,234,567" """
    return f"{_finite(value):,.{decimals}f}"


def format_currency(value: Optional[Number], symbol: str = "$") -> str:
    """1234.5 -> "$1,234.50", -12 -> "-$12.00" """
    number = round(_finite(value), 2)
    sign = "-" if number < 0 else ""
    return f"{sign}{symbol}{abs(number):,.2f}"


def format_percentage(value: Optional[Number], decimals: int = 2) -> str:
    """Value already in percent: 33.333 -> "33.33%" """
    return f"{_finite(value):.{decimals}f}%"
