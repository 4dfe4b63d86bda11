"""
Numeric Helpers

Input sanitization and rounding shared by the allocation engine.
Rounding follows the half-up convention (ties go toward +infinity).
"""

import math
from typing import Any


def safe_number(value: Any) -> float:
    """
    Coerce a value to a finite float.

    Non-numeric, NaN and infinite inputs become 0.0 so they never
    propagate into results.

    Args:
        value: Any input value (number, numeric string, None, ...)

    Returns:
        Finite float
    """
    if isinstance(value, bool):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def round_half_up(num: float, decimals: int = 0) -> float:
    """
    Round to a fixed number of decimals, ties toward +infinity.

    Examples:
        round_half_up(2.5) -> 3.0
        round_half_up(-2.5) -> -2.0
        round_half_up(12.345678, 2) -> 12.35
    """
    factor = 10 ** decimals
    return math.floor(num * factor + 0.5) / factor
