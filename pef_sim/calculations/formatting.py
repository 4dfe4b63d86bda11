"""
Display Formatting

Currency is shown in hundred-million units ("억원"), the unit the input
form uses for capital amounts.
"""

import math

from pef_sim.calculations.capital import HUNDRED_MILLION
from pef_sim.calculations.numeric import round_half_up

CURRENCY_SUFFIX = "억원"


def _is_finite(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def format_currency(amount: float) -> str:
    """
    Format an amount in hundred-million units.

    Amounts under one unit show 2 decimals, larger amounts 1 decimal.
    Non-finite input renders as zero.

    Examples:
        format_currency(2_030_000_000) -> "20.3억원"
        format_currency(35_000_000) -> "0.35억원"
    """
    if not _is_finite(amount):
        return f"0{CURRENCY_SUFFIX}"

    units = amount / HUNDRED_MILLION
    if abs(units) < 1:
        return f"{units:.2f}{CURRENCY_SUFFIX}"
    return f"{units:.1f}{CURRENCY_SUFFIX}"


def format_percentage(rate: float, decimals: int = 2) -> str:
    """Format a percentage value (already in %), e.g. 12.5 -> "12.50%"."""
    if not _is_finite(rate):
        return f"{0:.{decimals}f}%"
    return f"{rate:.{decimals}f}%"


def format_number(num: float) -> str:
    """Format a number rounded to an integer with thousands separators."""
    if not _is_finite(num):
        return "0"
    return f"{int(round_half_up(num)):,}"
