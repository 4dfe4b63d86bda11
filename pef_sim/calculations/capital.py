"""
Capital Resolution

Turns form-style tranche inputs into engine tranches with absolute capital.

The base tranche is always entered as an amount. Other tranches are entered
either as a percentage of the base tranche or as an amount of their own.
Amounts are expressed in display units (default: hundred-million, 1e8).
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from pef_sim.calculations.allocation import Tranche, seniority_rank_from_id
from pef_sim.calculations.numeric import safe_number, round_half_up

INPUT_MODE_PERCENTAGE = "percentage"
INPUT_MODE_AMOUNT = "amount"

HUNDRED_MILLION = 100_000_000


@dataclass(frozen=True)
class TrancheInput:
    """Tranche as entered on the input form."""

    id: str
    name: str
    investment: float  # Base: amount in display units. Others: % of base
    input_mode: str = INPUT_MODE_PERCENTAGE
    investment_amount: Optional[float] = None  # Amount in display units (amount mode)
    is_base: bool = False
    seniority_rank: Optional[int] = None


def resolve_capital(
    tranche: TrancheInput, base_capital: float, unit: float = HUNDRED_MILLION
) -> float:
    """Resolve one tranche's capital in base currency units."""
    if tranche.is_base:
        return safe_number(tranche.investment) * unit
    if tranche.input_mode == INPUT_MODE_AMOUNT:
        return safe_number(tranche.investment_amount or 0) * unit
    return round_half_up(base_capital * (safe_number(tranche.investment) / 100))


def resolve_tranches(
    inputs: Sequence[TrancheInput], unit: float = HUNDRED_MILLION
) -> List[Tranche]:
    """
    Resolve form inputs into engine tranches.

    Seniority rank is taken from the input when given, otherwise parsed from
    the trailing number of the id, otherwise the 1-based position.

    Missing or duplicate base tranches are left for the allocation engine to
    reject; percentage tranches resolve against a zero base in that case.
    """
    base = next((t for t in inputs if t.is_base), None)
    base_capital = safe_number(base.investment) * unit if base is not None else 0.0

    tranches = []
    for position, item in enumerate(inputs, start=1):
        rank = item.seniority_rank
        if rank is None:
            rank = seniority_rank_from_id(item.id)
        if rank is None:
            rank = position

        tranches.append(
            Tranche(
                id=item.id,
                name=item.name,
                capital=resolve_capital(item, base_capital, unit),
                is_base=item.is_base,
                seniority_rank=rank,
            )
        )
    return tranches
