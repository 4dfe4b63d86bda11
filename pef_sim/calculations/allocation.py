"""
Hurdle Waterfall Allocation

Distributes the profit or loss of a pooled investment across tranches
("investment types") for a single achieved cumulative return.

Structure:
1. Hurdle - The base tranche is paid its preferred return first
2. Excess Profit - Profit above the hurdle is split by a global share table
   or by cumulative-return bands
3. Loss - Junior tranches absorb losses (most junior first, full principal)
   before the base tranche takes any

Money is rounded to whole currency units at every accumulation step.
Percentages are rounded to 2 decimals only on output.
"""

import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from pef_sim.calculations.numeric import safe_number, round_half_up

SCENARIO_PROFIT = "profit"
SCENARIO_LOSS = "loss"
SCENARIO_BREAK_EVEN = "break-even"

_TRAILING_DIGITS = re.compile(r"(\d+)$")


class AllocationConfigError(ValueError):
    """Configuration that cannot be allocated (no partial result is produced)."""


@dataclass(frozen=True)
class Tranche:
    """A pool of committed capital with its own allocation priority."""

    id: str
    name: str
    capital: float  # Resolved capital in base currency units
    is_base: bool = False
    seniority_rank: Optional[int] = None  # Lower = more senior, absorbs loss last


@dataclass(frozen=True)
class DistributionBand:
    """Excess-profit shares for one cumulative-return band."""

    min_return: float  # Exclusive lower bound, cumulative % of total capital
    max_return: Optional[float]  # Inclusive upper bound, None = unbounded
    shares: Mapping[str, float] = field(default_factory=dict)  # Tranche id -> %
    id: str = ""


@dataclass(frozen=True)
class GlobalDistribution:
    """One share table applied to all profit above the hurdle."""

    shares: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RangeDistribution:
    """Share tables that change with the achieved cumulative return."""

    bands: Sequence[DistributionBand] = ()


DistributionPolicy = Union[GlobalDistribution, RangeDistribution]


@dataclass(frozen=True)
class InvestmentConfig:
    """Capital structure and distribution terms, without the achieved return."""

    tranches: Sequence[Tranche]
    threshold_return: float  # Annual hurdle rate in % (e.g. 7.0)
    investment_period: float  # Years
    distribution: DistributionPolicy = field(default_factory=GlobalDistribution)


@dataclass(frozen=True)
class TrancheResult:
    """Allocation outcome for a single tranche."""

    id: str
    name: str
    is_base: bool
    capital: float
    hurdle_profit: float
    excess_profit: float
    loss: float
    ending_value: float
    period_return: float  # Annualized %, simple (cumulative / years)
    cumulative_return: float  # % over the full period


@dataclass(frozen=True)
class AllocationResult:
    """Allocation outcome for one achieved return."""

    total_capital: float
    total_profit: float
    hurdle_profit: float
    excess_profit: float
    undistributed_excess: float
    total_ending_value: float
    period_return: float
    cumulative_return: float
    scenario_type: str
    tranches: List[TrancheResult]

    def tranche(self, tranche_id: str) -> TrancheResult:
        for result in self.tranches:
            if result.id == tranche_id:
                return result
        raise KeyError(tranche_id)

    @property
    def base(self) -> TrancheResult:
        return next(result for result in self.tranches if result.is_base)


@dataclass
class _Position:
    """Working ledger for one tranche while the waterfall runs."""

    tranche: Tranche
    capital: float
    hurdle_profit: float = 0.0
    excess_profit: float = 0.0
    loss: float = 0.0
    ending_value: float = 0.0


def seniority_rank_from_id(tranche_id: str) -> Optional[int]:
    """Parse the trailing integer of an id ("type3" -> 3), None if absent."""
    match = _TRAILING_DIGITS.search(str(tranche_id))
    if match is None:
        return None
    return int(match.group(1))


def _find_base_index(tranches: Sequence[Tranche]) -> int:
    base_indexes = [i for i, tranche in enumerate(tranches) if tranche.is_base]
    if not base_indexes:
        raise AllocationConfigError("A base (hurdle) tranche is required")
    if len(base_indexes) > 1:
        raise AllocationConfigError(
            f"Exactly one base tranche is allowed, found {len(base_indexes)}"
        )
    return base_indexes[0]


def _loss_rank(tranche: Tranche, position: int) -> int:
    if tranche.seniority_rank is not None:
        return int(tranche.seniority_rank)
    parsed = seniority_rank_from_id(tranche.id)
    if parsed is not None:
        return parsed
    return position + 1


def _returns(capital: float, ending_value: float, investment_period: float) -> Tuple[float, float]:
    """Return (period %, cumulative %) rounded to 2 decimals; zero for zero capital."""
    if capital <= 0:
        return 0.0, 0.0
    gain_pct = ((ending_value - capital) / capital) * 100
    return (
        round_half_up(gain_pct / investment_period, 2),
        round_half_up(gain_pct, 2),
    )


def distribute_globally(
    shares: Mapping[str, float], tranches: Sequence[Tranche], excess_profit: float
) -> List[float]:
    """Split excess profit by a single share table (tranche id -> %)."""
    payouts = []
    for tranche in tranches:
        rate = safe_number(shares.get(tranche.id, 0)) / 100
        payouts.append(round_half_up(excess_profit * rate))
    return payouts


def distribute_by_bands(
    bands: Sequence[DistributionBand],
    tranches: Sequence[Tranche],
    excess_profit: float,
    hurdle_return_pct: float,
    achieved_return_pct: float,
) -> List[float]:
    """
    Split excess profit across cumulative-return bands.

    The span [hurdle %, achieved %] is walked through the bands in order of
    min_return. Each band receives the fraction of excess profit equal to
    the fraction of the span it covers, split by its own share table.
    Return spans not covered by any band are left unallocated.

    Args:
        bands: Distribution bands (any storage order)
        tranches: Tranches in configuration order
        excess_profit: Profit above the hurdle (whole currency units)
        hurdle_return_pct: Hurdle profit as cumulative % of total capital
        achieved_return_pct: Total profit as cumulative % of total capital

    Returns:
        Excess profit per tranche, in configuration order
    """
    payouts = [0.0] * len(tranches)
    total_span = achieved_return_pct - hurdle_return_pct
    if total_span <= 0:
        return payouts

    cursor = hurdle_return_pct
    for band in sorted(bands, key=lambda b: safe_number(b.min_return)):
        band_min = safe_number(band.min_return)
        if band.max_return is None:
            band_max = achieved_return_pct
        else:
            band_max = min(achieved_return_pct, safe_number(band.max_return))
        span_start = max(cursor, band_min)

        if band_max > span_start and achieved_return_pct > span_start:
            band_amount = round_half_up(excess_profit * ((band_max - span_start) / total_span))
            for i, tranche in enumerate(tranches):
                rate = safe_number(band.shares.get(tranche.id, 0)) / 100
                payouts[i] += round_half_up(band_amount * rate)
            cursor = band_max

        if cursor >= achieved_return_pct:
            break

    return payouts


def _allocate_shortfall(
    positions: List[_Position], base_index: int, total_profit: float, hurdle_profit: float
) -> None:
    base = positions[base_index]
    paid = min(total_profit, hurdle_profit)
    base.hurdle_profit = paid
    base.ending_value += paid

    # Residual after the base is paid goes to the other tranches by capital
    remaining = total_profit - paid
    if remaining > 0:
        others = [p for i, p in enumerate(positions) if i != base_index]
        others_capital = sum(p.capital for p in others)
        if others_capital > 0:
            for p in others:
                share = round_half_up(remaining * (p.capital / others_capital))
                p.excess_profit += share
                p.ending_value += share


def _absorb_loss(positions: List[_Position], base_index: int, loss: float) -> None:
    remaining = loss

    # Most junior (highest rank) first; ties keep configuration order
    juniors = sorted(
        ((i, p) for i, p in enumerate(positions) if i != base_index),
        key=lambda item: _loss_rank(item[1].tranche, item[0]),
        reverse=True,
    )

    for _, p in juniors:
        if remaining <= 0:
            break
        absorbed = min(remaining, p.capital)
        p.loss = absorbed
        p.ending_value = p.capital - absorbed
        remaining -= absorbed

    if remaining > 0:
        base = positions[base_index]
        base.loss = min(remaining, base.capital)
        base.ending_value = base.capital - base.loss


def classify_scenario(total_profit: float, hurdle_profit: float) -> str:
    if total_profit > hurdle_profit:
        return SCENARIO_PROFIT
    if total_profit < 0:
        return SCENARIO_LOSS
    return SCENARIO_BREAK_EVEN


def allocate(config: InvestmentConfig, achieved_return: float) -> AllocationResult:
    """
    Run the waterfall for one achieved return.

    Args:
        config: Capital structure, hurdle and distribution policy
        achieved_return: Achieved cumulative return over the whole period, %
            (e.g. 20.0 for +20%)

    Returns:
        AllocationResult with per-tranche and aggregate figures

    Raises:
        AllocationConfigError: No tranches, no single base tranche,
            non-positive investment period or non-positive total capital
    """
    investment_period = safe_number(config.investment_period)
    threshold_return = safe_number(config.threshold_return)
    achieved_return = safe_number(achieved_return)

    if investment_period <= 0:
        raise AllocationConfigError("Investment period must be greater than zero")

    if not config.tranches:
        raise AllocationConfigError("At least one tranche is required")

    base_index = _find_base_index(config.tranches)

    positions = []
    for tranche in config.tranches:
        capital = safe_number(tranche.capital)
        positions.append(_Position(tranche=tranche, capital=capital, ending_value=capital))

    total_capital = sum(p.capital for p in positions)
    if total_capital <= 0:
        raise AllocationConfigError("Total capital must be greater than zero")

    base = positions[base_index]
    hurdle_profit = round_half_up(base.capital * (threshold_return / 100) * investment_period)
    total_profit = round_half_up(total_capital * (achieved_return / 100))
    scenario_type = classify_scenario(total_profit, hurdle_profit)

    if scenario_type == SCENARIO_PROFIT:
        base.hurdle_profit = hurdle_profit
        base.ending_value += hurdle_profit

        excess_profit = total_profit - hurdle_profit
        tranches = [p.tranche for p in positions]
        policy = config.distribution
        if isinstance(policy, RangeDistribution):
            payouts = distribute_by_bands(
                policy.bands,
                tranches,
                excess_profit,
                hurdle_return_pct=(hurdle_profit / total_capital) * 100,
                achieved_return_pct=(total_profit / total_capital) * 100,
            )
        else:
            payouts = distribute_globally(policy.shares, tranches, excess_profit)

        for p, payout in zip(positions, payouts):
            p.excess_profit = payout
            p.ending_value += payout

    elif scenario_type == SCENARIO_BREAK_EVEN:
        _allocate_shortfall(positions, base_index, total_profit, hurdle_profit)

    else:
        _absorb_loss(positions, base_index, abs(total_profit))

    results = []
    for p in positions:
        ending_value = max(0.0, p.ending_value)
        period_return, cumulative_return = _returns(p.capital, ending_value, investment_period)
        results.append(
            TrancheResult(
                id=p.tranche.id,
                name=p.tranche.name,
                is_base=p.tranche.is_base,
                capital=p.capital,
                hurdle_profit=p.hurdle_profit,
                excess_profit=p.excess_profit,
                loss=p.loss,
                ending_value=ending_value,
                period_return=period_return,
                cumulative_return=cumulative_return,
            )
        )

    total_ending_value = sum(r.ending_value for r in results)
    period_return, cumulative_return = _returns(
        total_capital, total_ending_value, investment_period
    )
    excess_profit = max(0.0, total_profit - hurdle_profit)
    undistributed = 0.0
    if scenario_type == SCENARIO_PROFIT:
        undistributed = excess_profit - sum(r.excess_profit for r in results)

    return AllocationResult(
        total_capital=total_capital,
        total_profit=total_profit,
        hurdle_profit=hurdle_profit,
        excess_profit=excess_profit,
        undistributed_excess=undistributed,
        total_ending_value=total_ending_value,
        period_return=period_return,
        cumulative_return=cumulative_return,
        scenario_type=scenario_type,
        tranches=results,
    )
