"""
Distribution Policy Checks

Presentation-side checks on a configuration. The allocation engine does not
require share tables to sum to 100%; these checks only produce warnings for
the caller to display.
"""

from typing import List, Mapping, Sequence

from pef_sim.calculations.allocation import (
    DistributionBand,
    InvestmentConfig,
    RangeDistribution,
)
from pef_sim.calculations.numeric import safe_number

SHARE_TOTAL = 100.0
SHARE_TOLERANCE = 0.01


def _check_shares(label: str, shares: Mapping[str, float], tranche_ids: Sequence[str]) -> List[str]:
    warnings = []
    total = sum(safe_number(shares.get(tranche_id, 0)) for tranche_id in tranche_ids)
    if abs(total - SHARE_TOTAL) > SHARE_TOLERANCE:
        warnings.append(f"{label}: shares total {total:.2f}%, expected 100%")

    unknown = sorted(set(shares) - set(tranche_ids))
    if unknown:
        warnings.append(f"{label}: shares reference unknown tranches {', '.join(unknown)}")
    return warnings


def _band_label(band: DistributionBand, index: int) -> str:
    upper = "∞" if band.max_return is None else f"{safe_number(band.max_return):g}%"
    name = band.id or f"band {index + 1}"
    return f"{name} ({safe_number(band.min_return):g}% ~ {upper})"


def check_distribution_totals(config: InvestmentConfig) -> List[str]:
    """
    Check every share table of the distribution policy.

    Returns:
        List of warning messages (empty when consistent)
    """
    tranche_ids = [tranche.id for tranche in config.tranches]
    policy = config.distribution

    if not isinstance(policy, RangeDistribution):
        return _check_shares("Global distribution", policy.shares, tranche_ids)

    if not policy.bands:
        return ["Range distribution has no bands; excess profit will not be distributed"]

    warnings = []
    for index, band in enumerate(policy.bands):
        label = _band_label(band, index)
        if band.max_return is not None and safe_number(band.max_return) <= safe_number(band.min_return):
            warnings.append(f"{label}: upper bound must be above lower bound")
        warnings.extend(_check_shares(label, band.shares, tranche_ids))
    return warnings
