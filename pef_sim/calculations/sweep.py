"""
Scenario Sweep

Runs the allocation engine across a range of achieved returns for charting
and tabulation. Each point is computed independently; results follow the
caller's order of return rates.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from pef_sim.calculations.allocation import (
    AllocationConfigError,
    AllocationResult,
    InvestmentConfig,
    allocate,
)

logger = logging.getLogger(__name__)

DEFAULT_START = -20.0
DEFAULT_STOP = 40.0
DEFAULT_STEP = 0.5

# Absorbs float error so a stop that lies on the grid is included
GRID_TOLERANCE = 1e-9


@dataclass(frozen=True)
class SweepPoint:
    """One swept return rate and its allocation."""

    return_rate: float
    result: Optional[AllocationResult]
    error: Optional[str] = None


def generate_return_rates(
    start: float = DEFAULT_START,
    stop: float = DEFAULT_STOP,
    step: float = DEFAULT_STEP,
    max_points: Optional[int] = None,
) -> List[float]:
    """
    Generate an inclusive grid of cumulative return rates.

    Defaults give -20% to 40% in 0.5% steps (121 points). The point count
    is checked against max_points before the grid is built.

    Raises:
        ValueError: If a bound or the step is not finite, step is not
            positive, stop is below start, or the grid exceeds max_points
    """
    if not all(math.isfinite(value) for value in (start, stop, step)):
        raise ValueError("Start, stop and step must be finite")
    if step <= 0:
        raise ValueError("Step must be greater than zero")
    if stop < start:
        raise ValueError("Stop must not be below start")

    intervals = (stop - start) / step
    if not math.isfinite(intervals):
        raise ValueError("Sweep range is too large")

    count = math.floor(intervals + GRID_TOLERANCE) + 1
    if max_points is not None and count > max_points:
        raise ValueError(f"Sweep exceeds {max_points} points")

    rates = np.round(start + step * np.arange(count), 6)
    return [float(rate) for rate in rates]


def sweep(
    config: InvestmentConfig,
    return_rates: Sequence[float],
    stop_on_error: bool = True,
) -> List[SweepPoint]:
    """
    Allocate once per return rate, preserving the given order.

    Args:
        config: Capital structure and distribution terms
        return_rates: Achieved cumulative returns in %
        stop_on_error: Abort the whole sweep on the first configuration
            error (default). When False, the failing point is returned with
            result=None and the error message, and the sweep continues.

    Returns:
        List of SweepPoint, one per return rate

    Raises:
        AllocationConfigError: On the first failing rate when stop_on_error
    """
    points = []
    for rate in return_rates:
        try:
            result = allocate(config, rate)
        except AllocationConfigError as e:
            if stop_on_error:
                raise
            logger.warning(f"Scenario at {rate}% failed: {e}")
            points.append(SweepPoint(return_rate=rate, result=None, error=str(e)))
            continue
        points.append(SweepPoint(return_rate=rate, result=result))

    logger.debug(f"Swept {len(points)} scenarios")
    return points


def tabulate_sweep(points: Sequence[SweepPoint]) -> List[Dict]:
    """
    Flatten sweep points into chart/table rows.

    Each row carries the rate, scenario type, aggregate cumulative return and,
    per tranche id, its cumulative return and ending value. Failed points
    keep only the rate and error.
    """
    rows = []
    for point in points:
        row = {"return_rate": point.return_rate}
        if point.result is None:
            row["error"] = point.error
            rows.append(row)
            continue

        result = point.result
        row["scenario_type"] = result.scenario_type
        row["total_cumulative_return"] = result.cumulative_return
        row["total_ending_value"] = result.total_ending_value
        for tranche in result.tranches:
            row[f"{tranche.id}_cumulative_return"] = tranche.cumulative_return
            row[f"{tranche.id}_ending_value"] = tranche.ending_value
        rows.append(row)
    return rows
