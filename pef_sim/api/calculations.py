"""
Distribution calculation API endpoints.

These endpoints accept form-shaped inputs, resolve them into an engine
configuration and return calculated results.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Literal, Optional

from pef_sim.calculations.allocation import (
    AllocationConfigError,
    AllocationResult,
    DistributionBand,
    GlobalDistribution,
    InvestmentConfig,
    RangeDistribution,
    TrancheResult,
    allocate,
)
from pef_sim.calculations.capital import TrancheInput, resolve_tranches
from pef_sim.calculations.formatting import format_currency, format_percentage
from pef_sim.calculations.sweep import generate_return_rates, sweep, tabulate_sweep
from pef_sim.calculations.validation import check_distribution_totals
from pef_sim.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class InvestmentTypeInput(BaseModel):
    """One investment type as entered on the form."""

    model_config = ConfigDict(allow_inf_nan=False)

    id: str
    name: str
    investment: float = 0.0  # Base: amount (hundred-million). Others: % of base
    investment_amount: Optional[float] = None  # Amount mode (hundred-million)
    input_mode: Literal["percentage", "amount"] = "percentage"
    is_base_type: bool = False
    seniority_rank: Optional[int] = None


class DistributionRangeInput(BaseModel):
    """Cumulative-return band with its own distribution shares."""

    model_config = ConfigDict(allow_inf_nan=False)

    id: str = ""
    min_return: float = 0.0
    max_return: Optional[float] = None  # None = unbounded
    distributions: Dict[str, float] = {}


class DistributionInput(BaseModel):
    """Capital structure and distribution terms shared by all endpoints."""

    model_config = ConfigDict(allow_inf_nan=False)

    investment_types: List[InvestmentTypeInput]

    # Range-based shares when enabled, otherwise global shares
    use_range_based_distribution: bool = False
    distribution_ranges: List[DistributionRangeInput] = []
    global_distribution: Dict[str, float] = {}

    # Hurdle
    threshold_return: float = 7.0  # Annual %
    investment_period: float = 2.0  # Years


class AllocationInput(DistributionInput):
    """Input for a single allocation."""

    simulation_return: float  # Achieved cumulative return %


class SweepInput(DistributionInput):
    """Input for a scenario sweep."""

    return_rates: Optional[List[float]] = None
    start: Optional[float] = None
    stop: Optional[float] = None
    step: Optional[float] = None
    stop_on_error: bool = True


class TrancheResultResponse(BaseModel):
    """Allocation outcome for one investment type."""

    id: str
    name: str
    is_base_type: bool
    investment: float
    threshold_profit: float
    excess_profit: float
    loss: float
    total_value: float
    period_return: float
    cumulative_return: float


class AllocationResponse(BaseModel):
    """Allocation outcome with compatibility fields and display strings."""

    total_investment: float
    total_profit: float
    threshold_profit: float
    excess_profit: float
    undistributed_excess: float
    total_value: float
    total_return: float
    total_cumulative_return: float
    scenario_type: str
    type_results: List[TrancheResultResponse]
    legacy: Dict[str, float]
    display: Dict[str, str]
    warnings: List[str] = []


class SweepPointResponse(BaseModel):
    """One swept return rate."""

    return_rate: float
    result: Optional[AllocationResponse] = None
    error: Optional[str] = None


class SweepResponse(BaseModel):
    """Ordered sweep results and flattened chart rows."""

    points: List[SweepPointResponse]
    rows: List[dict]
    warnings: List[str]


class ValidationResponse(BaseModel):
    """Distribution policy warnings."""

    valid: bool
    warnings: List[str]


def build_config(inputs: DistributionInput) -> InvestmentConfig:
    """Resolve form inputs into an engine configuration."""
    settings = get_settings()

    tranches = resolve_tranches(
        [
            TrancheInput(
                id=item.id,
                name=item.name,
                investment=item.investment,
                input_mode=item.input_mode,
                investment_amount=item.investment_amount,
                is_base=item.is_base_type,
                seniority_rank=item.seniority_rank,
            )
            for item in inputs.investment_types
        ],
        unit=settings.currency_unit,
    )

    if inputs.use_range_based_distribution:
        distribution = RangeDistribution(
            bands=tuple(
                DistributionBand(
                    id=band.id,
                    min_return=band.min_return,
                    max_return=band.max_return,
                    shares=dict(band.distributions),
                )
                for band in inputs.distribution_ranges
            )
        )
    else:
        distribution = GlobalDistribution(shares=dict(inputs.global_distribution))

    return InvestmentConfig(
        tranches=tuple(tranches),
        threshold_return=inputs.threshold_return,
        investment_period=inputs.investment_period,
        distribution=distribution,
    )


def legacy_fields(result: AllocationResult) -> Dict[str, float]:
    """
    Flatten the first three investment types into type1/type2/type3 fields.

    type1 is the base type; type2 and type3 are matched by id, falling back
    to list position. Missing types report zero.
    """
    tranches = result.tranches

    def pick(type_id: str, position: int) -> Optional[TrancheResult]:
        for tranche in tranches:
            if not tranche.is_base and tranche.id == type_id:
                return tranche
        return tranches[position] if position < len(tranches) else None

    selected = {
        "type1": next((t for t in tranches if t.is_base), tranches[0] if tranches else None),
        "type2": pick("type2", 1),
        "type3": pick("type3", 2),
    }

    fields = {}
    for prefix, tranche in selected.items():
        fields[f"{prefix}_investment"] = tranche.capital if tranche else 0.0
        fields[f"{prefix}_threshold_profit"] = tranche.hurdle_profit if tranche else 0.0
        fields[f"{prefix}_excess_profit"] = tranche.excess_profit if tranche else 0.0
        fields[f"{prefix}_loss"] = tranche.loss if tranche else 0.0
        fields[f"{prefix}_total_value"] = tranche.ending_value if tranche else 0.0
        fields[f"{prefix}_return"] = tranche.period_return if tranche else 0.0
        fields[f"{prefix}_cumulative_return"] = tranche.cumulative_return if tranche else 0.0
    return fields


def to_response(result: AllocationResult) -> AllocationResponse:
    """Map an engine result onto the API response shape."""
    return AllocationResponse(
        total_investment=result.total_capital,
        total_profit=result.total_profit,
        threshold_profit=result.hurdle_profit,
        excess_profit=result.excess_profit,
        undistributed_excess=result.undistributed_excess,
        total_value=result.total_ending_value,
        total_return=result.period_return,
        total_cumulative_return=result.cumulative_return,
        scenario_type=result.scenario_type,
        type_results=[
            TrancheResultResponse(
                id=tranche.id,
                name=tranche.name,
                is_base_type=tranche.is_base,
                investment=tranche.capital,
                threshold_profit=tranche.hurdle_profit,
                excess_profit=tranche.excess_profit,
                loss=tranche.loss,
                total_value=tranche.ending_value,
                period_return=tranche.period_return,
                cumulative_return=tranche.cumulative_return,
            )
            for tranche in result.tranches
        ],
        legacy=legacy_fields(result),
        display={
            "total_investment": format_currency(result.total_capital),
            "total_value": format_currency(result.total_ending_value),
            "threshold_profit": format_currency(result.hurdle_profit),
            "excess_profit": format_currency(result.excess_profit),
            "total_return": format_percentage(result.period_return),
            "total_cumulative_return": format_percentage(result.cumulative_return),
        },
    )


@router.post("/allocation", response_model=AllocationResponse)
async def calculate_allocation(inputs: AllocationInput):
    """Allocate profit or loss for one achieved cumulative return."""
    config = build_config(inputs)

    try:
        result = allocate(config, inputs.simulation_return)
    except AllocationConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = to_response(result)
    response.warnings = check_distribution_totals(config)
    return response


@router.post("/sweep", response_model=SweepResponse)
async def calculate_sweep(inputs: SweepInput):
    """Run the allocation across a range of achieved returns."""
    settings = get_settings()
    config = build_config(inputs)

    if inputs.return_rates is not None:
        return_rates = inputs.return_rates
    else:
        try:
            return_rates = generate_return_rates(
                start=inputs.start if inputs.start is not None else settings.sweep_start,
                stop=inputs.stop if inputs.stop is not None else settings.sweep_stop,
                step=inputs.step if inputs.step is not None else settings.sweep_step,
                max_points=settings.max_sweep_points,
            )
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    if len(return_rates) > settings.max_sweep_points:
        raise HTTPException(
            status_code=422,
            detail=f"Sweep exceeds {settings.max_sweep_points} points",
        )

    try:
        points = sweep(config, return_rates, stop_on_error=inputs.stop_on_error)
    except AllocationConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Sweep completed: {len(points)} scenarios")

    return SweepResponse(
        points=[
            SweepPointResponse(
                return_rate=point.return_rate,
                result=to_response(point.result) if point.result else None,
                error=point.error,
            )
            for point in points
        ],
        rows=tabulate_sweep(points),
        warnings=check_distribution_totals(config),
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate_distribution(inputs: DistributionInput):
    """Check that every distribution share table sums to 100%."""
    warnings = check_distribution_totals(build_config(inputs))
    return ValidationResponse(valid=not warnings, warnings=warnings)
