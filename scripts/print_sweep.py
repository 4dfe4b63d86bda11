"""
Print a scenario sweep table for the default three-type structure.

Usage:
    python scripts/print_sweep.py [start] [stop] [step]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pef_sim.config import get_settings
from pef_sim.calculations.allocation import GlobalDistribution, InvestmentConfig
from pef_sim.calculations.capital import TrancheInput, resolve_tranches
from pef_sim.calculations.formatting import format_currency, format_percentage
from pef_sim.calculations.sweep import generate_return_rates, sweep


def main():
    settings = get_settings()

    args = [float(arg) for arg in sys.argv[1:4]]
    start, stop, step = args + [settings.sweep_start, settings.sweep_stop, settings.sweep_step][len(args):]

    # 100 base, type2 = 14% of base, type3 = 1% of base
    tranches = resolve_tranches(
        [
            TrancheInput(id="type1", name="Type 1", investment=100, input_mode="amount", is_base=True),
            TrancheInput(id="type2", name="Type 2", investment=14),
            TrancheInput(id="type3", name="Type 3", investment=1),
        ],
        unit=settings.currency_unit,
    )
    config = InvestmentConfig(
        tranches=tranches,
        threshold_return=7.0,
        investment_period=2.0,
        distribution=GlobalDistribution(shares={"type1": 15, "type2": 70, "type3": 15}),
    )

    points = sweep(config, generate_return_rates(start, stop, step))

    header = f"{'Rate':>8}  {'Scenario':<10}"
    for tranche in tranches:
        header += f"  {tranche.name + ' value':>16}  {tranche.name + ' cum':>12}"
    print(header)
    print("-" * len(header))

    for point in points:
        line = f"{format_percentage(point.return_rate, 1):>8}  {point.result.scenario_type:<10}"
        for tranche in point.result.tranches:
            line += f"  {format_currency(tranche.ending_value):>16}"
            line += f"  {format_percentage(tranche.cumulative_return):>12}"
        print(line)

    print(f"\n{len(points)} scenarios")


if __name__ == "__main__":
    main()
