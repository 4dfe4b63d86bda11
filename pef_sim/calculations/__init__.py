"""
Distribution Calculation Engine

Core calculation modules for the investment profit distribution simulator.
All calculations are pure functions over immutable inputs.
"""

from pef_sim.calculations import allocation, capital, formatting, numeric, sweep, validation

__all__ = ["allocation", "capital", "formatting", "numeric", "sweep", "validation"]
