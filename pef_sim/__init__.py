"""
PEF Distribution Simulator.
"""

__version__ = "0.1.0"
