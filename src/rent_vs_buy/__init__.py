"""
Rent vs. Buy projection engine.

Simulates, month by month, the wealth of a household that buys a home
financed by up to three stacked loans against one that rents and invests
the difference, and reports yearly net worth snapshots for both.
"""

from .schemas import (
    MortgageDetails,
    SimulationParams,
    SimulationResult,
    SimulationSummary,
    MonthlyRecord,
    YearlyRecord,
)
from .model import simulate
from .config import load_params

__all__ = [
    "MortgageDetails",
    "SimulationParams",
    "SimulationResult",
    "SimulationSummary",
    "MonthlyRecord",
    "YearlyRecord",
    "simulate",
    "load_params",
]
