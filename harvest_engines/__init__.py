"""
Pure calculation engines for harvest financials.

Engines take domain DTOs and return values; they never touch a Session,
a clock or the environment.
"""

from harvest_engines.components import HarvestComponents, HarvestComponentsCalculator
from harvest_engines.cost_allocation import (
    CostAllocationPolicy,
    CostBasis,
    InventoryCostResult,
    ReservationCost,
)
from harvest_engines.labor import LaborCostAggregator
from harvest_engines.multi_harvest import MultiHarvestAggregator
from harvest_engines.revenue import RevenueAggregator, RevenueResult
from harvest_engines.summary import FinancialSummaryBuilder, MarginResult

__all__ = [
    "CostAllocationPolicy",
    "CostBasis",
    "FinancialSummaryBuilder",
    "HarvestComponents",
    "HarvestComponentsCalculator",
    "InventoryCostResult",
    "LaborCostAggregator",
    "MarginResult",
    "MultiHarvestAggregator",
    "RevenueAggregator",
    "RevenueResult",
    "ReservationCost",
]
