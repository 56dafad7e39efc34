"""
harvest_engines.components -- Cost and revenue components of one harvest.

Runs the three leaf engines (inventory cost, labor cost, revenue) over the
inputs of a single harvest.  Both the per-harvest summary and the crop-level
aggregate are built from these components, so a crop total can never drift
from the sum of its harvests.

Every activity of the crop-zone record is charged in full to each of its
harvests; activities are not split between harvests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from harvest_config.schema import FinancialsConfig
from harvest_engines.cost_allocation import CostAllocationPolicy, InventoryCostResult
from harvest_engines.labor import LaborCostAggregator
from harvest_engines.revenue import RevenueAggregator, RevenueResult
from harvest_kernel.domain.dtos import ActivityLine, HarvestRecord, SaleLine


@dataclass(frozen=True)
class HarvestComponents:
    """Unrounded cost and revenue components of one harvest."""

    harvest: HarvestRecord
    inventory: InventoryCostResult
    labor_cost: Decimal
    revenue: RevenueResult

    @property
    def inventory_cost(self) -> Decimal:
        return self.inventory.total


class HarvestComponentsCalculator:
    """
    Composes CostAllocationPolicy, LaborCostAggregator and RevenueAggregator.

    Raises whatever the cost policy raises (MissingPresentationCapacityError);
    nothing is computed partially.
    """

    def __init__(
        self,
        config: FinancialsConfig | None = None,
        cost_policy: CostAllocationPolicy | None = None,
        labor: LaborCostAggregator | None = None,
        revenue: RevenueAggregator | None = None,
    ):
        config = config or FinancialsConfig()
        self.cost_policy = cost_policy or CostAllocationPolicy(config.residual_value_rate)
        self.labor = labor or LaborCostAggregator()
        self.revenue = revenue or RevenueAggregator()

    def compute(
        self,
        harvest: HarvestRecord,
        activities: Sequence[ActivityLine],
        sales: Sequence[SaleLine] | None = None,
    ) -> HarvestComponents:
        """
        Args:
            harvest: The harvest being costed.
            activities: Activities of the harvest's crop-zone record.
            sales: Sales of the harvest; defaults to ``harvest.sales``.
        """
        if sales is None:
            sales = harvest.sales
        return HarvestComponents(
            harvest=harvest,
            inventory=self.cost_policy.inventory_cost(activities=activities),
            labor_cost=self.labor.labor_cost(activities=activities),
            revenue=self.revenue.aggregate(sales=sales),
        )
