"""
harvest_engines.multi_harvest -- Crop-level financial aggregates.

Responsibility:
    Aggregate the per-harvest components of every harvest of a crop-zone
    record into one non-persisted FinancialSnapshot, and estimate the cost of
    a crop from its activities alone (before, or regardless of, any harvest).

        total_X                = sum over harvests of X_h
        weighted_average_price = total_sold > 0 ? total_revenue / total_sold : 0
        production_cost        = total_inventory + total_labor
        profit                 = total_revenue - production_cost
        margin                 = total_revenue > 0 ? profit / total_revenue x 100 : 0

    Everything is derived from the unrounded sums and quantized last, as
    FinancialSummaryBuilder does for a single harvest.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The crop inventory cost is the sum of the per-harvest inventory costs,
      rounded once.
    - The margin guard is on revenue, as for a single harvest; zero revenue
      never divides.
    - Margin is clamped to the configured bounds unless clamp_crop_margin is
      off.
    - Crop-level snapshots have harvest_id=None and is_persisted=False.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from harvest_config.schema import FinancialsConfig
from harvest_engines.components import HarvestComponents
from harvest_engines.cost_allocation import CostAllocationPolicy
from harvest_engines.labor import LaborCostAggregator
from harvest_engines.summary import FinancialSummaryBuilder, bounded_margin
from harvest_engines.tracer import traced_engine
from harvest_kernel.db.types import ZERO, round_money, round_quantity
from harvest_kernel.domain.dtos import ActivityLine, FinancialSnapshot
from harvest_kernel.logging_config import get_logger

logger = get_logger("engines.multi_harvest")


class MultiHarvestAggregator:
    """
    Pure function aggregator over the harvests of one crop-zone record.

    Contract:
        No I/O.  The caller supplies the per-harvest components and the
        computation timestamp.
    Non-goals:
        - Does not persist; crop-level values are always recomputed.
    """

    def __init__(
        self,
        config: FinancialsConfig | None = None,
        cost_policy: CostAllocationPolicy | None = None,
        labor: LaborCostAggregator | None = None,
    ):
        self.config = config or FinancialsConfig()
        self.cost_policy = cost_policy or CostAllocationPolicy(
            self.config.residual_value_rate
        )
        self.labor = labor or LaborCostAggregator()
        self._summary = FinancialSummaryBuilder(self.config)

    @traced_engine("multi_harvest", "1.0", fingerprint_fields=("crop_zone_id",))
    def aggregate(
        self,
        crop_zone_id: UUID,
        components: Sequence[HarvestComponents],
        computed_at: datetime,
    ) -> FinancialSnapshot:
        """
        Crop-level snapshot from the components of each harvest.

        Args:
            crop_zone_id: The crop-zone record being aggregated.
            components: One HarvestComponents per harvest of the crop.
            computed_at: Timestamp recorded on the snapshot.

        Returns:
            FinancialSnapshot with harvest_id=None.  An empty ``components``
            yields an all-zero snapshot; the service rejects that case first.
        """
        total_harvested = ZERO
        total_sold = ZERO
        total_inventory = ZERO
        total_labor = ZERO
        total_revenue = ZERO

        for item in components:
            total_harvested += item.harvest.harvested_quantity
            total_sold += item.revenue.sold_quantity
            total_inventory += item.inventory_cost
            total_labor += item.labor_cost
            total_revenue += item.revenue.total_revenue

        if total_sold > 0:
            weighted_price = total_revenue / total_sold
        else:
            weighted_price = ZERO

        production_cost = total_inventory + total_labor
        profit = total_revenue - production_cost
        margin = bounded_margin(
            profit, total_revenue, self.config, clamp=self.config.clamp_crop_margin
        )
        if margin.was_clamped:
            logger.warning("margin_clamped", extra={
                "crop_zone_id": crop_zone_id,
                "raw_margin": str(margin.raw_margin),
                "margin": str(margin.margin),
            })

        snapshot = FinancialSnapshot(
            crop_zone_id=crop_zone_id,
            harvest_id=None,
            harvested_quantity=round_quantity(total_harvested),
            unit_price=round_money(weighted_price),
            sold_quantity=round_quantity(total_sold),
            inventory_cost=round_money(total_inventory),
            labor_cost=round_money(total_labor),
            total_production_cost=round_money(production_cost),
            total_revenue=round_money(total_revenue),
            profit=round_money(profit),
            margin=margin.margin,
            computed_at=computed_at,
            warnings=self._summary.low_confidence_warnings(total_revenue),
        )

        logger.info("crop_financials_aggregated", extra={
            "crop_zone_id": crop_zone_id,
            "harvest_count": len(components),
            "total_inventory_cost": snapshot.inventory_cost,
            "total_labor_cost": snapshot.labor_cost,
            "total_revenue": snapshot.total_revenue,
            "profit": snapshot.profit,
            "margin": snapshot.margin,
        })
        return snapshot

    @traced_engine(
        "activity_cost_estimate", "1.0", fingerprint_fields=("crop_zone_id", "activities")
    )
    def estimate_from_activities(
        self,
        crop_zone_id: UUID,
        activities: Sequence[ActivityLine],
        computed_at: datetime,
    ) -> FinancialSnapshot:
        """
        Production cost of a crop from its activities, ignoring harvests.

        Reservations that used nothing are skipped.  Revenue is taken as
        zero, so profit is the negated production cost and margin is 0.

        Durable-tool uses are priced by the same CostAllocationPolicy as a
        harvest, unrounded, and the total is rounded once.  Residual value
        and cost per use are not rounded to cents individually, so the
        estimate of an activity set always matches the inventory cost a
        harvest charged with those activities would store.
        """
        inventory = round_money(
            self.cost_policy.inventory_cost(activities=activities, used_only=True).total
        )
        labor = round_money(self.labor.labor_cost(activities=activities))
        production_cost = inventory + labor

        logger.info("crop_activity_costs_estimated", extra={
            "crop_zone_id": crop_zone_id,
            "activity_count": len(activities),
            "inventory_cost": str(inventory),
            "labor_cost": str(labor),
        })

        return FinancialSnapshot(
            crop_zone_id=crop_zone_id,
            harvest_id=None,
            harvested_quantity=ZERO,
            unit_price=ZERO,
            sold_quantity=ZERO,
            inventory_cost=inventory,
            labor_cost=labor,
            total_production_cost=production_cost,
            total_revenue=ZERO,
            profit=-production_cost,
            margin=ZERO,
            computed_at=computed_at,
        )
