"""
harvest_engines.summary -- Bounded, persist-ready financial summary of a harvest.

Responsibility:
    Combine the inventory cost, labor cost and revenue of one harvest into a
    FinancialSnapshot:

        production_cost = inventory_cost + labor_cost
        profit          = total_revenue - production_cost
        raw_margin      = total_revenue > 0 ? profit / total_revenue x 100 : 0
        margin          = clamp(raw_margin, margin_floor, margin_ceiling)

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The computation timestamp
    is passed in by the service; the builder never reads a clock.

Invariants enforced:
    - margin always lies within [margin_floor, margin_ceiling]
      (Numeric(5, 2) storage: [-999.99, 999.99] by default).
    - Revenue that is exactly zero implies margin == 0, whatever the cost.
    - Profit and margin are derived from the unrounded components; each
      stored field is quantized on its own as the last step.  A revenue of
      0.004 against a cost of 500 stores as 0.00 with a margin of -999.99.
    - Revenue that is positive but below low_revenue_threshold yields a
      LowConfidenceWarning on the snapshot; computation still proceeds.

Failure modes:
    None -- the cost engines raise before the builder runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from harvest_config.schema import FinancialsConfig
from harvest_engines.revenue import RevenueResult
from harvest_engines.tracer import traced_engine
from harvest_kernel.db.types import round_money, round_percent, round_quantity
from harvest_kernel.domain.dtos import FinancialSnapshot, HarvestRecord
from harvest_kernel.exceptions import LowConfidenceWarning
from harvest_kernel.logging_config import get_logger

logger = get_logger("engines.summary")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class MarginResult:
    """Margin before and after clamping."""

    raw_margin: Decimal
    margin: Decimal

    @property
    def was_clamped(self) -> bool:
        return self.raw_margin != self.margin


def profit_margin(profit: Decimal, total_revenue: Decimal) -> Decimal:
    """Profit as a percentage of revenue; zero when there is no revenue."""
    if total_revenue > 0:
        return profit / total_revenue * HUNDRED
    return Decimal("0")


def clamp_margin(raw_margin: Decimal, floor: Decimal, ceiling: Decimal) -> Decimal:
    return max(floor, min(ceiling, raw_margin))


def bounded_margin(
    profit: Decimal,
    total_revenue: Decimal,
    config: FinancialsConfig,
    clamp: bool = True,
) -> MarginResult:
    """
    Margin percentage rounded to storage precision, optionally clamped.

    The raw value is rounded to 2 places before clamping is judged, so a
    margin of exactly 999.99 is not reported as clamped.
    """
    raw = round_percent(profit_margin(profit, total_revenue))
    if not clamp:
        return MarginResult(raw_margin=raw, margin=raw)
    return MarginResult(
        raw_margin=raw,
        margin=clamp_margin(raw, config.margin_floor, config.margin_ceiling),
    )


class FinancialSummaryBuilder:
    """
    Pure function builder for per-harvest snapshots.

    Contract:
        No I/O, fully deterministic for a given ``computed_at``.
    Guarantees:
        - Identical inputs produce snapshots equal in every field.
    Non-goals:
        - Does not persist; HarvestFinancialsService writes the result.
    """

    def __init__(self, config: FinancialsConfig | None = None):
        self.config = config or FinancialsConfig()

    def low_confidence_warnings(
        self, total_revenue: Decimal
    ) -> tuple[LowConfidenceWarning, ...]:
        threshold = self.config.low_revenue_threshold
        if Decimal("0") < total_revenue < threshold:
            logger.warning("low_confidence_revenue", extra={
                "total_revenue": str(total_revenue),
                "threshold": str(threshold),
            })
            return (LowConfidenceWarning(total_revenue, threshold),)
        return ()

    @traced_engine(
        "financial_summary",
        "1.0",
        fingerprint_fields=("harvest", "inventory_cost", "labor_cost", "revenue"),
    )
    def build(
        self,
        harvest: HarvestRecord,
        inventory_cost: Decimal,
        labor_cost: Decimal,
        revenue: RevenueResult,
        computed_at: datetime,
    ) -> FinancialSnapshot:
        """
        Build the snapshot of one harvest.

        Args:
            harvest: Harvest header (id, crop zone, harvested quantity).
            inventory_cost: Reservation costs charged to the harvest.
            labor_cost: Labor cost charged to the harvest.
            revenue: Revenue components from RevenueAggregator.
            computed_at: Timestamp recorded on the snapshot.

        Returns:
            FinancialSnapshot with is_persisted=False.
        """
        warnings = self.low_confidence_warnings(revenue.total_revenue)

        production_cost = inventory_cost + labor_cost
        profit = revenue.total_revenue - production_cost
        margin = bounded_margin(profit, revenue.total_revenue, self.config)

        if margin.was_clamped:
            logger.warning("margin_clamped", extra={
                "harvest_id": harvest.harvest_id,
                "raw_margin": str(margin.raw_margin),
                "margin": str(margin.margin),
            })

        snapshot = FinancialSnapshot(
            crop_zone_id=harvest.crop_zone_id,
            harvest_id=harvest.harvest_id,
            harvested_quantity=round_quantity(harvest.harvested_quantity),
            unit_price=round_money(revenue.average_unit_price),
            sold_quantity=round_quantity(revenue.sold_quantity),
            inventory_cost=round_money(inventory_cost),
            labor_cost=round_money(labor_cost),
            total_production_cost=round_money(production_cost),
            total_revenue=round_money(revenue.total_revenue),
            profit=round_money(profit),
            margin=margin.margin,
            computed_at=computed_at,
            warnings=warnings,
        )

        logger.info("harvest_summary_built", extra={
            "harvest_id": harvest.harvest_id,
            "production_cost": snapshot.total_production_cost,
            "total_revenue": snapshot.total_revenue,
            "profit": snapshot.profit,
            "margin": snapshot.margin,
        })
        return snapshot
