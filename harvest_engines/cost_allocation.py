"""
harvest_engines.cost_allocation -- Monetary cost of inventory reservations.

Responsibility:
    Price one reservation according to the cost model of the product it
    consumed, and sum those prices over the activities charged to a harvest.

        Divisible (consumable)
            cost = quantity_used x (unit_price / presentation_capacity)

        NonDivisible(L), L > 0 (durable tool)
            residual  = unit_price x residual_value_rate
            cost      = (unit_price - residual) / L
            One reservation is one use: quantity_used is NOT a multiplier.

        NonDivisible without a lifespan
            falls back to the divisible formula.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports harvest_kernel domain types only.

Invariants enforced:
    - Results are non-negative Decimals; no float arithmetic.
    - Division by a zero or absent presentation capacity never happens:
      MissingPresentationCapacityError is raised instead of producing
      NaN/Infinity.

Failure modes:
    - MissingPresentationCapacityError (a ComputationError) from the
      proportional branch when presentation_capacity is None or <= 0.

Usage:
    from harvest_engines.cost_allocation import CostAllocationPolicy

    policy = CostAllocationPolicy()
    result = policy.inventory_cost(activities=activity_lines)
    print(result.total)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from harvest_engines.tracer import traced_engine
from harvest_kernel.domain.cost_model import Divisible, NonDivisible
from harvest_kernel.domain.dtos import ActivityLine, ReservationLine
from harvest_kernel.exceptions import MissingPresentationCapacityError
from harvest_kernel.logging_config import get_logger

logger = get_logger("engines.cost_allocation")

DEFAULT_RESIDUAL_VALUE_RATE = Decimal("0.10")


class CostBasis(str, Enum):
    """Which formula priced a reservation."""

    PROPORTIONAL = "proportional"  # Consumable, pro rata
    PER_USE = "per_use"  # Durable tool, one use per reservation
    PROPORTIONAL_FALLBACK = "proportional_fallback"  # Tool with no lifespan


@dataclass(frozen=True)
class ReservationCost:
    """Cost of a single reservation and how it was derived."""

    reservation_id: UUID | None
    cost: Decimal
    basis: CostBasis


@dataclass(frozen=True)
class InventoryCostResult:
    """Inventory cost of a set of activities."""

    total: Decimal
    lines: tuple[ReservationCost, ...] = ()

    @property
    def reservation_count(self) -> int:
        return len(self.lines)


class CostAllocationPolicy:
    """
    Pure function calculator for reservation costs.

    Contract:
        No I/O, no database access, fully deterministic.
    Guarantees:
        - ``reservation_cost`` matches on the reservation's CostModel; the
          match is total over Divisible | NonDivisible.
        - ``inventory_cost`` visits every reservation of every activity in
          the order given.
    Non-goals:
        - Does not decide which activities belong to a harvest; the caller
          passes them in.
    """

    def __init__(self, residual_value_rate: Decimal = DEFAULT_RESIDUAL_VALUE_RATE):
        self.residual_value_rate = residual_value_rate

    def reservation_cost(self, reservation: ReservationLine) -> ReservationCost:
        """
        Cost of one reservation.

        Raises:
            MissingPresentationCapacityError: proportional branch with a zero
                or absent presentation capacity.
        """
        match reservation.cost_model:
            case NonDivisible() as tool if tool.has_lifespan:
                return ReservationCost(
                    reservation_id=reservation.reservation_id,
                    cost=self.cost_per_use(reservation.unit_price, tool.lifespan_uses),
                    basis=CostBasis.PER_USE,
                )
            case NonDivisible():
                return ReservationCost(
                    reservation_id=reservation.reservation_id,
                    cost=self._proportional_cost(reservation),
                    basis=CostBasis.PROPORTIONAL_FALLBACK,
                )
            case Divisible():
                return ReservationCost(
                    reservation_id=reservation.reservation_id,
                    cost=self._proportional_cost(reservation),
                    basis=CostBasis.PROPORTIONAL,
                )

    def cost_per_use(self, unit_price: Decimal, lifespan_uses: int) -> Decimal:
        """Depreciation charged for one use of a durable tool."""
        residual_value = unit_price * self.residual_value_rate
        return (unit_price - residual_value) / Decimal(lifespan_uses)

    def _proportional_cost(self, reservation: ReservationLine) -> Decimal:
        capacity = reservation.presentation_capacity
        if capacity is None or capacity <= 0:
            logger.error("presentation_capacity_missing", extra={
                "reservation_id": reservation.reservation_id,
                "presentation_capacity": capacity,
            })
            raise MissingPresentationCapacityError(reservation.reservation_id, capacity)
        return reservation.quantity_used * (reservation.unit_price / capacity)

    @traced_engine("cost_allocation", "1.0", fingerprint_fields=("activities", "used_only"))
    def inventory_cost(
        self,
        activities: Sequence[ActivityLine],
        used_only: bool = False,
    ) -> InventoryCostResult:
        """
        Sum the cost of every reservation of every activity.

        Args:
            activities: Activities charged to the harvest (or crop).
            used_only: Skip reservations whose quantity_used is zero.  The
                activity-based crop estimate only counts reservations that
                actually consumed something.

        Returns:
            InventoryCostResult with the total and one line per priced
            reservation.
        """
        lines: list[ReservationCost] = []
        for activity in activities:
            for reservation in activity.reservations:
                if used_only and reservation.quantity_used <= 0:
                    continue
                lines.append(self.reservation_cost(reservation))

        total = sum((line.cost for line in lines), Decimal("0"))

        logger.debug("inventory_cost_calculated", extra={
            "activity_count": len(activities),
            "reservation_count": len(lines),
            "total": str(total),
        })

        return InventoryCostResult(total=total, lines=tuple(lines))
