"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow between the selectors,
    the calculation engines and the service:

        HarvestRecord, ActivityLine, ReservationLine, SaleLine   (engine input)
        FinancialSnapshot                                        (output)

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the selector layer (never from engine logic).

Invariants enforced:
    - Engines accept/return DTOs, never ORM entities.
    - Decimal-only numeric fields; NULL hours, rates and quantities are
      normalized to zero at the boundary, NULL presentation capacity is kept
      as None so the cost engine can reject it.
    - The cost model of a reservation is resolved exactly once, here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from harvest_kernel.db.types import to_decimal
from harvest_kernel.domain.cost_model import CostModel, resolve_cost_model
from harvest_kernel.exceptions import HarvestFinanceWarning

if TYPE_CHECKING:
    from harvest_kernel.models.activity import Activity as ActivityModel
    from harvest_kernel.models.activity import Reservation as ReservationModel
    from harvest_kernel.models.financial_snapshot import FinancialSnapshotRecord
    from harvest_kernel.models.harvest import Harvest as HarvestModel
    from harvest_kernel.models.harvest import Sale as SaleModel


@dataclass(frozen=True)
class ReservationLine:
    """One inventory consumption, ready to be costed."""

    reservation_id: UUID | None
    quantity_used: Decimal
    unit_price: Decimal
    presentation_capacity: Decimal | None
    cost_model: CostModel

    @classmethod
    def from_model(cls, reservation: ReservationModel) -> ReservationLine:
        product = reservation.lot.product if reservation.lot is not None else None
        category = product.category if product is not None else None
        cost_model = resolve_cost_model(
            category.is_divisible if category is not None else None,
            product.average_lifespan_uses if product is not None else None,
        )
        return cls(
            reservation_id=reservation.id,
            quantity_used=to_decimal(reservation.quantity_used),
            unit_price=to_decimal(reservation.product_unit_price),
            presentation_capacity=reservation.presentation_capacity,
            cost_model=cost_model,
        )


@dataclass(frozen=True)
class ActivityLine:
    """One activity with its labor inputs and consumed reservations."""

    activity_id: UUID | None
    hours_dedicated: Decimal
    hourly_rate: Decimal
    reservations: tuple[ReservationLine, ...] = ()

    @classmethod
    def from_model(cls, activity: ActivityModel) -> ActivityLine:
        return cls(
            activity_id=activity.id,
            hours_dedicated=to_decimal(activity.hours_dedicated),
            hourly_rate=to_decimal(activity.hourly_rate),
            reservations=tuple(
                ReservationLine.from_model(r) for r in activity.reservations
            ),
        )


@dataclass(frozen=True)
class SaleLine:
    """One sale against a harvest."""

    sale_id: UUID | None
    quantity: Decimal
    unit_price: Decimal

    @classmethod
    def from_model(cls, sale: SaleModel) -> SaleLine:
        return cls(
            sale_id=sale.id,
            quantity=to_decimal(sale.quantity),
            unit_price=to_decimal(sale.unit_price),
        )


@dataclass(frozen=True)
class HarvestRecord:
    """Harvest header with its sales, as seen by the engines."""

    harvest_id: UUID
    crop_zone_id: UUID
    harvested_quantity: Decimal
    unit_of_measure: str
    harvest_date: date
    is_closed: bool
    sales: tuple[SaleLine, ...] = ()

    @property
    def sold_quantity(self) -> Decimal:
        return sum((s.quantity for s in self.sales), Decimal("0"))

    @classmethod
    def from_model(cls, harvest: HarvestModel) -> HarvestRecord:
        return cls(
            harvest_id=harvest.id,
            crop_zone_id=harvest.crop_zone_id,
            harvested_quantity=to_decimal(harvest.quantity),
            unit_of_measure=harvest.unit_of_measure,
            harvest_date=harvest.harvest_date,
            is_closed=harvest.is_closed,
            sales=tuple(SaleLine.from_model(s) for s in harvest.sales),
        )


@dataclass(frozen=True)
class FinancialSnapshot:
    """
    Point-in-time financial summary of a harvest or of a whole crop.

    Contract:
        For a harvest, ``harvest_id`` is set and ``is_persisted`` tells
        whether the value mirrors a stored row.  Crop-level aggregates have
        ``harvest_id=None`` and are never persisted.

    Guarantees:
        - Monetary fields carry 2 decimal places, quantities 3, margin 2.
        - ``warnings`` holds non-fatal notices (e.g. LowConfidenceWarning);
          it is not part of the stored row.
    """

    crop_zone_id: UUID
    harvest_id: UUID | None
    harvested_quantity: Decimal
    unit_price: Decimal
    sold_quantity: Decimal
    inventory_cost: Decimal
    labor_cost: Decimal
    total_production_cost: Decimal
    total_revenue: Decimal
    profit: Decimal
    margin: Decimal
    computed_at: datetime
    is_persisted: bool = False
    warnings: tuple[HarvestFinanceWarning, ...] = field(default=(), compare=False)

    @property
    def is_low_confidence(self) -> bool:
        return bool(self.warnings)

    def financial_fields(self) -> dict[str, Decimal]:
        """Numeric fields only -- used to compare recomputations."""
        return {
            "harvested_quantity": self.harvested_quantity,
            "unit_price": self.unit_price,
            "sold_quantity": self.sold_quantity,
            "inventory_cost": self.inventory_cost,
            "labor_cost": self.labor_cost,
            "total_production_cost": self.total_production_cost,
            "total_revenue": self.total_revenue,
            "profit": self.profit,
            "margin": self.margin,
        }

    @classmethod
    def from_model(
        cls,
        record: FinancialSnapshotRecord,
        crop_zone_id: UUID,
    ) -> FinancialSnapshot:
        computed_at = record.computed_at
        # SQLite drops tzinfo on the way back
        if computed_at.tzinfo is None:
            computed_at = computed_at.replace(tzinfo=timezone.utc)
        return cls(
            crop_zone_id=crop_zone_id,
            harvest_id=record.harvest_id,
            harvested_quantity=record.harvested_quantity,
            unit_price=record.unit_price,
            sold_quantity=record.sold_quantity,
            inventory_cost=record.inventory_cost,
            labor_cost=record.labor_cost,
            total_production_cost=record.total_production_cost,
            total_revenue=record.total_revenue,
            profit=record.profit,
            margin=record.margin,
            computed_at=computed_at,
            is_persisted=True,
        )
