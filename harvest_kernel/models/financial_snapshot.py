"""
Module: harvest_kernel.models.financial_snapshot
Responsibility: ORM persistence for the point-in-time financial summary of a
    harvest.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One snapshot per harvest (unique harvest_id).  Recomputation overwrites
      the row in place; nothing is accumulated.
    - margin is stored as Numeric(5, 2) and therefore always lies within
      [-999.99, 999.99]; the summary builder clamps before writing.
    - Monetary and quantity columns are non-negative except profit and margin.
    - The row is deleted only together with its harvest.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from harvest_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from harvest_kernel.models.harvest import Harvest


class FinancialSnapshotRecord(Base):
    """
    Persisted financial snapshot of one harvest.

    Contract:
        Written only by HarvestFinancialsService.compute_harvest_financials.
        Every field is replaced on each recomputation.
    """

    __tablename__ = "harvest_financial_snapshots"

    __table_args__ = (
        UniqueConstraint("harvest_id", name="uq_snapshot_harvest"),
        CheckConstraint(
            "margin >= -999.99 AND margin <= 999.99",
            name="ck_snapshot_margin_bounds",
        ),
    )

    harvest_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("harvests.id", ondelete="CASCADE"),
        nullable=False,
    )

    harvested_quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)

    # Simple average of listed sale prices
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    sold_quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)

    inventory_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    labor_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    total_production_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    total_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    profit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    margin: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    harvest: Mapped["Harvest"] = relationship(back_populates="financial_snapshot")

    def __repr__(self) -> str:
        return (
            f"<FinancialSnapshot harvest={self.harvest_id} "
            f"revenue={self.total_revenue} profit={self.profit} margin={self.margin}>"
        )
