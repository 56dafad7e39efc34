"""
Module: harvest_kernel.models.harvest
Responsibility: ORM persistence for harvests and the sales recorded against
    them.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A harvest belongs to exactly one crop-zone record.
    - A harvest owns at most one financial snapshot (uq on the snapshot
      side); the snapshot is deleted with the harvest.
    - Sales reduce available_quantity; they never touch the snapshot.
      Recomputation replaces the snapshot, it never accumulates.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from harvest_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from harvest_kernel.models.crop_zone import CropZone
    from harvest_kernel.models.financial_snapshot import FinancialSnapshotRecord


class Harvest(TrackedBase):
    """
    One recorded extraction of product from a crop-zone record.

    Contract:
        quantity is the harvested amount in unit_of_measure.  Sales reduce
        available_quantity; is_closed is set when the harvest is explicitly
        closed.
    """

    __tablename__ = "harvests"

    __table_args__ = (
        Index("idx_harvest_crop_zone", "crop_zone_id"),
        Index("idx_harvest_date", "harvest_date"),
    )

    crop_zone_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("crop_zones.id", ondelete="CASCADE"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Numeric(14, 3),
        nullable=False,
    )

    unit_of_measure: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="kg",
    )

    harvest_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    available_quantity: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 3),
        nullable=True,
    )

    crop_zone: Mapped["CropZone"] = relationship(back_populates="harvests")

    sales: Mapped[list["Sale"]] = relationship(
        back_populates="harvest",
        cascade="all, delete-orphan",
        order_by="Sale.sale_date",
    )

    financial_snapshot: Mapped["FinancialSnapshotRecord | None"] = relationship(
        back_populates="harvest",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Harvest {self.id}: crop_zone={self.crop_zone_id} "
            f"qty={self.quantity} {self.unit_of_measure}>"
        )


class Sale(TrackedBase):
    """One sale transaction against a harvest."""

    __tablename__ = "sales"

    __table_args__ = (
        Index("idx_sale_harvest", "harvest_id"),
    )

    harvest_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("harvests.id", ondelete="CASCADE"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Numeric(14, 3),
        nullable=False,
    )

    # Price per unit of measure (per kilo for most crops)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    sale_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    harvest: Mapped["Harvest"] = relationship(back_populates="sales")

    def __repr__(self) -> str:
        return f"<Sale {self.id}: harvest={self.harvest_id} {self.quantity} @ {self.unit_price}>"
