"""
Module: harvest_kernel.models.activity
Responsibility: ORM persistence for activities performed on a crop-zone
    record and the inventory reservations they consume.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Reservations are historical facts: product_unit_price and
      presentation_capacity are copied from the product at reservation time
      and never change afterwards.
    - hours_dedicated, hourly_rate and quantity_used may be NULL; NULL counts
      as zero when costing.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from harvest_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from harvest_kernel.models.crop_zone import CropZone
    from harvest_kernel.models.inventory import InventoryLot


class Activity(TrackedBase):
    """A unit of work performed on a crop-zone record."""

    __tablename__ = "activities"

    __table_args__ = (
        Index("idx_activity_crop_zone", "crop_zone_id"),
    )

    crop_zone_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("crop_zones.id", ondelete="CASCADE"),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    hours_dedicated: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    hourly_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 2),
        nullable=True,
    )

    activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    crop_zone: Mapped["CropZone"] = relationship(back_populates="activities")

    reservations: Mapped[list["Reservation"]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Activity {self.id}: crop_zone={self.crop_zone_id}>"


class Reservation(TrackedBase):
    """One consumption of a product lot during an activity."""

    __tablename__ = "activity_reservations"

    __table_args__ = (
        Index("idx_reservation_activity", "activity_id"),
    )

    activity_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("activities.id", ondelete="CASCADE"),
        nullable=False,
    )

    lot_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_lots.id"),
        nullable=False,
    )

    quantity_used: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 3),
        nullable=True,
    )

    # Price of one presentation of the product at reservation time
    product_unit_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    # Units contained in one presentation (e.g. 50 kg per bag)
    presentation_capacity: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 3),
        nullable=True,
    )

    activity: Mapped["Activity"] = relationship(back_populates="reservations")

    lot: Mapped["InventoryLot"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: activity={self.activity_id} "
            f"used={self.quantity_used} @ {self.product_unit_price}>"
        )
