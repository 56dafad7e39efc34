"""
Module: harvest_kernel.models.crop_zone
Responsibility: ORM persistence for crop-zone records -- one crop variety
    planted in one physical zone.  The crop-zone record is the unit that
    owns activities and harvests.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from harvest_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from harvest_kernel.models.activity import Activity
    from harvest_kernel.models.harvest import Harvest


class CropZone(TrackedBase):
    """A crop variety planted in a zone."""

    __tablename__ = "crop_zones"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    crop_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    zone_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    harvests: Mapped[list["Harvest"]] = relationship(
        back_populates="crop_zone",
        cascade="all, delete-orphan",
    )

    activities: Mapped[list["Activity"]] = relationship(
        back_populates="crop_zone",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<CropZone {self.id}: {self.name}>"
