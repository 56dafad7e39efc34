"""
Module: harvest_kernel.selectors.activity_selector
Responsibility: Activities of a crop-zone record, with the full
    reservation -> lot -> product -> category chain eagerly loaded so every
    reservation's cost model can be resolved without further queries.
    Rows already in the session are refreshed on every read.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from harvest_kernel.domain.dtos import ActivityLine
from harvest_kernel.models.activity import Activity, Reservation
from harvest_kernel.models.inventory import InventoryLot, Product
from harvest_kernel.selectors.base import BaseSelector


class ActivitySelector(BaseSelector):
    """Read access to activities and their reservations."""

    def list_by_crop_zone(self, crop_zone_id: UUID) -> list[ActivityLine]:
        """
        All activities recorded against a crop-zone record.

        Args:
            crop_zone_id: Crop-zone record id.

        Returns:
            ActivityLine DTOs, ordered by activity id for deterministic sums.
        """
        activities = self.session.execute(
            select(Activity)
            .options(
                selectinload(Activity.reservations)
                .selectinload(Reservation.lot)
                .selectinload(InventoryLot.product)
                .selectinload(Product.category)
            )
            .where(Activity.crop_zone_id == crop_zone_id)
            .order_by(Activity.id)
            .execution_options(populate_existing=True)
        ).scalars().all()

        return [ActivityLine.from_model(a) for a in activities]
