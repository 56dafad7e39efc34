"""
Module: harvest_kernel.selectors.harvest_selector
Responsibility: Harvest lookups by id and by crop-zone record, with sales
    eagerly loaded.  Harvests already in the session are refreshed
    (populate_existing) so sales recorded since the last read are seen.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from harvest_kernel.domain.dtos import HarvestRecord
from harvest_kernel.models.harvest import Harvest
from harvest_kernel.selectors.base import BaseSelector


class HarvestSelector(BaseSelector):
    """Read access to harvests."""

    def get_harvest(self, harvest_id: UUID) -> HarvestRecord | None:
        """
        Get a harvest with its sales.

        Returns:
            HarvestRecord if found, None otherwise.
        """
        harvest = self.session.execute(
            select(Harvest)
            .options(selectinload(Harvest.sales))
            .where(Harvest.id == harvest_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if harvest is None:
            return None

        return HarvestRecord.from_model(harvest)

    def list_by_crop_zone(self, crop_zone_id: UUID) -> list[HarvestRecord]:
        """
        All harvests of a crop-zone record, oldest first.

        Ties on harvest_date are broken by id so repeated calls always
        return the same order.
        """
        harvests = self.session.execute(
            select(Harvest)
            .options(selectinload(Harvest.sales))
            .where(Harvest.crop_zone_id == crop_zone_id)
            .order_by(Harvest.harvest_date, Harvest.id)
            .execution_options(populate_existing=True)
        ).scalars().all()

        return [HarvestRecord.from_model(h) for h in harvests]
