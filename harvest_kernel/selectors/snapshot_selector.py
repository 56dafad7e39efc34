"""
Module: harvest_kernel.selectors.snapshot_selector
Responsibility: Stored financial snapshots, per harvest and per crop-zone
    record.  Never recomputes anything.
"""

from uuid import UUID

from sqlalchemy import select

from harvest_kernel.domain.dtos import FinancialSnapshot
from harvest_kernel.models.financial_snapshot import FinancialSnapshotRecord
from harvest_kernel.models.harvest import Harvest
from harvest_kernel.selectors.base import BaseSelector


class SnapshotSelector(BaseSelector):
    """Read access to persisted financial snapshots."""

    def get_by_harvest(self, harvest_id: UUID) -> FinancialSnapshot | None:
        """
        Last persisted snapshot of a harvest.

        Returns:
            FinancialSnapshot if one has been computed, None otherwise.
        """
        row = self.session.execute(
            select(FinancialSnapshotRecord, Harvest.crop_zone_id)
            .join(Harvest, Harvest.id == FinancialSnapshotRecord.harvest_id)
            .where(FinancialSnapshotRecord.harvest_id == harvest_id)
        ).one_or_none()

        if row is None:
            return None

        record, crop_zone_id = row
        return FinancialSnapshot.from_model(record, crop_zone_id)

    def list_by_crop_zone(self, crop_zone_id: UUID) -> list[FinancialSnapshot]:
        """
        Stored snapshots of every harvest of a crop-zone record.

        Harvests that were never computed contribute nothing.  Ordered by
        harvest date, then harvest id.
        """
        records = self.session.execute(
            select(FinancialSnapshotRecord)
            .join(Harvest, Harvest.id == FinancialSnapshotRecord.harvest_id)
            .where(Harvest.crop_zone_id == crop_zone_id)
            .order_by(Harvest.harvest_date, Harvest.id)
        ).scalars().all()

        return [FinancialSnapshot.from_model(r, crop_zone_id) for r in records]
