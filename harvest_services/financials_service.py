"""
HarvestFinancialsService -- per-harvest and per-crop financial summaries.

Responsibility:
    Orchestrates selectors (read), engines (compute) and the snapshot table
    (write):

        compute_harvest_financials      recompute + persist one harvest
        get_stored_financials           last persisted snapshot of a harvest
        list_crop_financials            persisted snapshots of a crop
        compute_crop_financials_dynamic recompute a crop across its harvests
        estimate_crop_activity_costs    cost a crop from its activities only

Architecture position:
    Services -- imperative shell over harvest_engines and harvest_kernel.

Invariants enforced:
    - Recomputation of one harvest is serialized: per-harvest lock in
      process, plus ``SELECT ... FOR UPDATE`` on the harvest row.
    - Everything is computed before anything is written.  A failed
      computation raises and leaves the stored snapshot as it was.
    - At most one snapshot row per harvest; recomputation overwrites it.
    - The service flushes, it never commits.  recompute_harvest_financials
      is the unit-of-work entrypoint that commits or rolls back.

Failure modes:
    - HarvestNotFoundError, CropHarvestsNotFoundError,
      CropActivitiesNotFoundError -- surfaced directly, no retry.
    - MissingPresentationCapacityError -- a reservation cannot be costed.
"""

from __future__ import annotations

import time
from dataclasses import replace
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from harvest_config import FinancialsConfig, HarvestFinanceConfig, get_active_config
from harvest_engines.components import HarvestComponentsCalculator
from harvest_engines.multi_harvest import MultiHarvestAggregator
from harvest_engines.summary import FinancialSummaryBuilder
from harvest_kernel.db.engine import session_scope
from harvest_kernel.domain.clock import Clock, SystemClock
from harvest_kernel.domain.dtos import FinancialSnapshot
from harvest_kernel.exceptions import (
    CropActivitiesNotFoundError,
    CropHarvestsNotFoundError,
    HarvestNotFoundError,
)
from harvest_kernel.logging_config import LogContext, get_logger
from harvest_kernel.models.financial_snapshot import FinancialSnapshotRecord
from harvest_kernel.models.harvest import Harvest
from harvest_kernel.selectors import (
    ActivitySelector,
    HarvestSelector,
    SaleSelector,
    SnapshotSelector,
)
from harvest_kernel.services.base import BaseService
from harvest_services.harvest_locks import HarvestLockRegistry, default_lock_registry

logger = get_logger("services.financials")


class HarvestFinancialsService(BaseService):
    """
    Financial summaries of harvests and crops.

    Contract:
        Accepts a Session owned by the caller.  Writes (snapshot upserts)
        are flushed, never committed.

    Guarantees:
        - compute_harvest_financials returns the snapshot exactly as stored,
          with is_persisted=True.
        - Crop-level results are never persisted.

    Usage:
        service = HarvestFinancialsService(session, clock=SystemClock())
        snapshot = service.compute_harvest_financials(harvest_id)
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: FinancialsConfig | None = None,
        locks: HarvestLockRegistry | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or FinancialsConfig()
        self._locks = locks if locks is not None else default_lock_registry

        self._harvests = HarvestSelector(session)
        self._activities = ActivitySelector(session)
        self._sales = SaleSelector(session)
        self._snapshots = SnapshotSelector(session)

        self._components = HarvestComponentsCalculator(self._config)
        self._summary = FinancialSummaryBuilder(self._config)
        self._aggregator = MultiHarvestAggregator(self._config)

    @classmethod
    def from_config(
        cls,
        session: Session,
        config: HarvestFinanceConfig | None = None,
        clock: Clock | None = None,
        locks: HarvestLockRegistry | None = None,
    ) -> HarvestFinancialsService:
        """Service using the financials policy of ``config`` (default: the active set)."""
        if config is None:
            config = get_active_config()
        return cls(session, clock=clock, config=config.financials, locks=locks)

    # ------------------------------------------------------------------
    # Per-harvest
    # ------------------------------------------------------------------

    def compute_harvest_financials(self, harvest_id: UUID) -> FinancialSnapshot:
        """
        Recompute the financial summary of a harvest and persist it.

        Any previously stored snapshot of the harvest is replaced.

        Raises:
            HarvestNotFoundError: No harvest with this id.
            ComputationError: A reservation cannot be costed; nothing is
                written.
        """
        with LogContext.bind(correlation_id=str(uuid4()), harvest_id=str(harvest_id)):
            logger.info("harvest_financials_started")
            t0 = time.monotonic()

            with self._locks.hold(harvest_id):
                self._lock_harvest_row(harvest_id)

                harvest = self._harvests.get_harvest(harvest_id)
                if harvest is None:
                    raise HarvestNotFoundError(harvest_id)

                with LogContext.bind(crop_zone_id=harvest.crop_zone_id):
                    activities = self._activities.list_by_crop_zone(harvest.crop_zone_id)
                    sales = self._sales.list_by_harvest(harvest_id)

                    components = self._components.compute(
                        harvest=harvest, activities=activities, sales=sales
                    )
                    snapshot = self._summary.build(
                        harvest=harvest,
                        inventory_cost=components.inventory_cost,
                        labor_cost=components.labor_cost,
                        revenue=components.revenue,
                        computed_at=self._clock.now(),
                    )

                    self._save_snapshot(snapshot)

                    logger.info(
                        "harvest_financials_completed",
                        extra={
                            "activity_count": len(activities),
                            "sale_count": len(sales),
                            "profit": snapshot.profit,
                            "margin": snapshot.margin,
                            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                        },
                    )
            return replace(snapshot, is_persisted=True)

    def get_stored_financials(self, harvest_id: UUID) -> FinancialSnapshot | None:
        """Last persisted snapshot of a harvest, or None if never computed."""
        return self._snapshots.get_by_harvest(harvest_id)

    def _lock_harvest_row(self, harvest_id: UUID) -> None:
        locked = self.session.execute(
            select(Harvest.id)
            .where(Harvest.id == harvest_id)
            .with_for_update()
        ).scalar_one_or_none()

        if locked is None:
            logger.warning("harvest_not_found")
            raise HarvestNotFoundError(harvest_id)

    def _save_snapshot(self, snapshot: FinancialSnapshot) -> None:
        record = self.session.execute(
            select(FinancialSnapshotRecord)
            .where(FinancialSnapshotRecord.harvest_id == snapshot.harvest_id)
        ).scalar_one_or_none()

        if record is None:
            record = FinancialSnapshotRecord(harvest_id=snapshot.harvest_id)
            self.session.add(record)
            event = "snapshot_created"
        else:
            event = "snapshot_replaced"

        for name, value in snapshot.financial_fields().items():
            setattr(record, name, value)
        record.computed_at = snapshot.computed_at

        self.session.flush()
        logger.info(event, extra={"snapshot_id": str(record.id)})

    # ------------------------------------------------------------------
    # Per-crop
    # ------------------------------------------------------------------

    def list_crop_financials(self, crop_zone_id: UUID) -> list[FinancialSnapshot]:
        """
        Persisted snapshots of every harvest of a crop-zone record.

        Harvests that were never computed are skipped.  Ordered by harvest
        date.
        """
        return self._snapshots.list_by_crop_zone(crop_zone_id)

    def compute_crop_financials_dynamic(self, crop_zone_id: UUID) -> FinancialSnapshot:
        """
        Recompute a crop's totals across all of its harvests.

        Nothing is read from, or written to, the snapshot table.

        Raises:
            CropHarvestsNotFoundError: The crop has no harvests.
            ComputationError: A reservation cannot be costed.
        """
        with LogContext.bind(correlation_id=str(uuid4()), crop_zone_id=str(crop_zone_id)):
            harvests = self._harvests.list_by_crop_zone(crop_zone_id)
            if not harvests:
                logger.warning("crop_harvests_not_found")
                raise CropHarvestsNotFoundError(crop_zone_id)

            activities = self._activities.list_by_crop_zone(crop_zone_id)
            components = [
                self._components.compute(harvest=h, activities=activities)
                for h in harvests
            ]

            return self._aggregator.aggregate(
                crop_zone_id=crop_zone_id,
                components=components,
                computed_at=self._clock.now(),
            )

    def estimate_crop_activity_costs(self, crop_zone_id: UUID) -> FinancialSnapshot:
        """
        Production cost of a crop from its activities alone.

        Raises:
            CropActivitiesNotFoundError: The crop has no activities.
            ComputationError: A reservation cannot be costed.
        """
        with LogContext.bind(correlation_id=str(uuid4()), crop_zone_id=str(crop_zone_id)):
            activities = self._activities.list_by_crop_zone(crop_zone_id)
            if not activities:
                logger.warning("crop_activities_not_found")
                raise CropActivitiesNotFoundError(crop_zone_id)

            return self._aggregator.estimate_from_activities(
                crop_zone_id=crop_zone_id,
                activities=activities,
                computed_at=self._clock.now(),
            )


def recompute_harvest_financials(
    session_factory: sessionmaker[Session],
    harvest_id: UUID,
    clock: Clock | None = None,
    config: FinancialsConfig | None = None,
    locks: HarvestLockRegistry | None = None,
) -> FinancialSnapshot:
    """
    Recompute one harvest in its own transaction.

    The harvest lock is held from before the session opens until after it
    commits, so a concurrent recomputation of the same harvest always reads
    the data this one committed.  Any failure rolls the whole transaction
    back.
    """
    if locks is None:
        locks = default_lock_registry
    with locks.hold(harvest_id):
        with session_scope(session_factory) as session:
            service = HarvestFinancialsService(
                session, clock=clock, config=config, locks=locks
            )
            return service.compute_harvest_financials(harvest_id)
