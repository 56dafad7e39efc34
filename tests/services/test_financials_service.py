"""
Tests for HarvestFinancialsService.

Covers:
- Per-harvest recomputation and persistence
- Idempotence and snapshot replacement
- Not-found errors
- Failed recomputation leaves the stored snapshot intact
- Stored snapshot listing per crop
- Dynamic crop aggregation and the activity cost estimate
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from harvest_kernel.exceptions import (
    ComputationError,
    CropActivitiesNotFoundError,
    CropHarvestsNotFoundError,
    HarvestNotFoundError,
    NotFoundError,
)
from harvest_kernel.models import CropZone, FinancialSnapshotRecord
from harvest_services.financials_service import HarvestFinancialsService


@pytest.fixture
def service(session, deterministic_clock, lock_registry) -> HarvestFinancialsService:
    return HarvestFinancialsService(session, clock=deterministic_clock, locks=lock_registry)


@pytest.fixture
def costed_crop(crop_zone, make_activity, make_lot, make_reservation):
    """Crop zone whose activities cost 60: 20 fertilizer + 10 tool use + 30 labor."""
    activity = make_activity(crop_zone, hours="3", rate="10")
    make_reservation(activity, make_lot(is_divisible=True), "10", "100", "50")
    make_reservation(
        activity,
        make_lot(is_divisible=False, lifespan_uses=90, name="Pruning shears"),
        "4",
        "1000",
    )
    return crop_zone


def _snapshot_count(session, harvest_id) -> int:
    return session.execute(
        select(func.count(FinancialSnapshotRecord.id))
        .where(FinancialSnapshotRecord.harvest_id == harvest_id)
    ).scalar_one()


class TestComputeHarvestFinancials:
    """Recompute and persist one harvest."""

    def test_computes_and_persists(self, service, session, costed_crop, make_harvest):
        harvest = make_harvest(costed_crop, sales=[("40", "2.00"), ("20", "3.00")])

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.harvest_id == harvest.id
        assert snapshot.crop_zone_id == costed_crop.id
        assert snapshot.inventory_cost == Decimal("30.00")
        assert snapshot.labor_cost == Decimal("30.00")
        assert snapshot.total_production_cost == Decimal("60.00")
        assert snapshot.total_revenue == Decimal("140.00")
        assert snapshot.unit_price == Decimal("2.50")
        assert snapshot.sold_quantity == Decimal("60.000")
        assert snapshot.harvested_quantity == Decimal("1000.000")
        assert snapshot.profit == Decimal("80.00")
        assert snapshot.margin == Decimal("57.14")
        assert snapshot.is_persisted is True
        assert _snapshot_count(session, harvest.id) == 1

    def test_returned_snapshot_matches_stored(self, service, costed_crop, make_harvest):
        harvest = make_harvest(costed_crop, sales=[("10", "9.99")])

        snapshot = service.compute_harvest_financials(harvest.id)
        stored = service.get_stored_financials(harvest.id)

        assert stored == snapshot

    def test_harvest_without_sales_or_activities(self, service, crop_zone, make_harvest):
        harvest = make_harvest(crop_zone)

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.total_production_cost == Decimal("0.00")
        assert snapshot.total_revenue == Decimal("0.00")
        assert snapshot.margin == Decimal("0")

    def test_zero_revenue_margin_is_zero(self, service, costed_crop, make_harvest):
        harvest = make_harvest(costed_crop)

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.profit == Decimal("-60.00")
        assert snapshot.margin == Decimal("0")

    def test_null_labor_inputs_count_as_zero(self, service, crop_zone, make_harvest, make_activity):
        make_activity(crop_zone, hours=None, rate="25")
        make_activity(crop_zone, hours="2", rate=None)
        harvest = make_harvest(crop_zone)

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.labor_cost == Decimal("0.00")

    def test_uncategorized_product_is_divisible(
        self, service, crop_zone, make_harvest, make_activity, make_lot, make_reservation
    ):
        activity = make_activity(crop_zone)
        make_reservation(activity, make_lot(is_divisible=None), "5", "100", "10")
        harvest = make_harvest(crop_zone)

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.inventory_cost == Decimal("50.00")

    def test_unknown_harvest(self, service, lock_registry):
        harvest_id = uuid4()

        with pytest.raises(HarvestNotFoundError) as exc_info:
            service.compute_harvest_financials(harvest_id)

        assert exc_info.value.harvest_id == harvest_id
        assert isinstance(exc_info.value, NotFoundError)
        assert len(lock_registry) == 0

    def test_low_revenue_flagged_but_persisted(self, service, session, crop_zone, make_harvest):
        harvest = make_harvest(crop_zone, sales=[("0.001", "5.00")])

        snapshot = service.compute_harvest_financials(harvest.id)

        assert snapshot.is_low_confidence
        assert snapshot.warnings[0].code == "LOW_CONFIDENCE_REVENUE"
        assert _snapshot_count(session, harvest.id) == 1
        assert not service.get_stored_financials(harvest.id).is_low_confidence

    def test_logs_lifecycle(self, service, costed_crop, make_harvest, captured_logs):
        harvest = make_harvest(costed_crop)

        service.compute_harvest_financials(harvest.id)

        logs = captured_logs()
        messages = [r["message"] for r in logs]
        assert "harvest_financials_started" in messages
        assert "snapshot_created" in messages
        assert "harvest_financials_completed" in messages
        completed = next(r for r in logs if r["message"] == "harvest_financials_completed")
        assert completed["harvest_id"] == str(harvest.id)
        assert "correlation_id" in completed


class TestRecomputation:
    """Recomputation replaces the single stored snapshot."""

    def test_idempotent_except_timestamp(
        self, service, session, deterministic_clock, costed_crop, make_harvest
    ):
        harvest = make_harvest(costed_crop, sales=[("40", "2.00")])

        first = service.compute_harvest_financials(harvest.id)
        deterministic_clock.advance(3600)
        second = service.compute_harvest_financials(harvest.id)

        assert first.financial_fields() == second.financial_fields()
        assert second.computed_at > first.computed_at
        assert _snapshot_count(session, harvest.id) == 1

    def test_new_sale_replaces_snapshot(
        self, service, session, costed_crop, make_harvest, make_sale, captured_logs
    ):
        harvest = make_harvest(costed_crop, sales=[("40", "2.00")])
        service.compute_harvest_financials(harvest.id)

        make_sale(harvest, "10", "4.00")
        updated = service.compute_harvest_financials(harvest.id)

        assert updated.total_revenue == Decimal("120.00")
        assert service.get_stored_financials(harvest.id).total_revenue == Decimal("120.00")
        assert _snapshot_count(session, harvest.id) == 1
        assert any(r["message"] == "snapshot_replaced" for r in captured_logs())

    def test_missing_capacity_keeps_previous_snapshot(
        self,
        service,
        deterministic_clock,
        costed_crop,
        make_harvest,
        make_activity,
        make_lot,
        make_reservation,
    ):
        harvest = make_harvest(costed_crop, sales=[("40", "2.00")])
        before = service.compute_harvest_financials(harvest.id)

        broken = make_activity(costed_crop)
        make_reservation(broken, make_lot(is_divisible=True), "3", "100", None)
        deterministic_clock.advance(60)

        with pytest.raises(ComputationError):
            service.compute_harvest_financials(harvest.id)

        assert service.get_stored_financials(harvest.id) == before


class TestStoredFinancials:
    """Reading persisted snapshots."""

    def test_never_computed_is_none(self, service, crop_zone, make_harvest):
        harvest = make_harvest(crop_zone)

        assert service.get_stored_financials(harvest.id) is None

    def test_list_skips_uncomputed_harvests(self, service, costed_crop, make_harvest):
        computed = make_harvest(costed_crop, harvest_date=date(2024, 3, 1))
        make_harvest(costed_crop, harvest_date=date(2024, 4, 1))
        service.compute_harvest_financials(computed.id)

        snapshots = service.list_crop_financials(costed_crop.id)

        assert [s.harvest_id for s in snapshots] == [computed.id]

    def test_list_ordered_by_harvest_date(self, service, costed_crop, make_harvest):
        later = make_harvest(costed_crop, harvest_date=date(2024, 5, 1))
        earlier = make_harvest(costed_crop, harvest_date=date(2024, 3, 1))
        service.compute_harvest_financials(later.id)
        service.compute_harvest_financials(earlier.id)

        snapshots = service.list_crop_financials(costed_crop.id)

        assert [s.harvest_id for s in snapshots] == [earlier.id, later.id]
        assert all(s.crop_zone_id == costed_crop.id for s in snapshots)

    def test_list_for_crop_without_harvests_is_empty(self, service, crop_zone):
        assert service.list_crop_financials(crop_zone.id) == []

    def test_snapshot_deleted_with_harvest(self, service, session, costed_crop, make_harvest):
        harvest = make_harvest(costed_crop)
        service.compute_harvest_financials(harvest.id)
        harvest_id = harvest.id

        session.delete(harvest)
        session.flush()
        session.expire_all()

        assert _snapshot_count(session, harvest_id) == 0


class TestCropFinancialsDynamic:
    """Crop-level aggregation across every harvest."""

    def test_aggregates_two_harvests(self, service, costed_crop, make_harvest):
        make_harvest(costed_crop, quantity="500", sales=[("50", "2.00")])
        make_harvest(costed_crop, quantity="700", sales=[("50", "3.00")])

        crop = service.compute_crop_financials_dynamic(costed_crop.id)

        # each harvest carries the full 60 of activity cost
        assert crop.total_production_cost == Decimal("120.00")
        assert crop.total_revenue == Decimal("250.00")
        assert crop.profit == Decimal("130.00")
        assert crop.margin == Decimal("52.00")
        assert crop.unit_price == Decimal("2.50")
        assert crop.harvested_quantity == Decimal("1200.000")
        assert crop.harvest_id is None
        assert crop.is_persisted is False

    def test_inventory_equals_sum_of_per_harvest(self, service, costed_crop, make_harvest):
        harvests = [
            make_harvest(costed_crop, sales=[("3", "1.11")]),
            make_harvest(costed_crop, sales=[("7", "2.22")]),
            make_harvest(costed_crop),
        ]

        crop = service.compute_crop_financials_dynamic(costed_crop.id)
        per_harvest = [service.compute_harvest_financials(h.id) for h in harvests]

        assert crop.inventory_cost == sum(s.inventory_cost for s in per_harvest)
        assert crop.labor_cost == sum(s.labor_cost for s in per_harvest)
        assert crop.total_revenue == sum(s.total_revenue for s in per_harvest)

    def test_is_not_persisted(self, service, session, costed_crop, make_harvest):
        harvest = make_harvest(costed_crop, sales=[("5", "5.00")])

        service.compute_crop_financials_dynamic(costed_crop.id)

        assert _snapshot_count(session, harvest.id) == 0

    def test_no_revenue_does_not_divide(self, service, costed_crop, make_harvest):
        make_harvest(costed_crop)

        crop = service.compute_crop_financials_dynamic(costed_crop.id)

        assert crop.profit == Decimal("-60.00")
        assert crop.margin == Decimal("0")

    def test_crop_without_harvests(self, service, crop_zone):
        with pytest.raises(CropHarvestsNotFoundError) as exc_info:
            service.compute_crop_financials_dynamic(crop_zone.id)

        assert exc_info.value.crop_zone_id == crop_zone.id

    def test_other_crops_not_included(self, service, session, costed_crop, make_harvest):
        other = CropZone(name="Pepper / South field")
        session.add(other)
        session.flush()
        make_harvest(other, sales=[("100", "100.00")])
        make_harvest(costed_crop, sales=[("10", "10.00")])

        crop = service.compute_crop_financials_dynamic(costed_crop.id)

        assert crop.total_revenue == Decimal("100.00")


class TestActivityCostEstimate:
    """Costing a crop from its activities alone."""

    def test_estimate_without_harvests(self, service, costed_crop):
        estimate = service.estimate_crop_activity_costs(costed_crop.id)

        assert estimate.inventory_cost == Decimal("30.00")
        assert estimate.labor_cost == Decimal("30.00")
        assert estimate.total_production_cost == Decimal("60.00")
        assert estimate.profit == Decimal("-60.00")
        assert estimate.margin == Decimal("0")
        assert estimate.total_revenue == Decimal("0")

    def test_unused_reservations_skipped(
        self, service, costed_crop, make_activity, make_lot, make_reservation
    ):
        activity = make_activity(costed_crop)
        make_reservation(activity, make_lot(is_divisible=True), "0", "500", "10")
        make_reservation(activity, make_lot(is_divisible=True), None, "500", "10")

        estimate = service.estimate_crop_activity_costs(costed_crop.id)

        assert estimate.inventory_cost == Decimal("30.00")

    def test_crop_without_activities(self, service, crop_zone):
        with pytest.raises(CropActivitiesNotFoundError):
            service.estimate_crop_activity_costs(crop_zone.id)
