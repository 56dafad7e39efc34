"""
Tests for harvest_kernel.logging_config as the computations use it.

Covers:
- Harvest and crop context stamped on service and engine records
- One correlation id per computation
- Decimal amounts logged exactly
- Typed error fields on failure records
- LogContext binding rules
- configure_logging / reset_logging lifecycle
"""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from harvest_kernel.exceptions import HarvestNotFoundError, MissingPresentationCapacityError
from harvest_kernel.logging_config import (
    ROOT_LOGGER,
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)
from harvest_services.financials_service import HarvestFinancialsService


@pytest.fixture
def service(session, deterministic_clock, lock_registry) -> HarvestFinancialsService:
    return HarvestFinancialsService(session, clock=deterministic_clock, locks=lock_registry)


@pytest.fixture
def losing_harvest(crop_zone, make_activity, make_harvest):
    """60 of labor against 1.00 of revenue: margin clamps at -999.99."""
    make_activity(crop_zone, hours="4", rate="15")
    return make_harvest(crop_zone, sales=[("1", "1.00")])


@pytest.fixture
def unconfigured_logging():
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _records(logs, message: str) -> list[dict]:
    return [r for r in logs if r["message"] == message]


class TestComputationContext:
    """Context bound by the service reaches every record of a computation."""

    def test_completed_record_carries_harvest_and_crop(
        self, service, crop_zone, losing_harvest, captured_logs
    ):
        service.compute_harvest_financials(losing_harvest.id)

        [completed] = _records(captured_logs(), "harvest_financials_completed")
        assert completed["harvest_id"] == str(losing_harvest.id)
        assert completed["crop_zone_id"] == str(crop_zone.id)
        assert completed["profit"] == "-59.00"
        assert completed["margin"] == "-999.99"
        assert completed["activity_count"] == 1
        assert completed["sale_count"] == 1

    def test_engine_records_inherit_context(
        self, service, crop_zone, losing_harvest, captured_logs
    ):
        service.compute_harvest_financials(losing_harvest.id)

        [clamped] = _records(captured_logs(), "margin_clamped")
        assert clamped["level"] == "WARNING"
        assert clamped["logger"] == "harvest_kernel.engines.summary"
        assert clamped["harvest_id"] == str(losing_harvest.id)
        assert clamped["crop_zone_id"] == str(crop_zone.id)
        assert clamped["raw_margin"] == "-5900.00"
        assert clamped["margin"] == "-999.99"

    def test_started_record_precedes_crop_binding(
        self, service, losing_harvest, captured_logs
    ):
        service.compute_harvest_financials(losing_harvest.id)

        [started] = _records(captured_logs(), "harvest_financials_started")
        assert started["harvest_id"] == str(losing_harvest.id)
        assert "crop_zone_id" not in started

    def test_one_correlation_id_per_computation(
        self, service, losing_harvest, captured_logs
    ):
        service.compute_harvest_financials(losing_harvest.id)
        service.compute_harvest_financials(losing_harvest.id)

        logs = captured_logs()
        started = [r["correlation_id"] for r in _records(logs, "harvest_financials_started")]
        completed = [r["correlation_id"] for r in _records(logs, "harvest_financials_completed")]
        assert started == completed
        assert len(set(started)) == 2

    def test_context_released_after_computation(self, service, losing_harvest):
        service.compute_harvest_financials(losing_harvest.id)

        assert LogContext.current() == {}

    def test_context_released_after_failure(self, service, captured_logs):
        harvest_id = uuid4()

        with pytest.raises(HarvestNotFoundError):
            service.compute_harvest_financials(harvest_id)

        [not_found] = _records(captured_logs(), "harvest_not_found")
        assert not_found["harvest_id"] == str(harvest_id)
        assert "crop_zone_id" not in not_found
        assert LogContext.current() == {}

    def test_crop_records_carry_crop_only(
        self, service, crop_zone, losing_harvest, captured_logs
    ):
        service.compute_crop_financials_dynamic(crop_zone.id)

        [aggregated] = _records(captured_logs(), "crop_financials_aggregated")
        assert aggregated["crop_zone_id"] == str(crop_zone.id)
        assert aggregated["harvest_count"] == 1
        assert aggregated["total_revenue"] == "1.00"
        assert "harvest_id" not in aggregated


class TestFailureRecords:
    """Typed errors expose their code and ids as exc_* fields."""

    def test_missing_capacity_fields(self, captured_logs):
        reservation_id = uuid4()

        try:
            raise MissingPresentationCapacityError(reservation_id, None)
        except MissingPresentationCapacityError:
            get_logger("services.financials").error("recompute_failed", exc_info=True)

        [record] = _records(captured_logs(), "recompute_failed")
        assert record["exc_type"] == "MissingPresentationCapacityError"
        assert record["exc_code"] == "MISSING_PRESENTATION_CAPACITY"
        assert record["exc_reservation_id"] == str(reservation_id)
        assert record["exc_presentation_capacity"] is None
        assert "Traceback" in record["traceback"]


class TestLogContext:
    """Binding rules."""

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="actor_id"):
            with LogContext.bind(actor_id="someone"):
                pass

        assert LogContext.current() == {}

    def test_nested_bind_restores_outer_values(self):
        with LogContext.bind(harvest_id="h-1", crop_zone_id="z-1"):
            with LogContext.bind(crop_zone_id="z-2"):
                assert LogContext.current() == {"harvest_id": "h-1", "crop_zone_id": "z-2"}
            assert LogContext.current() == {"harvest_id": "h-1", "crop_zone_id": "z-1"}

        assert LogContext.current() == {}

    def test_none_values_ignored_and_ids_stringified(self):
        crop_zone_id = uuid4()

        with LogContext.bind(harvest_id=None, crop_zone_id=crop_zone_id):
            assert LogContext.current() == {"crop_zone_id": str(crop_zone_id)}


class TestConfigureLogging:
    """Handler lifecycle on the harvest_kernel logger."""

    def test_second_call_is_a_no_op(self, unconfigured_logging):
        first, second = StringIO(), StringIO()

        configure_logging(handler=logging.StreamHandler(first))
        configure_logging(handler=logging.StreamHandler(second), level=logging.DEBUG)
        get_logger("services.financials").info("harvest_financials_started")

        assert json.loads(first.getvalue())["message"] == "harvest_financials_started"
        assert second.getvalue() == ""
        assert logging.getLogger(ROOT_LOGGER).level == logging.INFO

    def test_debug_records_dropped_at_default_level(self, unconfigured_logging):
        stream = StringIO()
        configure_logging(handler=logging.StreamHandler(stream))

        get_logger("engines.labor").debug("labor_cost_calculated")

        assert stream.getvalue() == ""

    def test_reset_keeps_other_handlers(self, unconfigured_logging, captured_logs):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        reset_logging()

        get_logger("engines.summary").warning("margin_clamped")

        assert _records(captured_logs(), "margin_clamped")
