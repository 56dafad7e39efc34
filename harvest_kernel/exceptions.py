"""
Typed Exception Hierarchy for the Harvest Financial Analytics Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the engine (HTTP controllers, batch jobs, dashboards) need to tell
"the harvest does not exist" apart from "the data cannot be costed" without
parsing message strings.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (ids, field names)

Example - RIGHT way to handle errors:
    try:
        snapshot = service.compute_harvest_financials(harvest_id)
    except HarvestNotFoundError as e:
        return {"error": e.code, "harvest_id": str(e.harvest_id)}, 404
    except ComputationError as e:
        return {"error": e.code}, 422

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HarvestFinanceError (base)
    |
    +-- NotFoundError
    |   +-- HarvestNotFoundError
    |   +-- CropHarvestsNotFoundError
    |   +-- CropActivitiesNotFoundError
    |
    +-- ComputationError
        +-- MissingPresentationCapacityError

    HarvestFinanceWarning (UserWarning, never raised by the engine)
    |
    +-- LowConfidenceWarning

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When
-------------|-------------------------------|-----------------------------------
NotFound     | HARVEST_NOT_FOUND             | Harvest ID doesn't exist
             | CROP_HARVESTS_NOT_FOUND       | Crop-zone record has no harvests
             | CROP_ACTIVITIES_NOT_FOUND     | Crop-zone record has no activities
-------------|-------------------------------|-----------------------------------
Computation  | MISSING_PRESENTATION_CAPACITY | Divisible cost formula would
             |                               | divide by a zero/absent capacity
-------------|-------------------------------|-----------------------------------
Warning      | LOW_CONFIDENCE_REVENUE        | 0 < revenue < threshold; margin
             |                               | computed but unreliable

NotFound errors are surfaced directly and never retried.  ComputationError
aborts the whole recomputation before anything is written, so the previously
stored snapshot survives untouched.
"""

from decimal import Decimal
from uuid import UUID


class HarvestFinanceError(Exception):
    """
    Base exception for all harvest finance errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "HARVEST_FINANCE_ERROR"


# Not-found errors


class NotFoundError(HarvestFinanceError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class HarvestNotFoundError(NotFoundError):
    """Harvest with given ID was not found."""

    code: str = "HARVEST_NOT_FOUND"

    def __init__(self, harvest_id: UUID | str):
        self.harvest_id = harvest_id
        super().__init__(f"Harvest not found: {harvest_id}")


class CropHarvestsNotFoundError(NotFoundError):
    """Crop-zone record has no harvests to aggregate."""

    code: str = "CROP_HARVESTS_NOT_FOUND"

    def __init__(self, crop_zone_id: UUID | str):
        self.crop_zone_id = crop_zone_id
        super().__init__(f"No harvests found for crop {crop_zone_id}")


class CropActivitiesNotFoundError(NotFoundError):
    """Crop-zone record has no activities to cost."""

    code: str = "CROP_ACTIVITIES_NOT_FOUND"

    def __init__(self, crop_zone_id: UUID | str):
        self.crop_zone_id = crop_zone_id
        super().__init__(f"No activities found for crop {crop_zone_id}")


# Computation errors


class ComputationError(HarvestFinanceError):
    """A required divisor is zero or undefined."""

    code: str = "COMPUTATION_ERROR"


class MissingPresentationCapacityError(ComputationError):
    """
    Reservation cannot be costed proportionally.

    Raised when the divisible formula (or the durable-tool fallback) needs
    ``unit_price / presentation_capacity`` and the capacity is zero or absent.
    """

    code: str = "MISSING_PRESENTATION_CAPACITY"

    def __init__(
        self,
        reservation_id: UUID | str | None,
        presentation_capacity: Decimal | None,
    ):
        self.reservation_id = reservation_id
        self.presentation_capacity = presentation_capacity
        super().__init__(
            f"Reservation {reservation_id} has no usable presentation capacity "
            f"({presentation_capacity})"
        )


# Warnings


class HarvestFinanceWarning(UserWarning):
    """Base class for non-fatal computation notices."""

    code: str = "HARVEST_FINANCE_WARNING"


class LowConfidenceWarning(HarvestFinanceWarning):
    """Revenue is positive but below the confidence threshold."""

    code: str = "LOW_CONFIDENCE_REVENUE"

    def __init__(self, total_revenue: Decimal, threshold: Decimal):
        self.total_revenue = total_revenue
        self.threshold = threshold
        super().__init__(
            f"Total revenue {total_revenue} is below {threshold}; "
            f"margin may be misleading"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LowConfidenceWarning):
            return NotImplemented
        return (
            self.total_revenue == other.total_revenue
            and self.threshold == other.threshold
        )

    def __hash__(self) -> int:
        return hash((self.code, self.total_revenue, self.threshold))
