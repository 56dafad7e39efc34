"""
harvest_engines.labor -- Labor cost of the activities charged to a harvest.

    labor_cost = sum(hours_dedicated x hourly_rate)

Missing hours or rates were normalized to zero when the ActivityLine DTOs
were built, so an activity with no recorded hours simply adds nothing.  An
empty activity set costs zero.  No error conditions.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from harvest_engines.tracer import traced_engine
from harvest_kernel.domain.dtos import ActivityLine
from harvest_kernel.logging_config import get_logger

logger = get_logger("engines.labor")


class LaborCostAggregator:
    """Pure function calculator for labor cost."""

    @traced_engine("labor_cost", "1.0", fingerprint_fields=("activities",))
    def labor_cost(self, activities: Sequence[ActivityLine]) -> Decimal:
        total = sum(
            (a.hours_dedicated * a.hourly_rate for a in activities),
            Decimal("0"),
        )
        logger.debug("labor_cost_calculated", extra={
            "activity_count": len(activities),
            "total": str(total),
        })
        return total
