"""
harvest_engines.revenue -- Sales revenue of a harvest.

Responsibility:
    Sum the revenue of a harvest's sales and derive its average unit price.

        total_revenue      = sum(quantity x unit_price)
        average_unit_price = arithmetic mean of the listed unit prices
        sold_quantity      = sum(quantity)

    The average is a simple mean of listed prices, NOT revenue-weighted.
    The crop-level aggregate uses a revenue-weighted price instead
    (see harvest_engines.multi_harvest).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Failure modes:
    None.  Zero sales yields zero revenue and a zero average price.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from harvest_engines.tracer import traced_engine
from harvest_kernel.domain.dtos import SaleLine
from harvest_kernel.logging_config import get_logger

logger = get_logger("engines.revenue")


@dataclass(frozen=True)
class RevenueResult:
    """Revenue components of one harvest."""

    total_revenue: Decimal
    average_unit_price: Decimal
    sold_quantity: Decimal
    sale_count: int

    @classmethod
    def empty(cls) -> RevenueResult:
        return cls(
            total_revenue=Decimal("0"),
            average_unit_price=Decimal("0"),
            sold_quantity=Decimal("0"),
            sale_count=0,
        )


class RevenueAggregator:
    """Pure function calculator for harvest revenue."""

    @traced_engine("revenue", "1.0", fingerprint_fields=("sales",))
    def aggregate(self, sales: Sequence[SaleLine]) -> RevenueResult:
        """
        Revenue, average listed price and sold quantity of a set of sales.

        Args:
            sales: Every sale referencing the harvest.

        Returns:
            RevenueResult; all zero when ``sales`` is empty.
        """
        if not sales:
            return RevenueResult.empty()

        total_revenue = sum((s.quantity * s.unit_price for s in sales), Decimal("0"))
        sold_quantity = sum((s.quantity for s in sales), Decimal("0"))
        price_total = sum((s.unit_price for s in sales), Decimal("0"))
        average_unit_price = price_total / Decimal(len(sales))

        logger.debug("revenue_calculated", extra={
            "sale_count": len(sales),
            "total_revenue": str(total_revenue),
            "average_unit_price": str(average_unit_price),
        })

        return RevenueResult(
            total_revenue=total_revenue,
            average_unit_price=average_unit_price,
            sold_quantity=sold_quantity,
            sale_count=len(sales),
        )
