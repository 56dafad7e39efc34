"""Pure domain types: cost model, engine input DTOs, snapshot value object, clocks."""

from harvest_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from harvest_kernel.domain.cost_model import (
    CostModel,
    Divisible,
    NonDivisible,
    resolve_cost_model,
)
from harvest_kernel.domain.dtos import (
    ActivityLine,
    FinancialSnapshot,
    HarvestRecord,
    ReservationLine,
    SaleLine,
)

__all__ = [
    "ActivityLine",
    "Clock",
    "CostModel",
    "DeterministicClock",
    "Divisible",
    "FinancialSnapshot",
    "HarvestRecord",
    "NonDivisible",
    "ReservationLine",
    "SaleLine",
    "SystemClock",
    "resolve_cost_model",
]
