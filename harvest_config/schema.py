"""
Configuration schema (``harvest_config.schema``).

Frozen dataclasses produced by ``harvest_config.loader``.  Every value that
shapes the engine's arithmetic lives here so it can be reviewed and pinned
by checksum, rather than hard-coded in the engines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from harvest_kernel.db.types import MARGIN_CEILING, MARGIN_FLOOR


@dataclass(frozen=True)
class FinancialsConfig:
    """
    Cost-allocation and margin policy.

    Attributes:
        residual_value_rate: Share of a durable tool's price kept as residual
            value; the rest is depreciated over its lifespan in uses.
        margin_floor / margin_ceiling: Bounds of a stored margin percentage.
        low_revenue_threshold: Positive revenue below this is flagged as
            low-confidence.
        clamp_crop_margin: Apply the same bounds to crop-level aggregates.
    """

    residual_value_rate: Decimal = Decimal("0.10")
    margin_floor: Decimal = MARGIN_FLOOR
    margin_ceiling: Decimal = MARGIN_CEILING
    low_revenue_threshold: Decimal = Decimal("0.01")
    clamp_crop_margin: bool = True

    def __post_init__(self) -> None:
        if not Decimal("0") <= self.residual_value_rate < Decimal("1"):
            raise ValueError(
                f"residual_value_rate must be in [0, 1): {self.residual_value_rate}"
            )
        if self.margin_floor >= self.margin_ceiling:
            raise ValueError(
                f"margin_floor ({self.margin_floor}) must be below "
                f"margin_ceiling ({self.margin_ceiling})"
            )
        if self.low_revenue_threshold < Decimal("0"):
            raise ValueError(
                f"low_revenue_threshold must be non-negative: {self.low_revenue_threshold}"
            )


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class HarvestFinanceConfig:
    """The assembled runtime configuration."""

    financials: FinancialsConfig = field(default_factory=FinancialsConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    checksum: str = ""
    source_path: Path | None = None
