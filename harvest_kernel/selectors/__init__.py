"""Read-only query selectors returning domain DTOs."""

from harvest_kernel.selectors.activity_selector import ActivitySelector
from harvest_kernel.selectors.harvest_selector import HarvestSelector
from harvest_kernel.selectors.sale_selector import SaleSelector
from harvest_kernel.selectors.snapshot_selector import SnapshotSelector

__all__ = [
    "ActivitySelector",
    "HarvestSelector",
    "SaleSelector",
    "SnapshotSelector",
]
