"""ORM models for the harvest financial analytics engine."""

from harvest_kernel.models.activity import Activity, Reservation
from harvest_kernel.models.crop_zone import CropZone
from harvest_kernel.models.financial_snapshot import FinancialSnapshotRecord
from harvest_kernel.models.harvest import Harvest, Sale
from harvest_kernel.models.inventory import Category, InventoryLot, Product

__all__ = [
    "Activity",
    "Category",
    "CropZone",
    "FinancialSnapshotRecord",
    "Harvest",
    "InventoryLot",
    "Product",
    "Reservation",
    "Sale",
]
