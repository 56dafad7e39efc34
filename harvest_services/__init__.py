"""Orchestration services for harvest financials."""

from harvest_services.financials_service import (
    HarvestFinancialsService,
    recompute_harvest_financials,
)
from harvest_services.harvest_locks import HarvestLockRegistry, default_lock_registry
from harvest_services.runtime import init_database

__all__ = [
    "HarvestFinancialsService",
    "HarvestLockRegistry",
    "default_lock_registry",
    "init_database",
    "recompute_harvest_financials",
]
