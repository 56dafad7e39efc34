"""
Process bootstrap from the active configuration set.

    config = get_active_config()
    init_database(config)
    with session_scope(get_session_factory()) as session:
        service = HarvestFinancialsService.from_config(session, config)
        service.compute_harvest_financials(harvest_id)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from harvest_config import HarvestFinanceConfig, get_active_config
from harvest_kernel.db.engine import init_engine_from_url


def init_database(config: HarvestFinanceConfig | None = None) -> Engine:
    """Initialize the module-level engine from the ``database`` section."""
    if config is None:
        config = get_active_config()
    database = config.database
    return init_engine_from_url(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
    )
