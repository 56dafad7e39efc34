"""
harvest_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Engines and services receive the resulting
    ``FinancialsConfig`` by injection and never read files or environment
    variables themselves.

Resolution order for the YAML file:
    1. ``config_path`` argument
    2. ``HARVEST_FINANCE_CONFIG`` environment variable
    3. the bundled ``harvest_config/sets/default.yaml``

Failure modes:
    - ``FileNotFoundError`` -- the resolved file does not exist.
    - ``ValueError`` -- a value is malformed or out of range.

Audit relevance:
    Every call emits a ``HARVEST_CONFIG_TRACE`` log entry with the source
    path and checksum, tying each computed snapshot to the policy constants
    that produced it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from harvest_config.loader import load_config
from harvest_config.schema import DatabaseConfig, FinancialsConfig, HarvestFinanceConfig

__all__ = [
    "CONFIG_ENV_VAR",
    "DatabaseConfig",
    "FinancialsConfig",
    "HarvestFinanceConfig",
    "get_active_config",
]

_logger = logging.getLogger("harvest_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_ENV_VAR = "HARVEST_FINANCE_CONFIG"


def get_active_config(config_path: Path | str | None = None) -> HarvestFinanceConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.

    Returns:
        HarvestFinanceConfig with a checksum of the parsed document.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_PATH
    path = Path(config_path)

    config = load_config(path)

    _logger.info(
        "HARVEST_CONFIG_TRACE",
        extra={
            "trace_type": "HARVEST_CONFIG_TRACE",
            "source_path": str(path),
            "checksum": config.checksum,
            "residual_value_rate": str(config.financials.residual_value_rate),
            "clamp_crop_margin": config.financials.clamp_crop_margin,
        },
    )

    return config
