"""
Configuration Loader (``harvest_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``harvest_config.schema`` dataclasses.  Runtime callers go through
``harvest_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-numeric or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from harvest_config.schema import DatabaseConfig, FinancialsConfig, HarvestFinanceConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def _decimal(data: dict[str, Any], key: str, default: Decimal) -> Decimal:
    if key not in data:
        return default
    raw = data[key]
    # str() first so a YAML float such as 0.1 stays 0.1
    try:
        return Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValueError(f"{key} is not a number: {raw!r}") from exc


def parse_financials(data: dict[str, Any]) -> FinancialsConfig:
    defaults = FinancialsConfig()
    return FinancialsConfig(
        residual_value_rate=_decimal(data, "residual_value_rate", defaults.residual_value_rate),
        margin_floor=_decimal(data, "margin_floor", defaults.margin_floor),
        margin_ceiling=_decimal(data, "margin_ceiling", defaults.margin_ceiling),
        low_revenue_threshold=_decimal(
            data, "low_revenue_threshold", defaults.low_revenue_threshold
        ),
        clamp_crop_margin=bool(data.get("clamp_crop_margin", defaults.clamp_crop_margin)),
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=str(data.get("url", defaults.url)),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed YAML document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_config(path: Path) -> HarvestFinanceConfig:
    """Load and parse one configuration file."""
    data = load_yaml_file(path)
    return HarvestFinanceConfig(
        financials=parse_financials(data.get("financials") or {}),
        database=parse_database(data.get("database") or {}),
        checksum=compute_checksum(data),
        source_path=path,
    )
