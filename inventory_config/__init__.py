"""
inventory_config -- single public entrypoint for inventory configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  No other component reads configuration files or
    environment variables directly.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``inventory_kernel`` and
    below ``inventory_services``.  The kernel never imports this package at
    runtime; ``ItemCatalog.from_config`` receives the parsed object.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Deterministic parsing: the same YAML always yields the same
      ``InventoryConfig`` and checksum.

Failure modes:
    - ``ConfigurationError`` for a missing file or malformed content.

Audit relevance:
    Every successful call emits an ``INVENTORY_CONFIG_TRACE`` log entry
    with the config id, version, checksum and item count.
"""

from __future__ import annotations

import logging
from pathlib import Path

from inventory_config.loader import compute_checksum, load_config, parse_config
from inventory_config.schema import InventoryConfig

_logger = logging.getLogger("inventory_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> InventoryConfig:
    """
    Load and parse the active configuration.

    Args:
        path: YAML file to load.  Defaults to the packaged
            ``inventory_config/sets/default.yaml``.

    Raises:
        ConfigurationError: missing file or malformed content.
    """
    source = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = load_config(source)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "item_count": len(config.items),
            "source": str(source),
        },
    )
    return config


__all__ = [
    "InventoryConfig",
    "compute_checksum",
    "get_active_config",
    "parse_config",
]
