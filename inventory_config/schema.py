"""
InventoryConfig schema.

The parsed, frozen form of a YAML configuration set: ledger defaults,
reporting window, optional journal database URL, log level and the item
stock configurations that seed the ItemCatalog.
"""

from __future__ import annotations

from dataclasses import dataclass

from inventory_kernel.domain.stock import DEFAULT_UNIT, ItemStockConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class InventoryConfig:
    config_id: str
    version: int = 1
    default_unit: str = DEFAULT_UNIT
    reporting_period_days: int = 30
    database_url: str | None = None
    log_level: str = "INFO"
    items: tuple[ItemStockConfig, ...] = ()
    checksum: str = ""

    def item(self, item_id: str) -> ItemStockConfig | None:
        for config in self.items:
            if config.item_id == item_id:
                return config
        return None
