"""
ItemCatalog -- per-item stock configuration registry.

Responsibility:
    Hold the ItemStockConfig for each known item (minimum and maximum
    stock, unit, unit cost, category, supplier).  The ledger stores
    quantities only; the catalog supplies everything needed to turn a
    balance into a StockLevel and to classify it.

Architecture position:
    Kernel > Services.  Seeded from configuration
    (``ItemCatalog.from_config``) or registered programmatically.

Invariants enforced:
    - At most one configuration per item id; re-registering replaces it.
    - ``get`` never returns a default: an unknown item raises
      StockConfigNotFoundError so callers cannot mistake "unconfigured" for
      "minimum of zero".
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

from inventory_kernel.domain.stock import ItemStockConfig
from inventory_kernel.exceptions import StockConfigNotFoundError, ValidationError
from inventory_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from inventory_config.schema import InventoryConfig

logger = get_logger("services.item_catalog")


class ItemCatalog:
    """Thread-safe map of item id to ItemStockConfig."""

    def __init__(self, configs: Iterable[ItemStockConfig] = ()):
        self._lock = threading.Lock()
        self._configs: dict[str, ItemStockConfig] = {}
        for config in configs:
            self.register(config)

    @classmethod
    def from_config(cls, config: InventoryConfig) -> ItemCatalog:
        catalog = cls(config.items)
        logger.info("item_catalog_loaded", extra={"item_count": len(catalog)})
        return catalog

    def register(self, config: ItemStockConfig) -> None:
        if not isinstance(config, ItemStockConfig):
            raise ValidationError("config", config, "must be an ItemStockConfig")
        with self._lock:
            replaced = config.item_id in self._configs
            self._configs[config.item_id] = config
        logger.debug("item_config_registered", extra={
            "item_id": config.item_id,
            "min_stock": config.min_stock,
            "replaced": replaced,
        })

    def get(self, item_id: str) -> ItemStockConfig:
        """
        Raises:
            StockConfigNotFoundError: item has no configuration.
        """
        config = self._configs.get(item_id)
        if config is None:
            raise StockConfigNotFoundError(item_id)
        return config

    def find(self, item_id: str) -> ItemStockConfig | None:
        return self._configs.get(item_id)

    def item_ids(self) -> list[str]:
        return sorted(self._configs)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)
