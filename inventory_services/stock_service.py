"""
inventory_services.stock_service -- Stock ledger facade for the dashboard.

Responsibility:
    Wire the LedgerStore, ItemCatalog and BalanceProjector together and
    expose the stock screen's operations in JSON-contract terms: record a
    movement, list and filter movements, list and filter stock levels,
    summarise inventory and movements (overall and per category).

Architecture position:
    Services -- orchestration over kernel services and engines.  Owns no
    state of its own beyond the wired components.

Invariants enforced:
    - A rejected movement (validation or insufficient stock) leaves the
      ledger unchanged; the typed exception propagates to the caller.
    - A movement without a unit takes the item's configured unit.
    - Stock levels are always projected from the ledger at call time.

Failure modes:
    - ValidationError, InsufficientStockError from ``record_movement``.
    - ItemNotFoundError from ``stock_level`` for an unknown item.
    - ValidationError for malformed filter values.

Usage:
    service = StockService.from_config(get_active_config())
    service.record_movement({"item": "ITM-001", "type": "in", "quantity": 10})
    service.stock_levels(status="low")
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from inventory_config.schema import InventoryConfig
from inventory_engines.classification import classify_level
from inventory_engines.summary import (
    summarize_movements,
    summarize_movements_by_category,
    summarize_stock,
)
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.stock import DEFAULT_UNIT, StockLevel, StockStatus
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.filters import MovementFilter, StockFilter, filter_collection
from inventory_kernel.services.balance_projector import BalanceProjector
from inventory_kernel.services.item_catalog import ItemCatalog
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.ledger_store import LedgerStore
from inventory_services.payloads import (
    category_movements_payload,
    movement_from_payload,
    movement_summary_payload,
    parse_moment,
    record_payload,
    stock_level_payload,
    stock_summary_payload,
)

logger = get_logger("services.stock")


def _status(level: StockLevel) -> StockStatus | None:
    if level.min_stock is None:
        return None
    return classify_level(level=level)


class StockService:
    """
    Stock screen operations.

    Contract:
        Receives (or builds) the ledger, catalog and projector through the
        constructor; every method returns plain JSON-ready dicts.
    Non-goals:
        - No HTTP routing, authentication or pagination.
    """

    def __init__(
        self,
        ledger: LedgerStore | None = None,
        catalog: ItemCatalog | None = None,
        *,
        clock: Clock | None = None,
        journal: MovementJournal | None = None,
        default_unit: str = DEFAULT_UNIT,
    ):
        self.catalog = catalog if catalog is not None else ItemCatalog()
        self.ledger = ledger if ledger is not None else LedgerStore(
            clock=clock, journal=journal, default_unit=default_unit
        )
        self.projector = BalanceProjector(self.ledger, self.catalog)

    @classmethod
    def from_config(
        cls,
        config: InventoryConfig,
        *,
        clock: Clock | None = None,
        journal: MovementJournal | None = None,
        ledger: LedgerStore | None = None,
    ) -> StockService:
        return cls(
            ledger=ledger,
            catalog=ItemCatalog.from_config(config),
            clock=clock,
            journal=journal,
            default_unit=config.default_unit,
        )

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def record_movement(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and append one movement; returns the outbound record."""
        movement = movement_from_payload(request)
        if movement.unit is None:
            config = self.catalog.find(movement.item_id)
            if config is not None:
                movement = dataclasses.replace(movement, unit=config.unit)

        with LogContext.bind(item_id=movement.item_id, operator=movement.operator):
            record = self.ledger.append(movement)
            level = self.projector.rebuild(movement.item_id)
            status = _status(level)
            if status in (StockStatus.LOW, StockStatus.CRITICAL):
                logger.warning("stock_below_minimum", extra={
                    "status": status.value,
                    "current_stock": level.current_stock,
                    "min_stock": level.min_stock,
                })
        return record_payload(record)

    def _movement_filter(
        self,
        search: str | None,
        type: str | None,
        item: str | None,
        operator: str | None,
        start: Any,
        end: Any,
    ) -> MovementFilter:
        return MovementFilter(
            search=search,
            type=type,
            item_id=item,
            operator=operator,
            start=parse_moment(start, "start"),
            end=parse_moment(end, "end"),
        )

    def list_movements(
        self,
        *,
        search: str | None = None,
        type: str | None = None,
        item: str | None = None,
        operator: str | None = None,
        start: Any = None,
        end: Any = None,
    ) -> list[dict[str, Any]]:
        """Movements, oldest first, filtered like the movement history screen."""
        movement_filter = self._movement_filter(search, type, item, operator, start, end)
        return [record_payload(r) for r in self.ledger.list_movements(movement_filter)]

    def movement_summary(
        self,
        *,
        search: str | None = None,
        type: str | None = None,
        item: str | None = None,
        operator: str | None = None,
        start: Any = None,
        end: Any = None,
    ) -> dict[str, Any]:
        movement_filter = self._movement_filter(search, type, item, operator, start, end)
        summary = summarize_movements(self.ledger.list_movements(movement_filter))
        return movement_summary_payload(summary)

    def movements_by_category(
        self,
        *,
        search: str | None = None,
        type: str | None = None,
        item: str | None = None,
        operator: str | None = None,
        start: Any = None,
        end: Any = None,
    ) -> list[dict[str, Any]]:
        """Movement totals per catalog category, sorted by category."""
        movement_filter = self._movement_filter(search, type, item, operator, start, end)
        categories = {
            item_id: self.catalog.get(item_id).category for item_id in self.catalog.item_ids()
        }
        groups = summarize_movements_by_category(
            records=self.ledger.list_movements(movement_filter), categories=categories
        )
        return category_movements_payload(groups)

    # ------------------------------------------------------------------
    # Stock levels
    # ------------------------------------------------------------------

    def stock_level(self, item_id: str) -> dict[str, Any]:
        level = self.projector.rebuild(item_id)
        return stock_level_payload(level, _status(level))

    def stock_levels(
        self,
        *,
        search: str | None = None,
        status: str | None = None,
        category: str | None = None,
    ) -> list[dict[str, Any]]:
        """Stock levels ordered by item id, filtered like the stock screen."""
        stock_filter = StockFilter(search=search, status=status, category=category)
        levels = filter_collection(self.projector.stock_levels(), stock_filter)
        return [stock_level_payload(level, _status(level)) for level in levels]

    def stock_summary(self) -> dict[str, Any]:
        return stock_summary_payload(summarize_stock(self.projector.stock_levels()))
