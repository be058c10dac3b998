"""
BalanceProjector -- derive stock levels from the ledger.

Responsibility:
    Fold an item's movement history into its current balance and merge it
    with the item's catalog configuration to produce a StockLevel.  The
    projection is a cache over the ledger, never a source of truth.

Architecture position:
    Kernel > Services.  Reads LedgerStore and ItemCatalog; subscribes to
    the ledger so that cached projections are dropped when an item moves.

Invariants enforced:
    - current_stock equals the balance_after of the item's latest record
      (0 when the item has no movements).
    - A cached projection is only served while the item's history length is
      unchanged; ``reset()`` discards everything and the next read rebuilds
      from the ledger alone.
    - Unconfigured items with movements are projected with
      ``min_stock=None``.

Failure modes:
    - ItemNotFoundError: ``rebuild`` of an item with neither movements nor
      configuration.
    - LedgerIntegrityError: ``verify`` found a record whose balances do not
      follow from the fold.
"""

from __future__ import annotations

import threading
from decimal import Decimal

from inventory_kernel.domain.movements import MovementRecord
from inventory_kernel.domain.stock import StockLevel
from inventory_kernel.exceptions import ItemNotFoundError, LedgerIntegrityError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.item_catalog import ItemCatalog
from inventory_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.balance_projector")


def fold_balance(history: tuple[MovementRecord, ...]) -> int:
    """Sum of signed quantities; the sign rule applied over a history."""
    return sum(record.signed_quantity for record in history)


class BalanceProjector:
    """
    Lazily recomputed StockLevel projection.

    Contract:
        Every read reflects all movements published before it started.
    Non-goals:
        - Does not classify levels; see inventory_engines.classification.
        - Does not persist anything.
    """

    def __init__(self, ledger: LedgerStore, catalog: ItemCatalog | None = None):
        self._ledger = ledger
        self._catalog = catalog if catalog is not None else ItemCatalog()
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[int, StockLevel]] = {}
        ledger.subscribe(self._invalidate)

    def _invalidate(self, item_id: str) -> None:
        with self._lock:
            self._cache.pop(item_id, None)

    def reset(self) -> None:
        """Drop every cached projection."""
        with self._lock:
            self._cache.clear()
        logger.debug("projection_cache_reset")

    def current_balance(self, item_id: str) -> int:
        """Folded balance; 0 for items with no movements."""
        return fold_balance(self._ledger.item_history(item_id))

    def rebuild(self, item_id: str) -> StockLevel:
        """
        Project one item's StockLevel.

        Raises:
            ItemNotFoundError: no movements and no configuration.
        """
        history = self._ledger.item_history(item_id)
        config = self._catalog.find(item_id)
        if not history and config is None:
            raise ItemNotFoundError(item_id)

        with self._lock:
            cached = self._cache.get(item_id)
        if cached is not None and cached[0] == len(history):
            return cached[1]

        latest = history[-1] if history else None
        level = StockLevel(
            item_id=item_id,
            name=config.display_name if config else item_id,
            current_stock=fold_balance(history),
            min_stock=config.min_stock if config else None,
            max_stock=config.max_stock if config else None,
            unit=config.unit if config else latest.unit,
            unit_cost=config.unit_cost if config else Decimal("0"),
            last_movement_timestamp=latest.timestamp if latest else None,
            location=(config.location if config else None)
            or (latest.location if latest else None),
            category=config.category if config else None,
            supplier=config.supplier if config else None,
            movement_count=len(history),
        )
        with self._lock:
            self._cache[item_id] = (len(history), level)
        logger.debug("stock_level_rebuilt", extra={
            "item_id": item_id,
            "current_stock": level.current_stock,
            "movement_count": level.movement_count,
        })
        return level

    def stock_levels(self) -> list[StockLevel]:
        """One level per configured or moved item, ordered by item id."""
        item_ids = set(self._ledger.item_ids()) | set(self._catalog.item_ids())
        return [self.rebuild(item_id) for item_id in sorted(item_ids)]

    def verify(self, item_id: str) -> int:
        """
        Re-fold the item's history and check every stored balance.

        Returns:
            The verified current balance.

        Raises:
            LedgerIntegrityError: a stored balance diverges from the fold.
        """
        running = 0
        for record in self._ledger.item_history(item_id):
            if record.balance_before != running:
                raise LedgerIntegrityError(
                    item_id,
                    record.sequence,
                    f"balance_before {record.balance_before} != folded {running}",
                )
            running += record.signed_quantity
            if record.balance_after != running:
                raise LedgerIntegrityError(
                    item_id,
                    record.sequence,
                    f"balance_after {record.balance_after} != folded {running}",
                )
        logger.debug("ledger_chain_verified", extra={
            "item_id": item_id,
            "balance": running,
        })
        return running
