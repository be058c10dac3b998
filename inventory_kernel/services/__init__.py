"""Kernel services: the ledger, its projection, the catalog and the journal."""

from inventory_kernel.services.balance_projector import BalanceProjector, fold_balance
from inventory_kernel.services.item_catalog import ItemCatalog
from inventory_kernel.services.journal import MovementJournal, SqlMovementJournal
from inventory_kernel.services.ledger_store import LedgerStore

__all__ = [
    "BalanceProjector",
    "ItemCatalog",
    "LedgerStore",
    "MovementJournal",
    "SqlMovementJournal",
    "fold_balance",
]
