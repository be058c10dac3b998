"""Read-only query layer: journal selectors and in-memory filters."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.filters import (
    ALL,
    FilterSpec,
    MovementFilter,
    StockFilter,
    filter_collection,
)
from inventory_kernel.selectors.movement_selector import MovementSelector

__all__ = [
    "ALL",
    "BaseSelector",
    "FilterSpec",
    "MovementFilter",
    "MovementSelector",
    "StockFilter",
    "filter_collection",
]
