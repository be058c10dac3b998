"""
Pure domain layer.

This module contains immutable value objects and domain rules with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Locks or threads
- I/O (the clock is injected)
"""

from inventory_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from inventory_kernel.domain.movements import (
    MovementInput,
    MovementRecord,
    MovementType,
    apply_movement,
    parse_quantity,
)
from inventory_kernel.domain.stock import (
    DEFAULT_UNIT,
    ItemStockConfig,
    StockLevel,
    StockStatus,
)
from inventory_kernel.domain.values import (
    optional_decimal,
    round_percent,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SequentialClock",
    "SystemClock",
    "MovementInput",
    "MovementRecord",
    "MovementType",
    "apply_movement",
    "parse_quantity",
    "DEFAULT_UNIT",
    "ItemStockConfig",
    "StockLevel",
    "StockStatus",
    "optional_decimal",
    "round_percent",
    "to_decimal",
]
