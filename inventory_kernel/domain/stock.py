"""
Stock levels and item stock configuration (``inventory_kernel.domain.stock``).

Responsibility
--------------
Frozen value objects for the per-item stock configuration (minimum and
maximum stock, unit cost, category, supplier) and for the derived stock
level the BalanceProjector builds from the ledger.

Architecture
------------
Layer: **Kernel > Domain** -- pure data.  A ``StockLevel`` is a cache over
the ledger, never a primary record: it is always rebuilt, never edited.

Invariants
----------
- ``ItemStockConfig``: ``min_stock >= 0``, ``max_stock >= min_stock`` when
  set, ``unit_cost >= 0``.
- ``StockLevel.total_value == current_stock * unit_cost``.
- ``StockLevel.min_stock is None`` means "not configured", which is not the
  same thing as a configured minimum of zero.
- Money is ``Decimal``, never ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from inventory_kernel.exceptions import ValidationError

DEFAULT_UNIT = "pcs"


class StockStatus(str, Enum):
    """Health of an item's stock level."""

    HEALTHY = "Healthy"
    LOW = "Low"
    CRITICAL = "Critical"

    @property
    def severity(self) -> int:
        """0 for Healthy, 1 for Low, 2 for Critical."""
        return _SEVERITY[self]


_SEVERITY = {
    StockStatus.HEALTHY: 0,
    StockStatus.LOW: 1,
    StockStatus.CRITICAL: 2,
}


@dataclass(frozen=True)
class ItemStockConfig:
    """
    Stock configuration for one item.

    Contract: Immutable.  ``unit_cost`` is Decimal.  ``name`` defaults to the
    item id for display.
    """

    item_id: str
    min_stock: int
    name: str | None = None
    category: str | None = None
    max_stock: int | None = None
    unit: str = DEFAULT_UNIT
    unit_cost: Decimal = Decimal("0")
    location: str | None = None
    supplier: str | None = None

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValidationError("item_id", self.item_id, "is required")
        if isinstance(self.min_stock, bool) or not isinstance(self.min_stock, int) or self.min_stock < 0:
            raise ValidationError("min_stock", self.min_stock, "must be a non-negative integer")
        if self.max_stock is not None and (
            isinstance(self.max_stock, bool)
            or not isinstance(self.max_stock, int)
            or self.max_stock < self.min_stock
        ):
            raise ValidationError("max_stock", self.max_stock, "must be an integer >= min_stock")
        if not isinstance(self.unit_cost, Decimal) or self.unit_cost < 0:
            raise ValidationError("unit_cost", self.unit_cost, "must be a non-negative Decimal")

    @property
    def display_name(self) -> str:
        return self.name or self.item_id


@dataclass(frozen=True)
class StockLevel:
    """
    Current stock level for one item, derived from the ledger.

    Contract: Immutable.  Built only by ``BalanceProjector.rebuild``.
    """

    item_id: str
    name: str
    current_stock: int
    min_stock: int | None
    max_stock: int | None
    unit: str
    unit_cost: Decimal
    last_movement_timestamp: datetime | None
    location: str | None = None
    category: str | None = None
    supplier: str | None = None
    movement_count: int = 0

    @property
    def total_value(self) -> Decimal:
        """current_stock x unit_cost."""
        return self.unit_cost * self.current_stock

    @property
    def is_configured(self) -> bool:
        """True when a minimum stock is configured (classification possible)."""
        return self.min_stock is not None

    @property
    def is_out_of_stock(self) -> bool:
        return self.current_stock == 0
