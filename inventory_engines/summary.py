"""
inventory_engines.summary -- Inventory and movement roll-ups.

Responsibility:
    Aggregate projected stock levels into the stock screen's summary cards
    (item count, total value, low / critical / out-of-stock counts and a
    per-category breakdown) and movement records into in / out / return
    totals, overall and per item category.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``total_value`` is the Decimal sum of ``current_stock * unit_cost``.
    - Low and Critical counts are disjoint (each level is counted under its
      single classification); unconfigured items are counted separately and
      never classified.
    - ``net_change = total_in + total_return - total_out``.
    - Movements of items with no known category are grouped under
      "Uncategorized".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.classification import classify
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.movements import MovementRecord, MovementType
from inventory_kernel.domain.stock import StockLevel, StockStatus

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class CategorySummary:
    category: str
    item_count: int
    total_quantity: int
    total_value: Decimal


@dataclass(frozen=True)
class StockSummary:
    total_items: int
    total_value: Decimal
    healthy_count: int
    low_count: int
    critical_count: int
    out_of_stock_count: int
    unconfigured_count: int
    by_category: tuple[CategorySummary, ...]


@dataclass(frozen=True)
class MovementSummary:
    count: int
    total_in: int
    total_out: int
    total_return: int

    @property
    def net_change(self) -> int:
        return self.total_in + self.total_return - self.total_out


@traced_engine("summary", "1.0")
def summarize_stock(levels: Iterable[StockLevel]) -> StockSummary:
    """Summary cards for a set of stock levels; categories sorted by name."""
    counts = {status: 0 for status in StockStatus}
    unconfigured = 0
    out_of_stock = 0
    total_items = 0
    total_value = Decimal("0")
    categories: dict[str, list[StockLevel]] = {}

    for level in levels:
        total_items += 1
        total_value += level.total_value
        if level.is_out_of_stock:
            out_of_stock += 1
        if level.min_stock is None:
            unconfigured += 1
        else:
            counts[classify(level.current_stock, level.min_stock)] += 1
        categories.setdefault(level.category or UNCATEGORIZED, []).append(level)

    by_category = tuple(
        CategorySummary(
            category=name,
            item_count=len(group),
            total_quantity=sum(level.current_stock for level in group),
            total_value=sum((level.total_value for level in group), Decimal("0")),
        )
        for name, group in sorted(categories.items())
    )
    return StockSummary(
        total_items=total_items,
        total_value=total_value,
        healthy_count=counts[StockStatus.HEALTHY],
        low_count=counts[StockStatus.LOW],
        critical_count=counts[StockStatus.CRITICAL],
        out_of_stock_count=out_of_stock,
        unconfigured_count=unconfigured,
        by_category=by_category,
    )


@traced_engine("summary", "1.0")
def summarize_movements(records: Iterable[MovementRecord]) -> MovementSummary:
    totals = {movement_type: 0 for movement_type in MovementType}
    count = 0
    for record in records:
        count += 1
        totals[record.type] += record.quantity
    return MovementSummary(
        count=count,
        total_in=totals[MovementType.IN],
        total_out=totals[MovementType.OUT],
        total_return=totals[MovementType.RETURN],
    )


@dataclass(frozen=True)
class CategoryMovements:
    category: str
    summary: MovementSummary


@traced_engine("summary", "1.0")
def summarize_movements_by_category(
    records: Iterable[MovementRecord],
    categories: Mapping[str, str | None],
) -> tuple[CategoryMovements, ...]:
    """Movement totals per item category, sorted by category name.

    ``categories`` maps item id to category.
    """
    grouped: dict[str, list[MovementRecord]] = {}
    for record in records:
        category = categories.get(record.item_id) or UNCATEGORIZED
        grouped.setdefault(category, []).append(record)
    return tuple(
        CategoryMovements(category=name, summary=summarize_movements(group))
        for name, group in sorted(grouped.items())
    )
