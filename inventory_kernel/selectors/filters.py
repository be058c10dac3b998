"""
Module: inventory_kernel.selectors.filters
Responsibility: Pure, order-preserving filters over in-memory collections of
    movements and stock levels.  This is the query side of the dashboard
    screens: free-text search plus an enumerated dropdown, where "all"
    switches the dropdown off.
Architecture position: Kernel > Selectors.  Reads domain objects only; may
    call the pure classification engine for stock-status filtering.

Invariants enforced:
    - filter_collection never mutates its input and returns a new list whose
      order is the input order.
    - Filter specs are stateless frozen dataclasses; the same spec applied
      to the same collection always yields the same result.
    - Text matching is case-insensitive: substring for the search term,
      exact for the enumerated field.

Failure modes:
    - ValidationError when a filter names an unknown stock status or a
      start bound that is after its end bound.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, TypeVar

from inventory_engines.classification import matches_status
from inventory_kernel.domain.movements import MovementRecord, MovementType
from inventory_kernel.domain.stock import StockLevel
from inventory_kernel.exceptions import ValidationError

ALL = "all"

T = TypeVar("T")


class Predicate(Protocol):
    def matches(self, obj: Any) -> bool:
        ...


def _field_value(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).lower()


def _is_all(value: Any) -> bool:
    return value is None or _text(value) == ALL


@dataclass(frozen=True)
class FilterSpec:
    """
    Search term over one or more fields AND an exact enumerated match.

    ``search`` is matched as a case-insensitive substring against any of
    ``search_fields``; an empty or None term matches everything.  ``field``
    / ``value`` form an exact, case-insensitive predicate; ``value`` of
    None or "all" disables it.
    """

    search: str | None = None
    search_fields: tuple[str, ...] = ()
    field: str | None = None
    value: Any = None

    def matches(self, obj: Any) -> bool:
        term = (self.search or "").strip().lower()
        if term and not any(
            term in _text(_field_value(obj, name)) for name in self.search_fields
        ):
            return False
        if self.field is not None and not _is_all(self.value):
            return _text(_field_value(obj, self.field)) == _text(self.value)
        return True


def filter_collection(collection: Iterable[T], spec: Predicate | None) -> list[T]:
    """Items of ``collection`` accepted by ``spec``, in their original order."""
    if spec is None:
        return list(collection)
    return [item for item in collection if spec.matches(item)]


@dataclass(frozen=True)
class MovementFilter:
    """
    Movement history filter.

    Search covers the item id and the reference; ``type`` is the movement
    type dropdown.  ``start`` / ``end`` bound the timestamp inclusively.
    """

    search: str | None = None
    type: MovementType | str | None = None
    item_id: str | None = None
    operator: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationError("start", self.start, "must not be after end")
        if not _is_all(self.type):
            MovementType.parse(self.type)

    def matches(self, record: MovementRecord) -> bool:
        spec = FilterSpec(
            search=self.search,
            search_fields=("item_id", "reference"),
            field="type",
            value=self.type,
        )
        if not spec.matches(record):
            return False
        if self.item_id is not None and record.item_id != self.item_id:
            return False
        if not _is_all(self.operator) and _text(record.operator) != _text(self.operator):
            return False
        if self.start is not None and record.timestamp < self.start:
            return False
        if self.end is not None and record.timestamp > self.end:
            return False
        return True


STOCK_STATUS_FILTERS = (ALL, "low", "critical", "healthy")


@dataclass(frozen=True)
class StockFilter:
    """
    Stock level filter.

    ``status`` follows the stock screen's dropdown, where "low" includes
    critical items.  Items without a configured minimum only pass when the
    status filter is off.
    """

    search: str | None = None
    status: str | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        if not _is_all(self.status) and _text(self.status) not in STOCK_STATUS_FILTERS:
            raise ValidationError(
                "status", self.status, f"must be one of {', '.join(STOCK_STATUS_FILTERS)}"
            )

    def matches(self, level: StockLevel) -> bool:
        spec = FilterSpec(
            search=self.search,
            search_fields=("item_id", "name", "category"),
            field="category",
            value=self.category,
        )
        if not spec.matches(level):
            return False
        if _is_all(self.status):
            return True
        if level.min_stock is None:
            return False
        return matches_status(level.current_stock, level.min_stock, _text(self.status))
