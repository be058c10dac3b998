"""
Tests for collection filters.

Covers:
- FilterSpec search / exact match over mappings and objects
- MovementFilter (type, item, operator, inclusive date range)
- StockFilter status dropdown semantics, including unconfigured items
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from inventory_kernel.domain.movements import MovementRecord, MovementType
from inventory_kernel.domain.stock import StockLevel
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.selectors.filters import (
    FilterSpec,
    MovementFilter,
    StockFilter,
    filter_collection,
)

T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def _record(item_id, type, quantity, before, sequence, hours=0, **kw):
    return MovementRecord(
        item_id=item_id,
        type=type,
        quantity=quantity,
        balance_before=before,
        balance_after=before + type.sign * quantity,
        timestamp=T0 + timedelta(hours=hours),
        sequence=sequence,
        unit="pcs",
        **kw,
    )


def _level(item_id, name, current, min_stock, category):
    return StockLevel(
        item_id=item_id,
        name=name,
        current_stock=current,
        min_stock=min_stock,
        max_stock=None,
        unit="pcs",
        unit_cost=Decimal("1"),
        last_movement_timestamp=None,
        category=category,
    )


class TestFilterSpec:

    def setup_method(self):
        self.rows = [
            {"name": "Steel Beam", "category": "Raw Materials"},
            {"name": "Hydraulic Pump", "category": "Components"},
            {"name": "Welding Rod", "category": "Consumables"},
        ]

    def test_no_spec_returns_everything(self):
        assert filter_collection(self.rows, None) == self.rows

    def test_search_is_case_insensitive_substring(self):
        spec = FilterSpec(search="PUMP", search_fields=("name",))
        assert filter_collection(self.rows, spec) == [self.rows[1]]

    def test_blank_search_matches_all(self):
        spec = FilterSpec(search="   ", search_fields=("name",))
        assert len(filter_collection(self.rows, spec)) == 3

    @pytest.mark.parametrize("value", [None, "all", "ALL"])
    def test_all_disables_exact_match(self, value):
        spec = FilterSpec(field="category", value=value)
        assert len(filter_collection(self.rows, spec)) == 3

    def test_search_and_exact_match_combine(self):
        spec = FilterSpec(
            search="e", search_fields=("name",), field="category", value="consumables"
        )
        assert filter_collection(self.rows, spec) == [self.rows[2]]

    def test_preserves_order(self):
        spec = FilterSpec(search="o", search_fields=("category",))
        names = [row["name"] for row in filter_collection(self.rows, spec)]
        assert names == ["Hydraulic Pump", "Welding Rod"]


class TestMovementFilter:

    def setup_method(self):
        self.records = [
            _record("ITM-001", MovementType.IN, 50, 0, 1, hours=0,
                    reference="PO-2024-015", operator="John Smith"),
            _record("ITM-002", MovementType.IN, 10, 0, 2, hours=1,
                    reference="PO-2024-016", operator="Sarah Johnson"),
            _record("ITM-001", MovementType.OUT, 5, 50, 3, hours=2,
                    reference="WO-2024-001", operator="Mike Wilson"),
            _record("ITM-001", MovementType.RETURN, 2, 45, 4, hours=3,
                    reference="WO-2024-001", operator="Mike Wilson"),
        ]

    def _sequences(self, movement_filter):
        return [r.sequence for r in filter_collection(self.records, movement_filter)]

    @pytest.mark.parametrize("type,expected", [
        ("in", [1, 2]),
        ("OUT", [3]),
        (MovementType.RETURN, [4]),
        ("all", [1, 2, 3, 4]),
    ])
    def test_type(self, type, expected):
        assert self._sequences(MovementFilter(type=type)) == expected

    def test_invalid_type_rejected(self):
        with pytest.raises(ValidationError):
            MovementFilter(type="transfer")

    def test_search_covers_item_and_reference(self):
        assert self._sequences(MovementFilter(search="itm-002")) == [2]
        assert self._sequences(MovementFilter(search="wo-2024")) == [3, 4]

    def test_item_and_operator(self):
        assert self._sequences(MovementFilter(item_id="ITM-001")) == [1, 3, 4]
        assert self._sequences(MovementFilter(operator="mike wilson")) == [3, 4]

    def test_date_range_inclusive(self):
        movement_filter = MovementFilter(
            start=T0 + timedelta(hours=1), end=T0 + timedelta(hours=2)
        )
        assert self._sequences(movement_filter) == [2, 3]

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            MovementFilter(start=T0, end=T0 - timedelta(days=1))


class TestStockFilter:

    def setup_method(self):
        self.levels = [
            _level("ITM-001", "Steel Beam", 46, 20, "Raw Materials"),  # healthy
            _level("ITM-002", "Aluminum Sheet", 15, 25, "Raw Materials"),  # low
            _level("ITM-007", "Bearing Set", 3, 15, "Components"),  # critical
            _level("ITM-X", "Loose Bolts", 4, None, None),  # unconfigured
        ]

    def _ids(self, stock_filter):
        return [level.item_id for level in filter_collection(self.levels, stock_filter)]

    @pytest.mark.parametrize("status,expected", [
        ("all", ["ITM-001", "ITM-002", "ITM-007", "ITM-X"]),
        (None, ["ITM-001", "ITM-002", "ITM-007", "ITM-X"]),
        ("low", ["ITM-002", "ITM-007"]),
        ("critical", ["ITM-007"]),
        ("healthy", ["ITM-001"]),
    ])
    def test_status(self, status, expected):
        assert self._ids(StockFilter(status=status)) == expected

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            StockFilter(status="overstocked")

    def test_search_covers_name_and_category(self):
        assert self._ids(StockFilter(search="aluminum")) == ["ITM-002"]
        assert self._ids(StockFilter(search="component")) == ["ITM-007"]

    def test_category_exact_match(self):
        assert self._ids(StockFilter(category="raw materials")) == ["ITM-001", "ITM-002"]
