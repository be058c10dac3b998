"""
Integration tests for the AnalyticsService.

Builds the reports screen payload from period facts given as JSON-shaped
mappings and checks the outbound ``kpi``, ``charts``, ``production`` and
``financial`` blocks, the cost and inventory analyses, and the windows
derived from the configured reporting period.
"""

import json
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from inventory_config import get_active_config
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.exceptions import ConfigurationError, ValidationError
from inventory_services import AnalyticsService, StockService, error_payload, to_json

CURRENT = {
    "period": {"start": "2024-01-01", "end": "2024-01-30"},
    "ordersCompleted": 1250,
    "totalRevenue": 2450000,
    "avgLeadTime": 12.5,
    "qualityScore": 96.8,
    "onTimeDelivery": 94.2,
    "customerSatisfaction": 4.7,
    "workCenters": [
        {"id": "WC-001", "name": "Assembly Line A", "utilization": 87.5,
         "downtime": 2.5, "efficiency": 92.1},
        {"id": "WC-002", "name": "CNC Machine Center", "utilization": 75,
         "downtime": 4, "efficiency": 88},
        {"id": "WC-003", "name": "Paint Booth", "utilization": 40,
         "downtime": 12, "efficiency": 70},
    ],
    "financial": [
        {"category": "Materials", "budget": 1000, "actual": 1200},
        {"category": "Labor", "budget": 2000, "actual": 2080},
        {"category": "Overhead", "budget": 500, "actual": 450},
    ],
    "production": [
        {"month": "Jan", "planned": 1200, "actual": 1150},
        {"month": "Feb", "planned": 0, "actual": 0},
    ],
    "orderStatus": [
        {"name": "Completed", "value": 45},
        {"name": "In Progress", "value": 30},
    ],
}

PRIOR = {
    "period": {"start": "2023-12-02", "end": "2023-12-31"},
    "ordersCompleted": 1000,
    "totalRevenue": 2450000,
    "avgLeadTime": 0,
    "qualityScore": 95.2,
}


class TestBuild:

    def setup_method(self):
        self.service = AnalyticsService()

    def test_blocks(self):
        payload = self.service.build(CURRENT, PRIOR)
        assert set(payload) == {"kpi", "charts", "production", "financial"}

    def test_kpi_block(self):
        kpi = self.service.build(CURRENT, PRIOR)["kpi"]
        assert kpi["ordersCompleted"] == Decimal("1250")
        assert kpi["prevOrdersCompleted"] == Decimal("1000")
        assert kpi["prevAvgLeadTime"] == Decimal("0")
        assert kpi["prevOnTimeDelivery"] is None
        assert kpi["customerSatisfaction"] == Decimal("4.7")

    def test_without_prior_period(self):
        kpi = self.service.build(CURRENT)["kpi"]
        assert kpi["qualityScore"] == Decimal("96.8")
        assert kpi["prevQualityScore"] is None

    def test_prior_must_be_adjacent(self):
        prior = {**PRIOR, "period": {"start": "2023-11-01", "end": "2023-11-30"}}
        with pytest.raises(ValidationError):
            self.service.build(CURRENT, prior)

    def test_non_adjacent_prior_error_serialises(self):
        prior = {**PRIOR, "period": {"start": "2023-11-01", "end": "2023-11-30"}}
        with pytest.raises(ValidationError) as exc_info:
            self.service.build(CURRENT, prior)

        decoded = json.loads(to_json(error_payload(exc_info.value)))
        assert decoded["error"] == "VALIDATION_ERROR"
        assert decoded["details"]["field"] == "prior_facts"
        assert decoded["details"]["value"] == {"start": "2023-11-01", "end": "2023-11-30"}

    def test_charts(self):
        charts = self.service.build(CURRENT)["charts"]
        assert charts["production"][0] == {
            "month": "Jan",
            "planned": 1200,
            "actual": 1150,
            "efficiency": Decimal("95.8"),
        }
        assert charts["production"][1]["efficiency"] == Decimal("0")
        assert charts["workCenters"][0] == {
            "name": "Assembly Line A",
            "utilization": Decimal("87.5"),
        }
        assert charts["orderStatus"] == [
            {"name": "Completed", "value": 45},
            {"name": "In Progress", "value": 30},
        ]

    def test_order_status_as_mapping(self):
        facts = {**CURRENT, "orderStatus": {"Completed": 45, "Delayed": 3}}
        charts = self.service.build(facts)["charts"]
        assert [s["name"] for s in charts["orderStatus"]] == ["Completed", "Delayed"]

    def test_production_rows(self):
        rows = self.service.build(CURRENT)["production"]
        assert [(r["id"], r["status"]) for r in rows] == [
            ("WC-001", "Optimal"),
            ("WC-002", "Good"),
            ("WC-003", "Poor"),
        ]
        assert rows[0]["downtime"] == Decimal("2.5")

    def test_financial_rows(self):
        rows = self.service.build(CURRENT)["financial"]
        materials, labor, overhead = rows
        assert materials == {
            "category": "Materials",
            "budget": Decimal("1000"),
            "actual": Decimal("1200"),
            "variance": Decimal("200"),
            "variancePercent": Decimal("20.0"),
            "status": "Over Budget",
        }
        assert labor["status"] == "Near Budget"
        assert labor["variancePercent"] == Decimal("4.0")
        assert overhead["status"] == "Under Budget"
        assert overhead["variance"] == Decimal("-50")

    def test_json_output(self):
        decoded = json.loads(to_json(self.service.build(CURRENT, PRIOR)))
        assert decoded["kpi"]["totalRevenue"] == 2450000
        assert decoded["kpi"]["avgLeadTime"] == 12.5
        assert decoded["financial"][0]["variancePercent"] == 20

    def test_malformed_facts(self):
        with pytest.raises(ValidationError):
            self.service.build({**CURRENT, "qualityScore": "excellent"})
        with pytest.raises(ValidationError):
            self.service.build({**CURRENT, "workCenters": [{"id": "X", "name": "X", "utilization": 140}]})
        with pytest.raises(ValidationError):
            self.service.build({**CURRENT, "orderStatus": [{"name": "Completed", "value": -1}]})

    def test_logged(self, captured_logs):
        self.service.build(CURRENT, PRIOR)
        entry = next(r for r in captured_logs() if r["message"] == "analytics_built")
        assert entry["has_prior_period"] is True
        assert entry["work_center_count"] == 3


class TestInventoryBlock:

    def test_inventory_summary_included(self):
        stock = StockService.from_config(get_active_config(), clock=DeterministicClock())
        stock.record_movement({"item": "ITM-001", "type": "in", "quantity": 46})
        payload = AnalyticsService(stock).build(CURRENT)

        assert payload["inventory"]["totalItems"] == 8
        assert payload["inventory"]["healthyCount"] == 1


class TestEfficiency:

    def test_efficiency_payload(self):
        payload = AnalyticsService().efficiency([
            {"workCenterId": "WC-001", "workCenter": "Assembly Line A",
             "estimatedHours": 8, "actualHours": 8, "completedAt": "2024-01-10T16:00:00"},
            {"workCenterId": "WC-001", "workCenter": "Assembly Line A",
             "estimatedHours": 6, "actualHours": 8, "completedAt": "2024-01-11T09:00:00"},
            {"workCenterId": "WC-002", "workCenter": "CNC Machine Center",
             "estimatedHours": 10, "actualHours": 8},
        ])
        assert payload["overallMetrics"] == {
            "avgEfficiency": 100,
            "onTimeRate": 67,
            "totalCompletedWorkOrders": 3,
        }
        assert payload["efficiencyByWorkCenter"][0] == {
            "workCenterId": "WC-001",
            "workCenter": "Assembly Line A",
            "avgEfficiency": 88,
            "onTimeRate": 50,
            "count": 2,
        }
        assert [d["date"] for d in payload["efficiencyOverTime"]] == ["2024-01-10", "2024-01-11"]

    def test_zero_actual_hours_rejected(self):
        with pytest.raises(ValidationError):
            AnalyticsService().efficiency([
                {"workCenterId": "WC-001", "workCenter": "A",
                 "estimatedHours": 8, "actualHours": 0},
            ])


ORDERS = [
    {"id": "MO-1", "category": "Assemblies", "completedAt": "2023-12-20T15:00:00",
     "estimatedCost": 1000, "actualCost": 1100},
    {"id": "MO-2", "category": "Brackets", "completedAt": "2023-11-15",
     "estimatedCost": 400.50, "actualCost": 380.25},
    {"id": "MO-3", "category": "Assemblies", "completedAt": "2023-12-28",
     "estimatedCost": 500},
    {"id": "MO-4", "category": "Brackets", "completedAt": "2023-09-01",
     "estimatedCost": 900, "actualCost": 2000},
]


class TestDefaultPeriod:

    def test_trailing_window_from_config(self):
        config = replace(get_active_config(), reporting_period_days=7)
        service = AnalyticsService.from_config(config, clock=DeterministicClock())
        period = service.default_period()
        assert (period.start, period.end) == (date(2023, 12, 26), date(2024, 1, 1))

    def test_explicit_end(self):
        service = AnalyticsService(reporting_period_days=30)
        period = service.default_period(date(2024, 3, 31))
        assert period.start == date(2024, 3, 2)
        assert period.length_days == 30


class TestCostAnalysis:

    def setup_method(self):
        self.service = AnalyticsService(clock=DeterministicClock(), reporting_period_days=90)

    def test_default_window_and_summary(self):
        payload = self.service.cost_analysis(ORDERS)
        assert payload["period"] == {"start": date(2023, 10, 4), "end": date(2024, 1, 1)}
        assert payload["groupBy"] == "month"
        assert payload["summary"] == {
            "totalEstimatedCost": Decimal("1900.50"),
            "totalActualCost": Decimal("1980.25"),
            "overallVariance": 4,
            "totalOrders": 3,
        }

    def test_groups(self):
        payload = self.service.cost_analysis(ORDERS)
        assert [row["period"] for row in payload["costsByTime"]] == ["2023-11", "2023-12"]
        assert payload["costsByTime"][1] == {
            "period": "2023-12",
            "estimatedCost": Decimal("1500"),
            "actualCost": Decimal("1600"),
            "orders": 2,
            "variance": 7,
        }
        assert [row["category"] for row in payload["costsByCategory"]] == ["Assemblies", "Brackets"]
        assert payload["costsByCategory"][1]["variance"] == -5

    def test_explicit_window_and_day_grouping(self):
        payload = self.service.cost_analysis(
            ORDERS, start="2023-12-01", end="2023-12-31", group_by="day"
        )
        assert payload["summary"]["totalOrders"] == 2
        assert [row["period"] for row in payload["costsByTime"]] == ["2023-12-20", "2023-12-28"]

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            self.service.cost_analysis(ORDERS, start="2024-02-01", end="2024-01-01")

    def test_order_without_completion_date_rejected(self):
        with pytest.raises(ValidationError):
            self.service.cost_analysis([{"id": "MO-9", "category": "Assemblies"}])

    def test_json_output(self):
        decoded = json.loads(to_json(self.service.cost_analysis(ORDERS)))
        assert decoded["period"] == {"start": "2023-10-04", "end": "2024-01-01"}
        assert decoded["summary"]["totalActualCost"] == 1980.25

    def test_logged(self, captured_logs):
        self.service.cost_analysis(ORDERS)
        entry = next(r for r in captured_logs() if r["message"] == "cost_analysis_built")
        assert entry["order_count"] == 3
        assert entry["period_start"] == "2023-10-04"


class TestInventoryAnalysis:

    def setup_method(self):
        self.clock = DeterministicClock()
        self.stock = StockService.from_config(get_active_config(), clock=self.clock)
        # Older than the 30-day window ending 2024-01-01.
        self.clock.set_time(datetime(2023, 11, 1, 9, 0, tzinfo=timezone.utc))
        self.stock.record_movement({"item": "ITM-002", "type": "in", "quantity": 10})
        self.clock.set_time(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc))
        for body in [
            {"item": "ITM-001", "type": "in", "quantity": 50, "reference": "PO-2024-015"},
            {"item": "ITM-001", "type": "out", "quantity": 5, "reference": "WO-2024-001"},
            {"item": "ITM-003", "type": "in", "quantity": 4, "reference": "PO-2024-020"},
        ]:
            self.clock.advance(3600)
            self.stock.record_movement(body)
        self.service = AnalyticsService.from_config(
            get_active_config(), self.stock, clock=self.clock
        )

    def test_movement_analysis(self):
        analysis = self.service.inventory_analysis()["movementAnalysis"]
        assert analysis["period"] == {"start": date(2023, 12, 3), "end": date(2024, 1, 1)}
        assert analysis["totalMovements"] == 3
        assert analysis["movementsByType"] == {"IN": 54, "OUT": 5, "RETURN": 0}
        assert [g["category"] for g in analysis["movementsByCategory"]] == [
            "Consumables", "Raw Materials",
        ]
        raw = analysis["movementsByCategory"][1]
        assert (raw["totalIn"], raw["totalOut"], raw["netChange"]) == (50, 5, 45)

    def test_top_movements_newest_first(self):
        top = self.service.inventory_analysis()["topMovements"]
        assert [m["reference"] for m in top] == ["PO-2024-020", "WO-2024-001", "PO-2024-015"]

    def test_stock_analysis(self):
        stock = self.service.inventory_analysis()["stockAnalysis"]
        assert stock["totalItems"] == 8
        assert stock["totalValue"] > 0

    def test_needs_stock_service(self):
        with pytest.raises(ConfigurationError):
            AnalyticsService().inventory_analysis()
