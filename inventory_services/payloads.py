"""
inventory_services.payloads -- JSON contract mapping.

Responsibility:
    Translate between the dashboard's JSON field names and the domain
    objects: inbound movement requests and period facts, outbound movement
    records, stock levels, summaries and error bodies.

Architecture position:
    Services -- outermost layer.  Depends on kernel domain types and
    engine result types; nothing depends on it except the service facades.

Invariants enforced:
    - Field names match the dashboard contract exactly (camelCase).
    - Inbound numbers become Decimal through ``to_decimal``; outbound
      Decimals are written as JSON numbers by ``to_json``.
    - Mapping functions never mutate their inputs.

Failure modes:
    - ValidationError for a non-mapping body or malformed fields.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from inventory_engines.cost import CompletedOrderCost, CostAnalysis, CostGroup
from inventory_engines.metrics import PeriodFacts, ProductionPoint, ReportingPeriod
from inventory_engines.summary import CategoryMovements, MovementSummary, StockSummary
from inventory_engines.utilization import EfficiencyMetrics, EfficiencyStats, WorkCenterFacts, WorkOrderFacts
from inventory_engines.variance import FinancialLineItem, FinancialRow
from inventory_kernel.domain.movements import MovementInput, MovementRecord, parse_quantity
from inventory_kernel.domain.stock import StockLevel, StockStatus
from inventory_kernel.domain.values import optional_decimal, to_decimal
from inventory_kernel.exceptions import InventoryKernelError, ValidationError

# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


def _require_mapping(payload: object, name: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError(name, payload, "must be a JSON object")
    return payload


def movement_from_payload(payload: Mapping[str, Any]) -> MovementInput:
    """``{item, type, quantity, location?, reference?, operator?, reason?}``"""
    body = _require_mapping(payload, "movement")
    return MovementInput.parse(
        item_id=body.get("item"),
        type=body.get("type"),
        quantity=body.get("quantity"),
        unit=body.get("unit"),
        location=body.get("location"),
        reference=body.get("reference"),
        operator=body.get("operator"),
        reason=body.get("reason"),
    )


def parse_moment(value: object, field: str) -> datetime | None:
    """ISO date or datetime string (or a datetime) as an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(field, value, "must be an ISO date or datetime") from None
    else:
        raise ValidationError(field, value, "must be an ISO date or datetime")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _parse_date(value: object, field: str) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(field, value, "must be an ISO date")


def _parse_order_status(value: object) -> dict[str, int]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        pairs = list(value.items())
    elif isinstance(value, list):
        pairs = [(_require_mapping(entry, "orderStatus").get("name"), entry.get("value")) for entry in value]
    else:
        raise ValidationError("orderStatus", value, "must be an object or a list")
    result: dict[str, int] = {}
    for name, count in pairs:
        if not name:
            raise ValidationError("orderStatus", value, "status name is required")
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValidationError("orderStatus", count, "count must be a non-negative integer")
        result[str(name)] = count
    return result


def period_facts_from_payload(payload: Mapping[str, Any]) -> PeriodFacts:
    """
    Period facts from the analytics request body.

    Shape: ``{period?: {start, end}, ordersCompleted?, totalRevenue?,
    avgLeadTime?, qualityScore?, onTimeDelivery?, customerSatisfaction?,
    workCenters?: [...], financial?: [...], production?: [...],
    orderStatus?: {...}}``.
    """
    body = _require_mapping(payload, "facts")

    period = None
    if body.get("period") is not None:
        raw_period = _require_mapping(body["period"], "period")
        period = ReportingPeriod(
            start=_parse_date(raw_period.get("start"), "period.start"),
            end=_parse_date(raw_period.get("end"), "period.end"),
        )

    work_centers = tuple(
        WorkCenterFacts.of(
            id=entry.get("id"),
            name=entry.get("name"),
            utilization=entry.get("utilization", 0),
            downtime=entry.get("downtime", 0),
            efficiency=entry.get("efficiency", 0),
        )
        for entry in (_require_mapping(e, "workCenters") for e in body.get("workCenters") or [])
    )
    financial = tuple(
        FinancialLineItem.of(entry.get("category"), entry.get("budget", 0), entry.get("actual", 0))
        for entry in (_require_mapping(e, "financial") for e in body.get("financial") or [])
    )
    production = tuple(
        ProductionPoint(
            month=str(entry.get("month")),
            planned=_count(entry.get("planned", 0), "planned"),
            actual=_count(entry.get("actual", 0), "actual"),
        )
        for entry in (_require_mapping(e, "production") for e in body.get("production") or [])
    )

    return PeriodFacts(
        period=period,
        orders_completed=optional_decimal(body.get("ordersCompleted"), "ordersCompleted"),
        total_revenue=optional_decimal(body.get("totalRevenue"), "totalRevenue"),
        avg_lead_time=optional_decimal(body.get("avgLeadTime"), "avgLeadTime"),
        quality_score=optional_decimal(body.get("qualityScore"), "qualityScore"),
        on_time_delivery=optional_decimal(body.get("onTimeDelivery"), "onTimeDelivery"),
        customer_satisfaction=optional_decimal(
            body.get("customerSatisfaction"), "customerSatisfaction"
        ),
        work_centers=work_centers,
        financial=financial,
        production_trend=production,
        order_status=_parse_order_status(body.get("orderStatus")),
    )


def _count(value: object, field: str) -> int:
    if value == 0:
        return 0
    try:
        return parse_quantity(value)
    except ValidationError:
        raise ValidationError(field, value, "must be a non-negative integer") from None


def work_order_from_payload(payload: Mapping[str, Any]) -> WorkOrderFacts:
    """``{workCenterId, workCenter, estimatedHours, actualHours, completedAt?}``"""
    body = _require_mapping(payload, "workOrder")
    completed = parse_moment(body.get("completedAt"), "completedAt")
    return WorkOrderFacts(
        work_center_id=str(body.get("workCenterId")),
        work_center_name=str(body.get("workCenter")),
        estimated_hours=to_decimal(body.get("estimatedHours"), "estimatedHours"),
        actual_hours=to_decimal(body.get("actualHours"), "actualHours"),
        completed_on=completed.date() if completed else None,
    )


def cost_order_from_payload(payload: Mapping[str, Any]) -> CompletedOrderCost:
    """``{id, category, completedAt, estimatedCost?, actualCost?}``"""
    body = _require_mapping(payload, "order")
    completed = parse_moment(body.get("completedAt"), "completedAt")
    if completed is None:
        raise ValidationError("completedAt", None, "is required")
    category = body.get("category")
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category", category, "is required")
    return CompletedOrderCost.of(
        order_id=body.get("id"),
        category=category,
        completed_on=completed.date(),
        estimated_cost=body.get("estimatedCost") or 0,
        actual_cost=body.get("actualCost"),
    )


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


def record_payload(record: MovementRecord) -> dict[str, Any]:
    return {
        "id": str(record.id),
        "date": record.timestamp.date().isoformat(),
        "time": record.timestamp.strftime("%H:%M"),
        "item": record.item_id,
        "type": record.type.value,
        "quantity": record.quantity,
        "unit": record.unit,
        "reference": record.reference,
        "location": record.location,
        "operator": record.operator,
        "balanceBefore": record.balance_before,
        "balanceAfter": record.balance_after,
        "reason": record.reason,
    }


def stock_level_payload(level: StockLevel, status: StockStatus | None) -> dict[str, Any]:
    return {
        "id": level.item_id,
        "item": level.name,
        "category": level.category,
        "currentStock": level.current_stock,
        "minStock": level.min_stock,
        "maxStock": level.max_stock,
        "unit": level.unit,
        "location": level.location,
        "unitCost": level.unit_cost,
        "totalValue": level.total_value,
        "lastMovement": (
            level.last_movement_timestamp.date().isoformat()
            if level.last_movement_timestamp
            else None
        ),
        "supplier": level.supplier,
        "status": status.value if status is not None else None,
    }


def stock_summary_payload(summary: StockSummary) -> dict[str, Any]:
    return {
        "totalItems": summary.total_items,
        "totalValue": summary.total_value,
        "healthyCount": summary.healthy_count,
        "lowStockCount": summary.low_count,
        "criticalCount": summary.critical_count,
        "outOfStockCount": summary.out_of_stock_count,
        "unconfiguredCount": summary.unconfigured_count,
        "categories": [
            {
                "category": c.category,
                "itemCount": c.item_count,
                "totalQuantity": c.total_quantity,
                "totalValue": c.total_value,
            }
            for c in summary.by_category
        ],
    }


def movement_summary_payload(summary: MovementSummary) -> dict[str, Any]:
    return {
        "count": summary.count,
        "totalIn": summary.total_in,
        "totalOut": summary.total_out,
        "totalReturn": summary.total_return,
        "netChange": summary.net_change,
    }


def category_movements_payload(groups: tuple[CategoryMovements, ...]) -> list[dict[str, Any]]:
    return [
        {"category": group.category, **movement_summary_payload(group.summary)}
        for group in groups
    ]


def financial_row_payload(row: FinancialRow) -> dict[str, Any]:
    return {
        "category": row.category,
        "budget": row.budget,
        "actual": row.actual,
        "variance": row.variance,
        "variancePercent": row.variance_percent,
        "status": row.status.value,
    }


def work_center_payload(facts: WorkCenterFacts) -> dict[str, Any]:
    return {
        "id": facts.id,
        "name": facts.name,
        "utilization": facts.utilization,
        "downtime": facts.downtime,
        "efficiency": facts.efficiency,
        "status": facts.status.value,
    }


def _efficiency_stats(
    stats: EfficiencyStats, key_name: str, display: str | None = None
) -> dict[str, Any]:
    return {
        key_name: display if display is not None else stats.key,
        "avgEfficiency": stats.avg_efficiency,
        "onTimeRate": stats.on_time_rate,
        "count": stats.count,
    }


def efficiency_payload(metrics: EfficiencyMetrics) -> dict[str, Any]:
    return {
        "overallMetrics": {
            "avgEfficiency": metrics.overall.avg_efficiency,
            "onTimeRate": metrics.overall.on_time_rate,
            "totalCompletedWorkOrders": metrics.overall.count,
        },
        "efficiencyByWorkCenter": [
            {"workCenterId": s.key, **_efficiency_stats(s, "workCenter", s.label)}
            for s in metrics.by_work_center
        ],
        "efficiencyOverTime": [_efficiency_stats(s, "date") for s in metrics.over_time],
    }


_CENT = Decimal("0.01")


def _cost_group(group: CostGroup, key_name: str) -> dict[str, Any]:
    return {
        key_name: group.key,
        "estimatedCost": group.estimated_cost,
        "actualCost": group.actual_cost,
        "orders": group.orders,
        "variance": group.variance_percent,
    }


def cost_analysis_payload(analysis: CostAnalysis) -> dict[str, Any]:
    """Summary totals are rounded to cents; group sums are left exact."""
    total = analysis.total
    return {
        "period": {"start": analysis.period.start, "end": analysis.period.end},
        "groupBy": analysis.grouping.value,
        "summary": {
            "totalEstimatedCost": total.estimated_cost.quantize(_CENT, rounding=ROUND_HALF_UP),
            "totalActualCost": total.actual_cost.quantize(_CENT, rounding=ROUND_HALF_UP),
            "overallVariance": total.variance_percent,
            "totalOrders": total.orders,
        },
        "costsByTime": [_cost_group(g, "period") for g in analysis.by_time],
        "costsByCategory": [_cost_group(g, "category") for g in analysis.by_category],
    }


def error_payload(exc: BaseException) -> dict[str, Any]:
    """``{error, message, details}`` for a kernel exception."""
    if not isinstance(exc, InventoryKernelError):
        return {"error": "INTERNAL_ERROR", "message": "Internal error", "details": {}}
    details = {k: v for k, v in vars(exc).items() if not k.startswith("_")}
    return {"error": exc.code, "message": str(exc), "details": details}


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if value is None or isinstance(value, (str, int, float)):
        return value
    return str(value)


def to_json(payload: Any) -> str:
    """Serialise a payload; Decimals become JSON numbers."""
    return json.dumps(_jsonable(payload))
