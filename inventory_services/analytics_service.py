"""
inventory_services.analytics_service -- Reports screen analytics block.

Responsibility:
    Assemble the analytics payload (``kpi``, ``charts``, ``production``,
    ``financial`` and, when a stock service is attached, ``inventory``)
    from already-fetched period facts, plus the efficiency, cost and
    inventory analyses.  Windows that the caller leaves open default to
    the configured reporting period ending today.

Architecture position:
    Services -- orchestration over the metrics, variance, utilization and
    summary and cost engines.  Holds no state between calls.

Invariants enforced:
    - ``kpi`` carries each metric and its ``prev`` counterpart; a missing
      prior period gives ``prev*: null``, never 0.
    - Financial and production rows keep the input order.
    - ``charts.orderStatus`` keeps the insertion order of the status map.

Failure modes:
    - ValidationError from malformed facts or a non-adjacent prior period.
    - ConfigurationError from ``inventory_analysis`` without a stock service.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, time
from typing import Any

from inventory_config.schema import InventoryConfig
from inventory_engines.cost import CompletedOrderCost, cost_analysis
from inventory_engines.metrics import PeriodFacts, ReportingPeriod, build_kpi_snapshot
from inventory_engines.utilization import WorkOrderFacts, efficiency_metrics
from inventory_engines.variance import financial_report
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import ConfigurationError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_services.payloads import (
    cost_analysis_payload,
    cost_order_from_payload,
    efficiency_payload,
    financial_row_payload,
    parse_moment,
    period_facts_from_payload,
    work_center_payload,
    work_order_from_payload,
)
from inventory_services.stock_service import StockService

logger = get_logger("services.analytics")


def _as_facts(facts: PeriodFacts | Mapping[str, Any]) -> PeriodFacts:
    if isinstance(facts, PeriodFacts):
        return facts
    return period_facts_from_payload(facts)


class AnalyticsService:
    """
    Builds the reports screen payload.

    Contract:
        ``reporting_period_days`` sizes every window the caller leaves
        open; "today" comes from the injected clock.
    Non-goals:
        - Does not fetch facts; callers pass them in.
    """

    DEFAULT_PERIOD_DAYS = 30
    TOP_MOVEMENTS = 10

    def __init__(
        self,
        stock_service: StockService | None = None,
        *,
        clock: Clock | None = None,
        reporting_period_days: int = DEFAULT_PERIOD_DAYS,
    ):
        self._stock_service = stock_service
        self._clock = clock or SystemClock()
        self._period_days = reporting_period_days

    @classmethod
    def from_config(
        cls,
        config: InventoryConfig,
        stock_service: StockService | None = None,
        *,
        clock: Clock | None = None,
    ) -> AnalyticsService:
        return cls(
            stock_service,
            clock=clock,
            reporting_period_days=config.reporting_period_days,
        )

    def default_period(self, end: date | None = None) -> ReportingPeriod:
        """The configured trailing window ending on ``end`` (default today)."""
        if end is None:
            end = self._clock.now().date()
        return ReportingPeriod.trailing(end, self._period_days)

    def _window(self, start: Any, end: Any) -> ReportingPeriod:
        start_moment = parse_moment(start, "startDate")
        end_moment = parse_moment(end, "endDate")
        period = self.default_period(end_moment.date() if end_moment else None)
        if start_moment is None:
            return period
        if start_moment.date() > period.end:
            raise ValidationError("startDate", start, "must not be after endDate")
        return ReportingPeriod(start=start_moment.date(), end=period.end)

    def build(
        self,
        facts: PeriodFacts | Mapping[str, Any],
        prior_facts: PeriodFacts | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        current = _as_facts(facts)
        prior = _as_facts(prior_facts) if prior_facts is not None else None

        snapshot = build_kpi_snapshot(facts=current, prior_facts=prior)
        financial = financial_report(items=current.financial)

        payload: dict[str, Any] = {
            "kpi": snapshot.to_kpi_block(),
            "charts": {
                "production": [
                    {
                        "month": point.month,
                        "planned": point.planned,
                        "actual": point.actual,
                        "efficiency": point.efficiency,
                    }
                    for point in current.production_trend
                ],
                "workCenters": [
                    {"name": wc.name, "utilization": wc.utilization}
                    for wc in current.work_centers
                ],
                "orderStatus": [
                    {"name": name, "value": count}
                    for name, count in current.order_status.items()
                ],
            },
            "production": [work_center_payload(wc) for wc in current.work_centers],
            "financial": [financial_row_payload(row) for row in financial],
        }
        if self._stock_service is not None:
            payload["inventory"] = self._stock_service.stock_summary()

        logger.info("analytics_built", extra={
            "has_prior_period": prior is not None,
            "work_center_count": len(current.work_centers),
            "financial_line_count": len(current.financial),
        })
        return payload

    def efficiency(
        self, work_orders: Iterable[WorkOrderFacts | Mapping[str, Any]]
    ) -> dict[str, Any]:
        """Efficiency metrics for completed work orders."""
        orders = [
            wo if isinstance(wo, WorkOrderFacts) else work_order_from_payload(wo)
            for wo in work_orders
        ]
        return efficiency_payload(efficiency_metrics(work_orders=orders))

    def cost_analysis(
        self,
        orders: Iterable[CompletedOrderCost | Mapping[str, Any]],
        *,
        start: Any = None,
        end: Any = None,
        group_by: str | None = None,
    ) -> dict[str, Any]:
        """
        Estimated versus actual cost of orders completed in the window.

        ``start`` and ``end`` are ISO dates; a missing end means today and a
        missing start means the configured reporting period before it.
        ``group_by`` is "month" (default) or "day".
        """
        period = self._window(start, end)
        parsed = [
            o if isinstance(o, CompletedOrderCost) else cost_order_from_payload(o)
            for o in orders
        ]
        analysis = cost_analysis(orders=parsed, period=period, grouping=group_by)
        logger.info("cost_analysis_built", extra={
            "period_start": period.start,
            "period_end": period.end,
            "order_count": analysis.total.orders,
            "grouping": analysis.grouping.value,
        })
        return cost_analysis_payload(analysis)

    def inventory_analysis(self) -> dict[str, Any]:
        """
        Stock summary plus movement activity over the configured period.

        ``topMovements`` holds the most recent movements, newest first.

        Raises:
            ConfigurationError: no stock service is attached.
        """
        if self._stock_service is None:
            raise ConfigurationError(
                "AnalyticsService", "inventory analysis needs a stock service"
            )
        stock = self._stock_service
        now = self._clock.now()
        period = self.default_period(now.date())
        window = {"start": datetime.combine(period.start, time.min, tzinfo=UTC), "end": now}

        totals = stock.movement_summary(**window)
        recent = stock.list_movements(**window)
        return {
            "stockAnalysis": stock.stock_summary(),
            "movementAnalysis": {
                "period": {"start": period.start, "end": period.end},
                "totalMovements": totals["count"],
                "movementsByType": {
                    "IN": totals["totalIn"],
                    "OUT": totals["totalOut"],
                    "RETURN": totals["totalReturn"],
                },
                "movementsByCategory": stock.movements_by_category(**window),
            },
            "topMovements": recent[::-1][: self.TOP_MOVEMENTS],
        }
