"""
inventory_engines.cost -- Estimated versus actual production cost.

Responsibility:
    Roll completed orders up into cost totals for a reporting window,
    grouped by completion month (or day) and by product category, with
    the cost variance of each group.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports kernel domain values and the ReportingPeriod type only.

Invariants enforced:
    - An order without an actual cost counts at its estimated cost.
    - Only orders completed inside the period are counted; the period is
      inclusive at both ends.
    - Variance is ``(actual - estimated) / estimated * 100`` rounded to a
      whole percent, half away from zero, and 0 when the estimate is 0.
    - Time groups are sorted by key ascending; category groups keep the
      order in which each category is first seen.
    - Decimal-only arithmetic; totals are not rounded here.

Failure modes:
    - ValidationError for a negative cost or an unknown grouping.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from inventory_engines.metrics import ReportingPeriod
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.values import HUNDRED, WHOLE, round_percent, to_decimal
from inventory_kernel.exceptions import ValidationError


class CostGrouping(str, Enum):
    MONTH = "month"
    DAY = "day"

    @classmethod
    def parse(cls, value: CostGrouping | str | None) -> CostGrouping:
        if value is None:
            return cls.MONTH
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError("groupBy", value, "must be 'month' or 'day'") from None

    def key_for(self, day: date) -> str:
        if self is CostGrouping.MONTH:
            return f"{day.year:04d}-{day.month:02d}"
        return day.isoformat()


def cost_variance_percent(estimated: Decimal, actual: Decimal) -> int:
    """Whole-percent overrun of ``actual`` against ``estimated``; 0 for no estimate."""
    if estimated <= 0:
        return 0
    return int(round_percent((actual - estimated) / estimated * HUNDRED, WHOLE))


@dataclass(frozen=True)
class CompletedOrderCost:
    """A completed production order with its estimated and actual cost."""

    order_id: str
    category: str
    completed_on: date
    estimated_cost: Decimal
    actual_cost: Decimal | None = None

    def __post_init__(self) -> None:
        if self.estimated_cost < 0:
            raise ValidationError("estimated_cost", self.estimated_cost, "must not be negative")
        if self.actual_cost is not None and self.actual_cost < 0:
            raise ValidationError("actual_cost", self.actual_cost, "must not be negative")

    @classmethod
    def of(
        cls,
        order_id: object,
        category: str,
        completed_on: date,
        estimated_cost: object = 0,
        actual_cost: object = None,
    ) -> CompletedOrderCost:
        return cls(
            order_id=str(order_id),
            category=category,
            completed_on=completed_on,
            estimated_cost=to_decimal(estimated_cost, "estimated_cost"),
            actual_cost=(
                None if actual_cost is None else to_decimal(actual_cost, "actual_cost")
            ),
        )

    @property
    def effective_actual(self) -> Decimal:
        return self.estimated_cost if self.actual_cost is None else self.actual_cost


@dataclass(frozen=True)
class CostGroup:
    key: str
    estimated_cost: Decimal
    actual_cost: Decimal
    orders: int

    @property
    def variance_percent(self) -> int:
        return cost_variance_percent(self.estimated_cost, self.actual_cost)


@dataclass(frozen=True)
class CostAnalysis:
    period: ReportingPeriod
    grouping: CostGrouping
    total: CostGroup
    by_time: tuple[CostGroup, ...]
    by_category: tuple[CostGroup, ...]


def _group(key: str, orders: list[CompletedOrderCost]) -> CostGroup:
    return CostGroup(
        key=key,
        estimated_cost=sum((o.estimated_cost for o in orders), Decimal("0")),
        actual_cost=sum((o.effective_actual for o in orders), Decimal("0")),
        orders=len(orders),
    )


@traced_engine("cost", "1.0", fingerprint_fields=("orders", "period", "grouping"))
def cost_analysis(
    orders: Iterable[CompletedOrderCost],
    period: ReportingPeriod,
    grouping: CostGrouping | str | None = None,
) -> CostAnalysis:
    """Cost totals and per-time / per-category groups for one period."""
    grouping = CostGrouping.parse(grouping)
    included = [o for o in orders if period.contains(o.completed_on)]

    by_time: dict[str, list[CompletedOrderCost]] = {}
    by_category: dict[str, list[CompletedOrderCost]] = {}
    for order in included:
        by_time.setdefault(grouping.key_for(order.completed_on), []).append(order)
        by_category.setdefault(order.category, []).append(order)

    return CostAnalysis(
        period=period,
        grouping=grouping,
        total=_group("total", included),
        by_time=tuple(_group(key, by_time[key]) for key in sorted(by_time)),
        by_category=tuple(_group(name, group) for name, group in by_category.items()),
    )
