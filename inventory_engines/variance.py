"""
inventory_engines.variance -- Budget versus actual variance.

Responsibility:
    Compute the variance of each financial line item (actual minus budget)
    and label it Under, Near or Over Budget for the financial report.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports kernel domain values only.

Invariants enforced:
    - ``variance = actual - budget``; a positive variance means over budget
      and the sign is never inverted.
    - Status rules, in order: ``variance <= 0`` is Under Budget;
      ``|variance / (budget or 1)| * 100 <= 5`` is Near Budget; anything
      else is Over Budget.  A zero budget divides by 1 for the status test.
    - ``variance_percent`` is 0 when the budget is 0, otherwise
      ``variance / budget * 100`` rounded to one decimal place.
    - Decimal-only arithmetic.

Failure modes:
    - ValidationError when budget or actual is not a number.

Usage:
    from inventory_engines.variance import FinancialLineItem

    item = FinancialLineItem.of("Materials", budget=1000, actual=1200)
    item.variance          # Decimal("200")
    item.status            # BudgetStatus.OVER_BUDGET
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.values import HUNDRED, round_percent, to_decimal
from inventory_kernel.exceptions import ValidationError

NEAR_BUDGET_PERCENT = Decimal("5")


class BudgetStatus(str, Enum):
    UNDER_BUDGET = "Under Budget"
    NEAR_BUDGET = "Near Budget"
    OVER_BUDGET = "Over Budget"


def classify_budget_variance(variance: Decimal, budget: Decimal) -> BudgetStatus:
    """Label a variance against its budget."""
    variance = to_decimal(variance, "variance")
    budget = to_decimal(budget, "budget")
    if variance <= 0:
        return BudgetStatus.UNDER_BUDGET
    divisor = budget if budget != 0 else Decimal("1")
    if abs(variance / divisor) * HUNDRED <= NEAR_BUDGET_PERCENT:
        return BudgetStatus.NEAR_BUDGET
    return BudgetStatus.OVER_BUDGET


def variance_percent(variance: Decimal, budget: Decimal) -> Decimal:
    """Variance as a percentage of budget, one decimal; 0 for a zero budget."""
    if budget == 0:
        return Decimal("0")
    return round_percent(variance / budget * HUNDRED)


@dataclass(frozen=True)
class FinancialLineItem:
    """
    One budget line.

    Contract: ``budget`` and ``actual`` are Decimal; build from loose
    numbers with ``FinancialLineItem.of``.
    """

    category: str
    budget: Decimal
    actual: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.category, str) or not self.category:
            raise ValidationError("category", self.category, "is required")
        if not isinstance(self.budget, Decimal):
            raise ValidationError("budget", self.budget, "must be a Decimal")
        if not isinstance(self.actual, Decimal):
            raise ValidationError("actual", self.actual, "must be a Decimal")

    @classmethod
    def of(cls, category: str, budget: object, actual: object) -> FinancialLineItem:
        return cls(
            category=category,
            budget=to_decimal(budget, "budget"),
            actual=to_decimal(actual, "actual"),
        )

    @property
    def variance(self) -> Decimal:
        """actual - budget (positive means over budget)."""
        return self.actual - self.budget

    @property
    def variance_percent(self) -> Decimal:
        return variance_percent(self.variance, self.budget)

    @property
    def status(self) -> BudgetStatus:
        return classify_budget_variance(self.variance, self.budget)


@dataclass(frozen=True)
class FinancialRow:
    """Display row for the financial report."""

    category: str
    budget: Decimal
    actual: Decimal
    variance: Decimal
    variance_percent: Decimal
    status: BudgetStatus


@traced_engine("variance", "1.0", fingerprint_fields=("items",))
def financial_report(items: tuple[FinancialLineItem, ...]) -> list[FinancialRow]:
    """One display row per line item, in input order."""
    return [
        FinancialRow(
            category=item.category,
            budget=item.budget,
            actual=item.actual,
            variance=item.variance,
            variance_percent=item.variance_percent,
            status=item.status,
        )
        for item in items
    ]
