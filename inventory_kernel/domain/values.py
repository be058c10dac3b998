"""
Values -- Decimal coercion and percentage rounding.

Responsibility:
    The one place where loosely-typed numbers (ints, floats, strings from
    JSON or YAML) become ``Decimal``, and where percentages are rounded for
    display.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Floats are converted through ``str`` so 0.1 becomes Decimal("0.1"),
      never its binary expansion.
    - Percentages round half away from zero (ROUND_HALF_UP on Decimal).

Failure modes:
    - ValidationError for booleans, None, non-numeric strings, NaN and
      infinities.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from inventory_kernel.exceptions import ValidationError

ONE_DECIMAL = Decimal("0.1")
WHOLE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: object, field: str = "value") -> Decimal:
    """Coerce a number to Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(field, value, "must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(field, value, "must be a number") from None
    if not result.is_finite():
        raise ValidationError(field, value, "must be finite")
    return result


def optional_decimal(value: object, field: str = "value") -> Decimal | None:
    return None if value is None else to_decimal(value, field)


def round_percent(value: Decimal, quantum: Decimal = ONE_DECIMAL) -> Decimal:
    """Round half away from zero to ``quantum`` (one decimal place by default)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)
