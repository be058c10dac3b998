"""
Stock movements -- immutable ledger records and validated inputs.

Responsibility:
    Define the nouns of the stock ledger: the movement type (IN, OUT,
    RETURN), the validated request to record a movement, and the immutable
    record that the ledger stores.  ``apply_movement`` is the single place
    where the balance sign rule lives.

Architecture position:
    Kernel > Domain -- pure value objects.  No I/O, no clock, no locks.
    The LedgerStore owns sequencing and timestamps; this module only
    validates and computes.

Invariants enforced:
    - quantity is a positive integer (MovementInput.parse).
    - balance_after = balance_before + quantity for IN / RETURN,
      balance_after = balance_before - quantity for OUT
      (MovementRecord.__post_init__).
    - balance_before >= 0 and balance_after >= 0.
    - An OUT larger than the available balance is rejected, never clamped
      (apply_movement raises InsufficientStockError).

Failure modes:
    - ValidationError from MovementInput.parse / MovementType.parse on
      malformed input.
    - InsufficientStockError from apply_movement on overdraw.
    - LedgerIntegrityError from MovementRecord construction if the balance
      chain does not hold (only possible for hand-built or replayed records).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from uuid import UUID, uuid4

from inventory_kernel.exceptions import (
    InsufficientStockError,
    LedgerIntegrityError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("domain.movements")


class MovementType(str, Enum):
    """Direction of a stock movement."""

    IN = "IN"  # receipt
    OUT = "OUT"  # issue / consumption
    RETURN = "RETURN"  # reversal back into stock

    @property
    def sign(self) -> int:
        """+1 for movements that add stock, -1 for those that remove it."""
        return -1 if self is MovementType.OUT else 1

    @classmethod
    def parse(cls, value: MovementType | str) -> MovementType:
        """Case-insensitive lookup among in / out / return."""
        if isinstance(value, MovementType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValidationError("type", value, "must be one of in, out, return")


def parse_quantity(value: object) -> int:
    """
    Coerce a quantity to a positive int.

    Accepts ints, integral floats/Decimals and numeric strings ("12").
    Rejects booleans, fractional values, non-numeric values and anything
    that is not strictly positive.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("quantity", value, "must be a positive integer")
    if isinstance(value, int):
        quantity = value
    else:
        try:
            as_decimal = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError("quantity", value, "must be numeric") from None
        if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
            raise ValidationError("quantity", value, "must be a whole number")
        quantity = int(as_decimal)
    if quantity <= 0:
        raise ValidationError("quantity", value, "must be greater than 0")
    return quantity


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class MovementInput:
    """
    A validated request to record one movement.

    Build through ``MovementInput.parse`` when the values come from outside
    (JSON, forms); direct construction assumes already-typed values and
    still validates quantity and item id.
    """

    item_id: str
    type: MovementType
    quantity: int
    unit: str | None = None
    location: str | None = None
    reference: str | None = None
    operator: str | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.item_id, str) or not self.item_id.strip():
            raise ValidationError("item", self.item_id, "must be a non-empty string")
        if not isinstance(self.type, MovementType):
            raise ValidationError("type", self.type, "must be a MovementType")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValidationError("quantity", self.quantity, "must be a positive integer")

    @classmethod
    def parse(
        cls,
        *,
        item_id: object,
        type: object,
        quantity: object,
        unit: object = None,
        location: object = None,
        reference: object = None,
        operator: object = None,
        reason: object = None,
    ) -> MovementInput:
        """Validate and normalise loosely-typed input."""
        item = _optional_text(item_id)
        if item is None:
            raise ValidationError("item", item_id, "is required")
        return cls(
            item_id=item,
            type=MovementType.parse(type),
            quantity=parse_quantity(quantity),
            unit=_optional_text(unit),
            location=_optional_text(location),
            reference=_optional_text(reference),
            operator=_optional_text(operator),
            reason=_optional_text(reason),
        )


def apply_movement(
    item_id: str,
    movement_type: MovementType,
    quantity: int,
    balance_before: int,
) -> int:
    """
    Apply the sign rule and return the new balance.

    Raises:
        InsufficientStockError: OUT quantity exceeds ``balance_before``.
    """
    if movement_type is MovementType.OUT and quantity > balance_before:
        raise InsufficientStockError(item_id, balance_before, quantity)
    return balance_before + movement_type.sign * quantity


@dataclass(frozen=True)
class MovementRecord:
    """
    One immutable entry of the stock ledger.

    Contract:
        Created once by the LedgerStore (or rebuilt from the journal during
        replay) and never mutated.
    Guarantees:
        - The balance chain rule holds for this record on its own.
        - ``sequence`` is the record's position in the ledger; it is unique
          and increases with every append.
    Non-goals:
        - Does not check continuity with the previous record of the same
          item; that is the LedgerStore's job (append and replay).
    """

    item_id: str
    type: MovementType
    quantity: int
    balance_before: int
    balance_after: int
    timestamp: datetime
    sequence: int
    unit: str
    location: str | None = None
    reference: str | None = None
    operator: str | None = None
    reason: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise LedgerIntegrityError(
                self.item_id, self.sequence, f"quantity {self.quantity} is not positive"
            )
        if self.balance_before < 0 or self.balance_after < 0:
            raise LedgerIntegrityError(
                self.item_id,
                self.sequence,
                f"negative balance ({self.balance_before} -> {self.balance_after})",
            )
        expected = self.balance_before + self.type.sign * self.quantity
        if self.balance_after != expected:
            logger.error("movement_balance_rule_violated", extra={
                "item_id": self.item_id,
                "sequence": self.sequence,
                "balance_before": self.balance_before,
                "balance_after": self.balance_after,
                "expected": expected,
            })
            raise LedgerIntegrityError(
                self.item_id,
                self.sequence,
                f"balance_after {self.balance_after} != expected {expected}",
            )

    @property
    def signed_quantity(self) -> int:
        """Quantity with sign (negative for OUT)."""
        return self.type.sign * self.quantity

    @property
    def sort_key(self) -> tuple[datetime, int]:
        """Chronological order: timestamp, ties broken by ledger position."""
        return (self.timestamp, self.sequence)
