"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A stock ledger rejects input for a handful of well-defined reasons: the
request is malformed, the movement would drive a balance negative, or the
caller referenced an item the kernel knows nothing about.  Callers (the JSON
facade, a dashboard backend) must be able to tell these apart without parsing
message strings.

Every error therefore:
  1. Has its own class (catch by type, not by message)
  2. Carries a ``code`` class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example:
    try:
        ledger.append(movement)
    except InsufficientStockError as e:
        return {"error": e.code, "available": e.available, "requested": e.requested}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError
    |
    +-- LedgerError
    |   +-- InsufficientStockError
    |   +-- LedgerIntegrityError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- StockConfigNotFoundError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                    | When Raised
----------------|-------------------------|---------------------------------------------
Validation      | VALIDATION_ERROR        | Malformed or out-of-range input
----------------|-------------------------|---------------------------------------------
Ledger          | INSUFFICIENT_STOCK      | OUT movement exceeds the current balance
                | LEDGER_INTEGRITY        | balance_before/balance_after chain broken
----------------|-------------------------|---------------------------------------------
Not found       | ITEM_NOT_FOUND          | Item has no movements and no configuration
                | STOCK_CONFIG_NOT_FOUND  | Classification needs a configured min stock
----------------|-------------------------|---------------------------------------------
Configuration   | CONFIGURATION_ERROR     | YAML configuration missing or malformed

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ValidationError and InsufficientStockError are raised BEFORE any state
   change.  The ledger is never partially appended.

2. A balance query on an unknown item is NOT an error (it returns 0).
   Only operations that need a prior level or a configured minimum raise
   NotFoundError subclasses.

3. LedgerIntegrityError means a replayed or persisted ledger is corrupt.
   Stop and investigate; never "repair" balances in place.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


class ValidationError(InventoryKernelError):
    """Malformed or out-of-range input, rejected before any state change."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Ledger exceptions


class LedgerError(InventoryKernelError):
    """Base exception for ledger errors."""

    code: str = "LEDGER_ERROR"


class InsufficientStockError(LedgerError):
    """
    An OUT movement would drive the item's balance below zero.

    The movement is rejected and the ledger is left untouched.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, available: int, requested: int):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_id}: "
            f"available {available}, requested {requested}"
        )


class LedgerIntegrityError(LedgerError):
    """A movement's balance_before/balance_after chain does not hold."""

    code: str = "LEDGER_INTEGRITY"

    def __init__(self, item_id: str, sequence: int | None, detail: str):
        self.item_id = item_id
        self.sequence = sequence
        self.detail = detail
        super().__init__(
            f"Ledger integrity violation for {item_id} "
            f"at sequence {sequence}: {detail}"
        )


# Lookup exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for lookups of unknown items."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item has neither ledger history nor a stock configuration."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class StockConfigNotFoundError(NotFoundError):
    """
    Item has no configured minimum stock.

    Distinct from a configured minimum of zero: an unconfigured item cannot
    be classified at all.
    """

    code: str = "STOCK_CONFIG_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"No stock configuration (min stock) for item: {item_id}")


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """Configuration source is missing required keys or holds invalid values."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Invalid configuration in {source}: {detail}")
