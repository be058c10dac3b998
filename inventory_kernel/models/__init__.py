"""ORM models for the movement journal."""

from inventory_kernel.models.movement import StockMovementModel

__all__ = ["StockMovementModel"]
