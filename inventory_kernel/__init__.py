"""
Inventory Kernel

An append-only stock ledger with:
- Per-item running balances (balance_before / balance_after chains)
- Lazily recomputed stock-level projections
- Replay from the ledger alone (in memory or from a SQL journal)
- Typed, code-carrying errors and structured JSON logging
"""

__version__ = "0.1.0"
