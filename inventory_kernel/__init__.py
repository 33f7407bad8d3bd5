"""
Inventory Kernel

Lot-based stock ledger for multi-store retail:
- FIFO deduction from purchase lots with row locking
- Append-only transfers with lot-level cost traceability
- Monthly transfer numbering via locked counter rows
- Typed errors and structured JSON logging
"""

__version__ = "0.1.0"
