"""
Ledger Kernel

Double-entry posting engine for a multi-tenant small-business ERP:
- Balanced-entry validation before any storage is touched
- One sign-convention rule for every account type
- Atomic transaction record + account balance updates
- Company-scoped reads and writes
"""

__version__ = "0.1.0"
