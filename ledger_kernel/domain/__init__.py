"""Pure domain layer: DTOs, validation, balance rule, clock.  No I/O."""

from ledger_kernel.domain.balance_rule import delta, is_debit_normal
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    BalanceCheck,
    BalanceReport,
    EntryInput,
    Page,
    PostedEntry,
    PostedTransaction,
    ValidationResult,
)
from ledger_kernel.domain.posting_validator import validate

__all__ = [
    "AccountInfo",
    "BalanceCheck",
    "BalanceReport",
    "Clock",
    "DeterministicClock",
    "EntryInput",
    "Page",
    "PostedEntry",
    "PostedTransaction",
    "SystemClock",
    "ValidationResult",
    "delta",
    "is_debit_normal",
    "validate",
]
