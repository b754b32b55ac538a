"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.journal import JournalTransaction, TransactionEntry

__all__ = [
    "Account",
    "AccountType",
    "JournalTransaction",
    "TransactionEntry",
]
