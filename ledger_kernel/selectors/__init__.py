"""Read-only selectors over accounts, transactions and balances."""

from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["AccountSelector", "BaseSelector", "JournalSelector", "LedgerSelector"]
