"""
Balance rule -- how a debit/credit pair moves an account balance.

Responsibility:
    Maps (account type, debit, credit) to the signed change applied to the
    account's current_balance.  Debit-normal types (asset, expense) grow with
    debits; credit-normal types (liability, equity, income) grow with credits.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.  Shared by the posting
    service (write side) and the ledger selector (recomputation).
"""

from decimal import Decimal

DEBIT_NORMAL_TYPES = frozenset({"asset", "expense"})
CREDIT_NORMAL_TYPES = frozenset({"liability", "equity", "income"})
ACCOUNT_TYPES = DEBIT_NORMAL_TYPES | CREDIT_NORMAL_TYPES


def _type_value(account_type) -> str:
    return getattr(account_type, "value", account_type)


def is_debit_normal(account_type) -> bool:
    """
    True when debits increase the account's balance.

    Raises:
        ValueError: If account_type is not one of the five account types.
    """
    value = _type_value(account_type)
    if value not in ACCOUNT_TYPES:
        raise ValueError(f"Unknown account type: {account_type!r}")
    return value in DEBIT_NORMAL_TYPES


def delta(account_type, debit: Decimal, credit: Decimal) -> Decimal:
    """
    Signed balance change for one entry.

    asset, expense:              debit - credit
    liability, equity, income:   credit - debit

    Raises:
        ValueError: If account_type is not one of the five account types.
    """
    if is_debit_normal(account_type):
        return debit - credit
    return credit - debit
