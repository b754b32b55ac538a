"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Recomputes account balances from posted entries and compares
    them with the stored running balance.
Architecture position: Kernel > Selectors.  Uses domain/balance_rule.py so
    the check applies exactly the rule the posting service applied.

Invariants enforced:
    - current_balance == opening_balance + sum(delta(type, debit, credit))
      over every entry posted against the account.  A non-zero drift means
      something wrote a balance outside the posting service.
"""

from collections import defaultdict
from decimal import Decimal, localcontext
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import MONEY_CONTEXT, ZERO
from ledger_kernel.domain.balance_rule import delta
from ledger_kernel.domain.dtos import BalanceCheck, BalanceReport
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalTransaction, TransactionEntry
from ledger_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector[Account]):
    """Balance integrity checks, scoped by company."""

    def _entry_totals(
        self, company_id: UUID, account_id: UUID | None = None
    ) -> dict[UUID, tuple[Decimal, Decimal, int]]:
        """
        Sum of debits, sum of credits and entry count per account.

        Summed in Python over Decimal rows; SQL SUM on SQLite would go
        through binary floating point.
        """
        stmt = (
            select(
                TransactionEntry.account_id,
                TransactionEntry.debit,
                TransactionEntry.credit,
            )
            .join(JournalTransaction, JournalTransaction.id == TransactionEntry.transaction_id)
            .where(JournalTransaction.company_id == company_id)
        )
        if account_id is not None:
            stmt = stmt.where(TransactionEntry.account_id == account_id)

        totals: dict[UUID, tuple[Decimal, Decimal, int]] = defaultdict(
            lambda: (ZERO, ZERO, 0)
        )
        with localcontext(MONEY_CONTEXT):
            for acct_id, debit, credit in self.session.execute(stmt):
                debits, credits, count = totals[acct_id]
                totals[acct_id] = (debits + debit, credits + credit, count + 1)
        return totals

    def _check(self, account: Account, totals: tuple[Decimal, Decimal, int]) -> BalanceCheck:
        debits, credits, count = totals
        with localcontext(MONEY_CONTEXT):
            expected = account.opening_balance + delta(account.account_type, debits, credits)
        return BalanceCheck(
            account_id=account.id,
            name=account.name,
            opening_balance=account.opening_balance,
            current_balance=account.current_balance,
            expected_balance=expected,
            entry_count=count,
        )

    def check_account(self, company_id: UUID, account_id: UUID) -> BalanceCheck | None:
        """Balance check for one account; None if the account is unknown."""
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        if account is None:
            return None
        totals = self._entry_totals(company_id, account_id)
        return self._check(account, totals[account.id])

    def check_company(self, company_id: UUID) -> BalanceReport:
        """Balance checks for every account of the company, sorted by name."""
        totals = self._entry_totals(company_id)
        accounts = self.session.execute(
            select(Account).where(Account.company_id == company_id).order_by(Account.name)
        ).scalars()
        return BalanceReport(
            company_id=company_id,
            checks=tuple(self._check(a, totals[a.id]) for a in accounts),
        )
